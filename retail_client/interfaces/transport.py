"""
Abstract base class for stream transport sockets.

A TransportSocket wraps one bidirectional, message-oriented connection.
The streaming session holds two of them (private and markets) that differ
only in URL and signed headers, so both are instances of one
implementation.

Ownership rules:
    - receive() is called only by the socket's reader task.
    - send() may be called concurrently by subscribe/unsubscribe callers;
      implementations serialize writers internally.
    - close() may be called from the session at any time and must release
      a reader blocked in receive().

Example:
    >>> class MemoryTransport(TransportSocket):
    ...     async def receive(self) -> str | bytes:
    ...         return await self._inbox.get()
    ...     # ... implement other abstract methods
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Mapping


class TransportSocket(ABC):
    """
    Abstract message-oriented connection.

    Attributes:
        name: Socket role, "private" or "markets". Used in logs and health.
        url: Endpoint URL.
        is_open: True until the connection ends or is closed.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Socket role name."""
        pass

    @property
    @abstractmethod
    def url(self) -> str:
        """Endpoint URL."""
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the connection is still open.

        Returns:
            bool: False once the peer closed or close() was called.
        """
        pass

    @abstractmethod
    async def receive(self) -> str | bytes:
        """
        Receive one raw frame.

        Suspends until a frame arrives or the connection ends. There is
        no timeout; a hung peer blocks until the socket errors or is
        closed.

        Returns:
            str | bytes: The raw frame, text or binary.

        Raises:
            NormalClosure: The connection was closed cleanly.
            ReadError: Any other receive failure.
        """
        pass

    @abstractmethod
    async def send(self, frame: str) -> None:
        """
        Send one raw frame.

        Concurrent callers are serialized; frames are never interleaved.

        Raises:
            WriteError: If the frame could not be sent.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the connection.

        Raises:
            CloseError: If the closing handshake failed.
        """
        pass


# Opens a transport: (name, url, headers) -> connected socket.
# Raises ConnectError on failure.
TransportFactory = Callable[[str, str, Mapping[str, str]], Awaitable[TransportSocket]]
