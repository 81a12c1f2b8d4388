"""
WebSocket transport.

One WebSocketTransport wraps one authenticated connection. The session
opens two, private and markets, with the same class; they differ only in
URL and signed handshake headers.

Connection Management:
    - Signed headers are sent on the opening handshake
    - Protocol-level keepalive pings are handled by the websockets library
    - No reconnection: a dropped connection surfaces as ReadError
    - Writers are serialized with a per-socket lock
"""

import asyncio
import ssl
from datetime import datetime, timezone
from typing import Mapping, Optional

import structlog
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    InvalidStatus,
    WebSocketException,
)
from websockets.protocol import State

from retail_client.errors import (
    CloseError,
    ConnectError,
    NormalClosure,
    ReadError,
    WriteError,
)
from retail_client.interfaces.transport import TransportSocket

logger = structlog.get_logger(__name__)


def _insecure_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class WebSocketTransport(TransportSocket):
    """
    TransportSocket over a websockets client connection.

    Use the ``open`` classmethod to connect; the constructor only wraps an
    already-open connection.

    Attributes:
        name: Socket role ("private" or "markets").
        url: WebSocket endpoint URL.

    Example:
        >>> transport = await WebSocketTransport.open(
        ...     "markets",
        ...     "wss://api.polymarket.us/v1/ws/markets",
        ...     signer.stream_headers("/v1/ws/markets"),
        ... )
        >>> await transport.send('{"subscribe": {...}}')
        >>> frame = await transport.receive()
    """

    def __init__(self, name: str, url: str, ws: ClientConnection):
        self._name = name
        self._url = url
        self._ws = ws
        self._send_lock = asyncio.Lock()
        self._last_message_at: Optional[datetime] = None

    @classmethod
    async def open(
        cls,
        name: str,
        url: str,
        headers: Mapping[str, str],
        handshake_timeout: float = 10.0,
        close_timeout: float = 5.0,
        ping_interval: Optional[float] = 20.0,
        max_message_bytes: int = 4 * 1024 * 1024,
        insecure_skip_verify: bool = False,
    ) -> "WebSocketTransport":
        """
        Open a WebSocket connection.

        Args:
            name: Socket role, for logging.
            url: ws:// or wss:// endpoint.
            headers: Signed handshake headers.
            handshake_timeout: Opening handshake timeout in seconds.
            close_timeout: Closing handshake timeout in seconds.
            ping_interval: Keepalive ping interval; None disables pings.
            max_message_bytes: Largest inbound frame accepted.
            insecure_skip_verify: Skip TLS verification (wss only).

        Returns:
            WebSocketTransport: The connected transport.

        Raises:
            ConnectError: If the connection or handshake fails.
        """
        kwargs = {}
        if insecure_skip_verify and url.startswith("wss://"):
            kwargs["ssl"] = _insecure_ssl_context()

        try:
            ws = await connect(
                url,
                additional_headers=dict(headers),
                open_timeout=handshake_timeout,
                close_timeout=close_timeout,
                ping_interval=ping_interval,
                max_size=max_message_bytes,
                **kwargs,
            )
        except InvalidStatus as e:
            status = e.response.status_code
            logger.error("websocket_handshake_rejected", socket=name, url=url, status=status)
            raise ConnectError(
                f"failed to connect to {name} WebSocket: handshake rejected with HTTP {status}",
                url=url,
                cause=e,
            ) from e
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            logger.error("websocket_connection_failed", socket=name, url=url, error=str(e))
            raise ConnectError(
                f"failed to connect to {name} WebSocket: {e}",
                url=url,
                cause=e,
            ) from e

        logger.info("websocket_connected", socket=name, url=url)
        return cls(name, url, ws)

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_open(self) -> bool:
        """Check if the connection is open."""
        return self._ws.state is State.OPEN

    @property
    def last_message_at(self) -> Optional[datetime]:
        """Timestamp of the last received frame."""
        return self._last_message_at

    async def receive(self) -> str | bytes:
        """
        Receive one frame.

        Text frames are returned as str. Binary frames are returned as raw
        bytes; decoding them is left to the normalizer, so a malformed
        frame fails as a per-frame DecodeError rather than a read error.

        Raises:
            NormalClosure: Connection closed with 1000 or 1001.
            ReadError: Connection dropped, or a transport-level failure.
        """
        try:
            frame = await self._ws.recv()
        except ConnectionClosedOK as e:
            raise NormalClosure(
                f"{self._name} connection closed normally",
                code=e.rcvd.code if e.rcvd else None,
            ) from e
        except ConnectionClosed as e:
            code = e.rcvd.code if e.rcvd else None
            raise ReadError(f"{self._name} connection closed: {e}", code=code) from e
        except (WebSocketException, OSError) as e:
            raise ReadError(f"error reading from {self._name} WebSocket: {e}") from e

        self._last_message_at = datetime.now(timezone.utc)
        return frame

    async def send(self, frame: str) -> None:
        """
        Send one text frame.

        Raises:
            WriteError: If the connection is closed or the write fails.
        """
        async with self._send_lock:
            try:
                await self._ws.send(frame)
            except (WebSocketException, OSError) as e:
                logger.error("websocket_send_failed", socket=self._name, error=str(e))
                raise WriteError(f"failed to send on {self._name} WebSocket: {e}") from e

    async def close(self) -> None:
        """
        Close the connection. Closing an already-closed connection is a no-op.

        Raises:
            CloseError: If the closing handshake fails.
        """
        try:
            await self._ws.close()
        except (WebSocketException, OSError) as e:
            logger.warning("websocket_close_error", socket=self._name, error=str(e))
            raise CloseError(f"error closing {self._name} WebSocket: {e}") from e
        logger.info("websocket_disconnected", socket=self._name, url=self._url)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"WebSocketTransport(name={self._name}, url={self._url}, "
            f"open={self.is_open})"
        )
