"""
Shared pytest fixtures for the test suite.
"""

import asyncio
import base64
from typing import Dict, List, Mapping, Optional

import pytest
from nacl.encoding import RawEncoder
from nacl.signing import SigningKey

from retail_client.auth.signer import RequestSigner
from retail_client.errors import CloseError, ConnectError, NormalClosure
from retail_client.interfaces.transport import TransportSocket

FIXED_TS = 1704067200000
SEED = bytes(range(32))


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)


class FakeTransport(TransportSocket):
    """
    In-memory transport.

    Frames pushed with ``feed`` are returned by ``receive`` in order; an
    exception instance in the feed is raised instead. ``receive`` blocks
    while the feed is empty, like a quiet socket.
    """

    def __init__(self, name: str, url: str, close_error: Optional[Exception] = None):
        self._name = name
        self._url = url
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._open = True
        self.sent: List[str] = []
        self.headers: Dict[str, str] = {}
        self.close_calls = 0
        self.close_error = close_error

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_open(self) -> bool:
        return self._open

    def feed(self, *frames) -> None:
        for frame in frames:
            self._inbox.put_nowait(frame)

    def end(self) -> None:
        """Simulate the server closing normally."""
        self.feed(NormalClosure(f"{self._name} closed", code=1000))

    async def receive(self) -> str | bytes:
        item = await self._inbox.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def send(self, frame: str) -> None:
        self.sent.append(frame)

    async def close(self) -> None:
        self.close_calls += 1
        self._open = False
        if self.close_error is not None:
            raise self.close_error


class FakeFactory:
    """
    TransportFactory that hands out FakeTransports by socket name.

    Names listed in ``fail`` raise ConnectError instead of connecting.
    """

    def __init__(self, fail=(), close_errors: Optional[Mapping[str, Exception]] = None):
        self.fail = set(fail)
        self.close_errors = dict(close_errors or {})
        self.transports: Dict[str, FakeTransport] = {}
        self.calls: List[str] = []

    async def __call__(self, name: str, url: str, headers: Mapping[str, str]) -> TransportSocket:
        self.calls.append(name)
        if name in self.fail:
            raise ConnectError(f"failed to connect to {name} WebSocket: refused", url=url)
        transport = FakeTransport(name, url, close_error=self.close_errors.get(name))
        transport.headers = dict(headers)
        self.transports[name] = transport
        return transport


@pytest.fixture
def signing_key() -> SigningKey:
    """Deterministic Ed25519 key."""
    return SigningKey(SEED)


@pytest.fixture
def private_key_b64(signing_key) -> str:
    """Base64 of the 64-byte seed + public key form."""
    return base64.b64encode(SEED + signing_key.verify_key.encode(RawEncoder)).decode()


@pytest.fixture
def signer(signing_key) -> RequestSigner:
    """Signer with a frozen clock."""
    return RequestSigner("test-api-key", signing_key, clock=lambda: FIXED_TS)


@pytest.fixture
def fake_factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def failing_close_factory() -> FakeFactory:
    return FakeFactory(close_errors={"markets": CloseError("error closing markets WebSocket: broken pipe")})
