"""
Authenticated dual-socket streaming session.

The session owns two transport sockets: the private socket (orders,
positions, balances) and the markets socket (order book, price summary,
trades). Each socket gets its own reader task; both readers feed a single
bounded inbound queue that the consumer drains through ``messages()``.

Lifecycle:
    UNCONNECTED --connect()--> CONNECTING --> CONNECTED --close()--> CLOSED
    A failed connect() returns to UNCONNECTED. CLOSED is final.

Delivery:
    - Per-socket FIFO; no ordering between the two sockets.
    - Heartbeats are filtered by the readers and never queued.
    - Readers never block on the queue: when it is full the new message is
      dropped and counted. The consumer must keep up or accept loss.
    - A reader ends on normal closure, on a read error, or when close()
      fires the shared stop signal. The consumer only observes silence;
      ``health()`` and ``active_readers`` expose what happened.

There is no reconnection. Callers that need it can watch ``state``,
``health()`` and ``wait_closed()`` and build a new session.

Example:
    >>> session = StreamingSession.from_config(config)
    >>> await session.connect()
    >>> await session.subscribe_orders(["will-it-rain"])
    >>> await session.subscribe_market_data(["will-it-rain"], debounced=True)
    >>> async for message in session.messages():
    ...     print(message.kind, message.payload)
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Mapping, Optional, Sequence

import structlog
from nacl.signing import SigningKey

from retail_client.adapters.normalizer import FrameNormalizer
from retail_client.adapters.websocket import WebSocketTransport
from retail_client.auth.signer import RequestSigner, load_signing_key
from retail_client.config.models import ClientConfig, StreamSettings
from retail_client.errors import (
    CloseError,
    ConnectError,
    DecodeError,
    NormalClosure,
    NotConnectedError,
    ReadError,
    SessionStateError,
)
from retail_client.interfaces.transport import TransportFactory, TransportSocket
from retail_client.models.health import SessionHealth, SocketHealth
from retail_client.models.stream import (
    MARKETS_STREAM_PATH,
    PRIVATE_STREAM_PATH,
    InboundMessage,
    SessionState,
    SubscriptionKind,
)

logger = structlog.get_logger(__name__)

PRIVATE = "private"
MARKETS = "markets"


def websocket_factory(
    settings: Optional[StreamSettings] = None,
    insecure_skip_verify: bool = False,
) -> TransportFactory:
    """
    Build a TransportFactory that opens WebSocketTransports.

    Args:
        settings: Handshake, keepalive and frame size settings.
        insecure_skip_verify: Skip TLS verification (staging only).
    """
    settings = settings or StreamSettings()

    async def open_websocket(
        name: str, url: str, headers: Mapping[str, str]
    ) -> TransportSocket:
        return await WebSocketTransport.open(
            name,
            url,
            headers,
            handshake_timeout=settings.handshake_timeout_seconds,
            close_timeout=settings.close_timeout_seconds,
            ping_interval=settings.ping_interval_seconds,
            max_message_bytes=settings.max_message_bytes,
            insecure_skip_verify=insecure_skip_verify,
        )

    return open_websocket


class _SocketStats:
    """Mutable reader counters for one socket. Written only by its reader."""

    __slots__ = (
        "frames_received",
        "heartbeats",
        "decode_errors",
        "dropped",
        "enqueued",
        "last_message_at",
    )

    def __init__(self) -> None:
        self.frames_received = 0
        self.heartbeats = 0
        self.decode_errors = 0
        self.dropped = 0
        self.enqueued = 0
        self.last_message_at: Optional[datetime] = None


class StreamingSession:
    """
    Streaming session over the private and markets sockets.

    Request-id allocation and state transitions are guarded by a lock so
    they stay consistent if inspected or invoked from other threads; each
    transport serializes its own writers.

    Attributes:
        queue_size: Inbound queue bound.
        state: Current lifecycle state.

    Example:
        >>> async with StreamingSession(signer, private_url, markets_url) as session:
        ...     request_id = await session.subscribe(SubscriptionKind.TRADE, ["will-it-rain"])
        ...     async for message in session.messages():
        ...         handle(message)
    """

    def __init__(
        self,
        signer: RequestSigner,
        private_url: str,
        markets_url: str,
        queue_size: int = 100,
        transport_factory: Optional[TransportFactory] = None,
        shutdown_timeout: float = 5.0,
    ):
        """
        Initialize the session. No connection is made until connect().

        Args:
            signer: Produces signed handshake headers for each socket.
            private_url: Private stream URL.
            markets_url: Markets stream URL.
            queue_size: Inbound queue bound; must be at least 1.
            transport_factory: Opens transports. Defaults to WebSocketTransport.
            shutdown_timeout: Seconds close() waits for reader tasks.
        """
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")

        self._signer = signer
        self._urls = {PRIVATE: private_url, MARKETS: markets_url}
        self.queue_size = queue_size
        self._transport_factory = transport_factory or websocket_factory()
        self._shutdown_timeout = shutdown_timeout

        self._lock = threading.Lock()
        self._state = SessionState.UNCONNECTED
        self._request_counter = 0

        self._transports: Dict[str, Optional[TransportSocket]] = {PRIVATE: None, MARKETS: None}
        self._readers: Dict[str, asyncio.Task] = {}
        self._stats: Dict[str, _SocketStats] = {PRIVATE: _SocketStats(), MARKETS: _SocketStats()}

        self._queue: asyncio.Queue[InboundMessage] = asyncio.Queue(maxsize=queue_size)
        self._stop = asyncio.Event()
        self._closed = asyncio.Event()

        logger.info(
            "streaming_session_initialized",
            private_url=private_url,
            markets_url=markets_url,
            queue_size=queue_size,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        signer: Optional[RequestSigner] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> "StreamingSession":
        """
        Build a session from client configuration.

        Args:
            config: Loaded client configuration.
            signer: Signer to use; built from the configured credentials if None.
            transport_factory: Override the WebSocket factory.
        """
        if signer is None:
            key: SigningKey = load_signing_key(
                config.credentials.private_key.get_secret_value()
            )
            signer = RequestSigner(config.credentials.api_key, key)
        factory = transport_factory or websocket_factory(
            config.stream, config.endpoints.insecure_skip_verify
        )
        return cls(
            signer,
            config.endpoints.private_stream_url,
            config.endpoints.markets_stream_url,
            queue_size=config.stream.queue_size,
            transport_factory=factory,
            shutdown_timeout=config.stream.shutdown_timeout_seconds,
        )

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        with self._lock:
            return self._state

    def is_connected(self) -> bool:
        """
        Check whether the session is in the CONNECTED state. Safe from any thread.

        This reflects session state, not socket liveness: a peer closing
        one or both sockets stops its reader but leaves the state alone.
        Use active_readers or health() to see whether frames still flow.
        """
        with self._lock:
            return self._state is SessionState.CONNECTED

    @property
    def active_readers(self) -> int:
        """Number of reader tasks still running."""
        return sum(1 for task in self._readers.values() if not task.done())

    def _set_state(self, state: SessionState) -> None:
        with self._lock:
            self._state = state

    def _next_request_id(self, prefix: str) -> str:
        with self._lock:
            self._request_counter += 1
            return f"{prefix}-{self._request_counter}"

    # =========================================================================
    # CONNECT
    # =========================================================================

    async def _open(self, name: str, path: str) -> TransportSocket:
        """Open one socket with freshly signed headers."""
        url = self._urls[name]
        headers = self._signer.stream_headers(path)
        try:
            return await self._transport_factory(name, url, headers)
        except ConnectError:
            raise
        except Exception as e:
            raise ConnectError(f"failed to connect to {name} stream: {e}", url=url, cause=e) from e

    async def _close_quietly(self, transport: TransportSocket) -> None:
        """Close a socket during rollback; failures are logged, not raised."""
        try:
            await transport.close()
        except Exception as e:
            logger.warning("stream_rollback_close_failed", socket=transport.name, error=str(e))

    async def connect(self) -> None:
        """
        Open the private socket, then the markets socket, and start readers.

        Each socket is signed over its own fixed path. If the markets socket
        fails, the private socket is closed before the error propagates and
        the session returns to UNCONNECTED.

        Raises:
            SessionStateError: If the session is not UNCONNECTED.
            ConnectError: If either socket cannot be opened.
        """
        with self._lock:
            if self._state is not SessionState.UNCONNECTED:
                raise SessionStateError(
                    f"connect() requires an unconnected session, state is {self._state.value}"
                )
            self._state = SessionState.CONNECTING

        logger.info("stream_connecting")
        try:
            private = await self._open(PRIVATE, PRIVATE_STREAM_PATH)
        except BaseException:
            self._set_state(SessionState.UNCONNECTED)
            raise
        logger.info("stream_connected", socket=PRIVATE, url=private.url)

        try:
            markets = await self._open(MARKETS, MARKETS_STREAM_PATH)
        except BaseException as e:
            logger.error("stream_connect_rolled_back", socket=MARKETS, error=str(e))
            await self._close_quietly(private)
            self._set_state(SessionState.UNCONNECTED)
            raise
        logger.info("stream_connected", socket=MARKETS, url=markets.url)

        with self._lock:
            closed_meanwhile = self._state is not SessionState.CONNECTING
            if not closed_meanwhile:
                self._transports[PRIVATE] = private
                self._transports[MARKETS] = markets
                self._state = SessionState.CONNECTED
        if closed_meanwhile:
            await self._close_quietly(private)
            await self._close_quietly(markets)
            raise SessionStateError("session was closed while connecting")

        for name, transport in ((PRIVATE, private), (MARKETS, markets)):
            self._readers[name] = asyncio.create_task(
                self._read_loop(name, transport), name=f"stream-reader-{name}"
            )

    # =========================================================================
    # READERS
    # =========================================================================

    async def _read_loop(self, name: str, transport: TransportSocket) -> None:
        """
        Receive, decode, filter and enqueue frames from one socket.

        Decode failures skip the frame. A full queue drops the message.
        Ends on normal closure, a read error, or the stop signal.
        """
        stats = self._stats[name]
        log = logger.bind(socket=name)
        log.debug("stream_reader_started")
        try:
            while not self._stop.is_set():
                try:
                    raw = await transport.receive()
                except NormalClosure:
                    log.info("stream_closed_normally")
                    break
                except ReadError as e:
                    if self._stop.is_set():
                        log.debug("stream_read_interrupted", error=str(e))
                    else:
                        log.error("stream_read_failed", error=str(e), code=e.code)
                    break

                stats.frames_received += 1
                stats.last_message_at = datetime.now(timezone.utc)

                try:
                    message = FrameNormalizer.decode_frame(raw)
                except DecodeError as e:
                    stats.decode_errors += 1
                    log.warning("stream_decode_failed", error=str(e), frame=e.frame)
                    continue

                if FrameNormalizer.is_heartbeat(message):
                    stats.heartbeats += 1
                    log.debug("stream_heartbeat")
                    continue

                try:
                    self._queue.put_nowait(message)
                except asyncio.QueueFull:
                    stats.dropped += 1
                    log.warning(
                        "inbound_queue_full_message_dropped",
                        kind=message.kind.value if message.kind else None,
                        request_id=message.request_id,
                        dropped=stats.dropped,
                    )
                else:
                    stats.enqueued += 1

        except asyncio.CancelledError:
            log.debug("stream_reader_cancelled")
            raise
        except Exception as e:
            log.error(
                "stream_reader_unexpected_error",
                error=str(e),
                error_type=type(e).__name__,
            )
        finally:
            log.info(
                "stream_reader_stopped",
                frames_received=stats.frames_received,
                enqueued=stats.enqueued,
                dropped=stats.dropped,
                decode_errors=stats.decode_errors,
            )

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def _transport(self, is_private: bool) -> TransportSocket:
        name = PRIVATE if is_private else MARKETS
        with self._lock:
            transport = self._transports[name]
        if transport is None:
            raise NotConnectedError(f"{name} WebSocket not connected")
        return transport

    async def subscribe(
        self,
        kind: SubscriptionKind,
        market_ids: Optional[Sequence[str]] = None,
        debounce: bool = False,
        request_id: Optional[str] = None,
    ) -> str:
        """
        Send a subscription request on the socket that serves ``kind``.

        Order, position and account-balance subscriptions go to the private
        socket; market data, market data lite and trades go to the markets
        socket. Subscription state is not tracked after sending.

        Args:
            kind: What to subscribe to.
            market_ids: Market slugs to filter on; empty means all markets.
            debounce: Ask the server to coalesce rapid updates.
            request_id: Correlation id; allocated by the session if None.

        Returns:
            str: The request id.

        Raises:
            NotConnectedError: If the socket for ``kind`` is not connected.
            WriteError: If the frame could not be sent.
        """
        kind = SubscriptionKind(kind)
        transport = self._transport(kind.is_private)
        request_id = request_id or self._next_request_id(kind.request_prefix)
        request = FrameNormalizer.build_subscription(kind, request_id, market_ids, debounce)

        await transport.send(FrameNormalizer.encode_subscribe(request))

        logger.info(
            "stream_subscribed",
            socket=transport.name,
            kind=kind.value,
            request_id=request_id,
            markets=list(request.market_slugs),
            debounced=debounce,
        )
        return request_id

    async def unsubscribe(self, request_id: str, is_private: bool) -> None:
        """
        Cancel a subscription by its request id.

        Active subscriptions are not tracked; the caller names the socket.

        Raises:
            NotConnectedError: If the named socket is not connected.
            WriteError: If the frame could not be sent.
        """
        transport = self._transport(is_private)
        await transport.send(FrameNormalizer.encode_unsubscribe(request_id))
        logger.info("stream_unsubscribed", socket=transport.name, request_id=request_id)

    async def subscribe_orders(self, market_slugs: Optional[Sequence[str]] = None) -> str:
        """Subscribe to order execution reports (private)."""
        return await self.subscribe(SubscriptionKind.ORDER, market_slugs)

    async def subscribe_positions(self, market_slugs: Optional[Sequence[str]] = None) -> str:
        """Subscribe to position changes (private)."""
        return await self.subscribe(SubscriptionKind.POSITION, market_slugs)

    async def subscribe_balances(self) -> str:
        """Subscribe to account balance changes (private)."""
        return await self.subscribe(SubscriptionKind.ACCOUNT_BALANCE)

    async def subscribe_market_data(
        self, market_slugs: Optional[Sequence[str]] = None, debounced: bool = False
    ) -> str:
        """Subscribe to full order book updates (markets)."""
        return await self.subscribe(SubscriptionKind.MARKET_DATA, market_slugs, debounced)

    async def subscribe_market_data_lite(
        self, market_slugs: Optional[Sequence[str]] = None
    ) -> str:
        """Subscribe to price summaries (markets)."""
        return await self.subscribe(SubscriptionKind.MARKET_DATA_LITE, market_slugs)

    async def subscribe_trades(self, market_slugs: Optional[Sequence[str]] = None) -> str:
        """Subscribe to public trades (markets)."""
        return await self.subscribe(SubscriptionKind.TRADE, market_slugs)

    # =========================================================================
    # CONSUMER
    # =========================================================================

    async def _next_or_closed(self) -> Optional[InboundMessage]:
        """Wait for a message; return None if the session closes first."""
        getter = asyncio.ensure_future(self._queue.get())
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({getter, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()
            if not getter.done():
                getter.cancel()
        if getter.done() and not getter.cancelled():
            return getter.result()
        return None

    async def messages(self) -> AsyncIterator[InboundMessage]:
        """
        Iterate over inbound messages from both sockets.

        Yields messages until the session is closed and the buffer is
        drained. Single consumer; delivered messages are not replayed.

        Yields:
            InboundMessage: Decoded, non-heartbeat frames.
        """
        while True:
            try:
                message: Optional[InboundMessage] = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                if self._closed.is_set():
                    return
                message = await self._next_or_closed()
                if message is None:
                    continue
            yield message

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    async def close(self) -> None:
        """
        Stop both readers and close both sockets.

        Fires the shared stop signal and cancels the readers, then closes
        each socket, continuing past failures so neither is leaked. A second
        call is a no-op.

        Raises:
            CloseError: Aggregate of per-socket close failures.
        """
        with self._lock:
            if self._state is SessionState.CLOSED:
                logger.debug("streaming_session_already_closed")
                return
            self._state = SessionState.CLOSED
            transports = [t for t in self._transports.values() if t is not None]
            self._transports = {PRIVATE: None, MARKETS: None}

        self._stop.set()
        readers = list(self._readers.values())
        for task in readers:
            task.cancel()

        errors = []
        for transport in transports:
            try:
                await transport.close()
            except Exception as e:
                logger.warning("stream_close_failed", socket=transport.name, error=str(e))
                errors.append(e)

        if readers:
            _, pending = await asyncio.wait(readers, timeout=self._shutdown_timeout)
            if pending:
                logger.warning(
                    "stream_readers_still_running",
                    count=len(pending),
                    timeout=self._shutdown_timeout,
                )

        self._closed.set()
        logger.info(
            "streaming_session_closed",
            close_errors=len(errors),
            buffered=self._queue.qsize(),
        )

        if errors:
            raise CloseError("errors closing connections", errors)

    async def wait_closed(self) -> None:
        """Wait until close() has completed."""
        await self._closed.wait()

    async def __aenter__(self) -> "StreamingSession":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # =========================================================================
    # HEALTH
    # =========================================================================

    def health(self) -> SessionHealth:
        """
        Snapshot reader counters and queue depth.

        Returns:
            SessionHealth: Current session health.
        """
        with self._lock:
            state = self._state
            held = {name: t is not None for name, t in self._transports.items()}

        sockets = {}
        for name, stats in self._stats.items():
            task = self._readers.get(name)
            sockets[name] = SocketHealth(
                name=name,
                connected=held[name],
                reader_running=task is not None and not task.done(),
                frames_received=stats.frames_received,
                heartbeats=stats.heartbeats,
                decode_errors=stats.decode_errors,
                dropped=stats.dropped,
                enqueued=stats.enqueued,
                last_message_at=stats.last_message_at,
            )

        return SessionHealth(
            state=state,
            queue_depth=self._queue.qsize(),
            queue_capacity=self.queue_size,
            sockets=sockets,
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"StreamingSession(state={self.state.value}, "
            f"readers={self.active_readers}, "
            f"queued={self._queue.qsize()})"
        )
