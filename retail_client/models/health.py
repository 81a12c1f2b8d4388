"""
Health and status models for the streaming session.

These are point-in-time snapshots, built on demand by
StreamingSession.health(). They give callers enough to detect a dead
reader or a consumer that is falling behind, and to decide on their own
reconnect policy.

Models:
    SocketHealth: Per-socket reader counters
    SessionHealth: Session-wide snapshot
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, Field

from retail_client.models.stream import SessionState


class SocketHealth(BaseModel):
    """
    Reader counters for one socket.

    Attributes:
        name: Socket name ("private" or "markets").
        connected: Whether the socket is currently held by the session.
        reader_running: Whether the reader task is still alive.
        frames_received: Raw frames read from the socket.
        heartbeats: Heartbeat frames filtered out.
        decode_errors: Frames that failed to decode.
        dropped: Messages dropped because the inbound queue was full.
        enqueued: Messages delivered to the inbound queue.
        last_message_at: When the last frame arrived (UTC).

    Example:
        >>> health = SocketHealth(
        ...     name="private",
        ...     connected=True,
        ...     reader_running=True,
        ...     frames_received=120,
        ...     heartbeats=20,
        ...     enqueued=100,
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(..., description="Socket name", min_length=1)
    connected: bool = Field(default=False, description="Socket held by the session")
    reader_running: bool = Field(default=False, description="Reader task alive")
    frames_received: int = Field(default=0, description="Raw frames read", ge=0)
    heartbeats: int = Field(default=0, description="Heartbeat frames filtered", ge=0)
    decode_errors: int = Field(default=0, description="Frames that failed to decode", ge=0)
    dropped: int = Field(default=0, description="Messages dropped on a full queue", ge=0)
    enqueued: int = Field(default=0, description="Messages delivered to the queue", ge=0)
    last_message_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp of last received frame (UTC)",
    )

    @property
    def is_healthy(self) -> bool:
        """Check if the socket is connected and its reader is running."""
        return self.connected and self.reader_running

    @property
    def seconds_since_message(self) -> Optional[float]:
        """
        Calculate seconds since the last frame.

        Returns:
            Optional[float]: Seconds since last frame, or None if none received.
        """
        if self.last_message_at is not None:
            return (datetime.now(timezone.utc) - self.last_message_at).total_seconds()
        return None


class SessionHealth(BaseModel):
    """
    Session-wide health snapshot.

    Attributes:
        state: Session lifecycle state.
        queue_depth: Messages waiting for the consumer.
        queue_capacity: Inbound queue bound.
        sockets: Per-socket health, keyed by socket name.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    state: SessionState = Field(..., description="Session lifecycle state")
    queue_depth: int = Field(default=0, description="Buffered messages", ge=0)
    queue_capacity: int = Field(..., description="Inbound queue bound", ge=1)
    sockets: Dict[str, SocketHealth] = Field(
        default_factory=dict,
        description="Health per socket",
    )

    @property
    def all_sockets_healthy(self) -> bool:
        """Check if every socket is connected with a live reader."""
        return bool(self.sockets) and all(s.is_healthy for s in self.sockets.values())

    @property
    def total_dropped(self) -> int:
        """Messages dropped across both sockets."""
        return sum(s.dropped for s in self.sockets.values())

    @property
    def queue_full(self) -> bool:
        """Check if the next inbound message would be dropped."""
        return self.queue_depth >= self.queue_capacity
