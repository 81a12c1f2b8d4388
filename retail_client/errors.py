"""
Exception hierarchy for the retail client.

Streaming errors:
    ConnectError: Opening a stream socket failed. Fatal to connect().
    ReadError: Receiving from a socket failed. Ends that socket's reader.
    NormalClosure: The peer (or we) closed the socket cleanly.
    WriteError: Sending a frame failed. Surfaced to the caller.
    DecodeError: A single inbound frame could not be decoded. Non-fatal.
    NotConnectedError: The target socket is absent.
    CloseError: One or more sockets failed to close. Aggregated.
    SessionStateError: Operation not valid in the session's current state.

REST errors:
    ApiError: Non-2xx HTTP response (status code + body).
    RateLimitError: HTTP 429 from the venue.
"""

from typing import List, Optional, Sequence


class RetailClientError(Exception):
    """Base class for all client errors."""

    pass


# =============================================================================
# STREAMING
# =============================================================================


class StreamError(RetailClientError):
    """Base class for streaming session errors."""

    pass


class ConnectError(StreamError):
    """
    Raised when a stream socket cannot be established.

    Attributes:
        url: Endpoint that failed.
        cause: Underlying exception, if any.
    """

    def __init__(self, message: str, url: str = "", cause: Optional[Exception] = None):
        self.url = url
        self.cause = cause
        super().__init__(message)


class ReadError(StreamError):
    """Raised when receiving a frame fails."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class NormalClosure(ReadError):
    """Raised by receive() when the connection was closed cleanly (1000/1001)."""

    pass


class WriteError(StreamError):
    """Raised when sending a frame fails."""

    pass


class DecodeError(StreamError):
    """
    Raised when an inbound frame is not a structurally valid message.

    Attributes:
        frame: Leading part of the offending frame, for logging.
    """

    def __init__(self, message: str, frame: str = ""):
        self.frame = frame
        super().__init__(message)


class NotConnectedError(StreamError):
    """Raised when an operation targets a socket that is not connected."""

    pass


class CloseError(StreamError):
    """
    Raised when closing one or more sockets fails.

    Closing is best-effort: every socket is attempted, and the individual
    failures are collected here.

    Attributes:
        errors: Per-socket close failures.
    """

    def __init__(self, message: str, errors: Optional[Sequence[Exception]] = None):
        self.errors: List[Exception] = list(errors or [])
        if self.errors:
            details = "; ".join(str(e) for e in self.errors)
            message = f"{message}: {details}"
        super().__init__(message)


class SessionStateError(StreamError):
    """Raised when a session operation is invalid for its current state."""

    pass


# =============================================================================
# REST
# =============================================================================


class ApiError(RetailClientError):
    """
    Raised when the REST API answers with a non-2xx status.

    Attributes:
        status: HTTP status code.
        body: Raw response body.
    """

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"API error {status}: {body}")


class RateLimitError(ApiError):
    """Raised when rate limited by the venue (HTTP 429)."""

    def __init__(self, status: int, body: str, retry_after: int = 60):
        self.retry_after = retry_after
        super().__init__(status, body)
