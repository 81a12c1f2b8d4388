"""
Ed25519 request signing.

Every REST request and every stream handshake carries a detached Ed25519
signature over ``"{timestamp_ms}{METHOD}{PATH}"``: no separators, and no
query string in PATH. The timestamp is milliseconds since the epoch and
must be fresh for each request; signatures are never reused.

Stream handshakes additionally carry a passphrase, which is the signature
of the API key itself.

Example:
    >>> key = load_signing_key(os.environ["POLYMARKET_PRIVATE_KEY"])
    >>> signer = RequestSigner("my-api-key", key)
    >>> headers = signer.rest_headers("GET", "/v1/portfolio/positions?limit=10")
"""

import base64
import binascii
import time
from typing import Dict, Optional
from urllib.parse import urlsplit

import structlog
from nacl.encoding import RawEncoder
from nacl.signing import SigningKey

logger = structlog.get_logger(__name__)

SEED_SIZE = 32
PRIVATE_KEY_SIZE = 64
MAX_TIMESTAMP_SKEW_MS = 5 * 60 * 1000


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def signing_message(timestamp_ms: int, method: str, path: str) -> str:
    """
    Build the message that gets signed.

    Args:
        timestamp_ms: Milliseconds since the epoch.
        method: HTTP method; upper-cased.
        path: Request path. Any query string or fragment is dropped.

    Returns:
        str: ``"{timestamp_ms}{METHOD}{PATH}"``.

    Example:
        >>> signing_message(1704067200000, "get", "/v1/portfolio/positions?limit=10")
        '1704067200000GET/v1/portfolio/positions'
    """
    bare_path = urlsplit(path).path
    return f"{timestamp_ms}{method.upper()}{bare_path}"


def sign(signing_key: SigningKey, timestamp_ms: int, method: str, path: str) -> bytes:
    """
    Produce a detached signature for one request.

    Returns:
        bytes: The 64-byte Ed25519 signature.
    """
    message = signing_message(timestamp_ms, method, path)
    return signing_key.sign(message.encode("utf-8"), encoder=RawEncoder).signature


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def build_headers(api_key: str, timestamp_ms: int, signature: bytes) -> Dict[str, str]:
    """Build the REST authentication headers."""
    return {
        "X-PM-Access-Key": api_key,
        "X-PM-Timestamp": str(timestamp_ms),
        "X-PM-Signature": _b64(signature),
    }


def build_stream_headers(
    api_key: str,
    timestamp_ms: int,
    signature: bytes,
    passphrase: bytes,
) -> Dict[str, str]:
    """Build the WebSocket handshake authentication headers."""
    return {
        "X-API-Key": api_key,
        "X-API-Timestamp": str(timestamp_ms),
        "X-API-Signature": _b64(signature),
        "X-API-Passphrase": _b64(passphrase),
    }


def load_signing_key(encoded: str) -> SigningKey:
    """
    Decode a base64 Ed25519 private key.

    Accepts either the 32-byte seed or the 64-byte seed + public key form.

    Args:
        encoded: Standard base64 key material.

    Returns:
        SigningKey: The signing key.

    Raises:
        ValueError: If the input is not valid base64 or has the wrong length.
    """
    try:
        raw = base64.b64decode(encoded.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"failed to decode private key: {e}") from e

    if len(raw) == SEED_SIZE:
        return SigningKey(raw)
    if len(raw) == PRIVATE_KEY_SIZE:
        key = SigningKey(raw[:SEED_SIZE])
        if key.verify_key.encode(RawEncoder) != raw[SEED_SIZE:]:
            raise ValueError("invalid private key: public half does not match seed")
        return key
    raise ValueError(
        f"invalid private key length: expected {PRIVATE_KEY_SIZE} or {SEED_SIZE} bytes, "
        f"got {len(raw)}"
    )


def validate_timestamp(timestamp_ms: int, now: Optional[int] = None) -> None:
    """
    Check a timestamp is within the server's accepted window.

    Args:
        timestamp_ms: Timestamp to check.
        now: Reference time in ms. Defaults to the local clock.

    Raises:
        ValueError: If the timestamp differs from ``now`` by more than 5 minutes.
    """
    reference = now_ms() if now is None else now
    diff = abs(reference - timestamp_ms)
    if diff > MAX_TIMESTAMP_SKEW_MS:
        raise ValueError(
            f"timestamp outside valid window: difference of {diff} ms "
            f"exceeds {MAX_TIMESTAMP_SKEW_MS} ms"
        )


class RequestSigner:
    """
    Produces fresh authentication headers for REST calls and stream handshakes.

    Holds the API key and signing key; takes a new timestamp on every call.

    Attributes:
        api_key: The public API key id.
    """

    def __init__(self, api_key: str, signing_key: SigningKey, clock=now_ms) -> None:
        """
        Initialize the signer.

        Args:
            api_key: The API key id.
            signing_key: Ed25519 signing key.
            clock: Callable returning the current time in ms.
        """
        if not api_key:
            raise ValueError("api_key must not be empty")
        self.api_key = api_key
        self._signing_key = signing_key
        self._clock = clock

    def rest_headers(self, method: str, path: str) -> Dict[str, str]:
        """Sign a REST request. ``path`` may include a query string."""
        timestamp = self._clock()
        signature = sign(self._signing_key, timestamp, method, path)
        return build_headers(self.api_key, timestamp, signature)

    def stream_headers(self, path: str) -> Dict[str, str]:
        """Sign a stream handshake (always a GET on ``path``)."""
        timestamp = self._clock()
        signature = sign(self._signing_key, timestamp, "GET", path)
        passphrase = self._signing_key.sign(
            self.api_key.encode("utf-8"), encoder=RawEncoder
        ).signature
        logger.debug("stream_headers_signed", path=path, timestamp=timestamp)
        return build_stream_headers(self.api_key, timestamp, signature, passphrase)

    @property
    def verify_key_b64(self) -> str:
        """Base64 public key, for display and server-side registration."""
        return _b64(self._signing_key.verify_key.encode(RawEncoder))
