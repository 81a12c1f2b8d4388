"""
Pydantic models for client configuration.

Secrets and endpoints come from the environment; tuning knobs (timeouts,
queue bound, logging) come from an optional YAML file. All values are
validated here so misconfiguration fails at startup.

Models:
    CredentialsConfig: API key and Ed25519 private key
    EndpointsConfig: REST base URL and stream base URL
    RestSettings: REST client tuning
    StreamSettings: Streaming session tuning
    LoggingConfig: Log format and level
    ClientConfig: Root configuration
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

from retail_client.models.stream import MARKETS_STREAM_PATH, PRIVATE_STREAM_PATH

DEFAULT_BASE_URL = "https://api.polymarket.us"


# =============================================================================
# ENUMS
# =============================================================================


class LogFormat(str, Enum):
    """Logging format options."""

    JSON = "json"
    TEXT = "text"


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# CREDENTIALS AND ENDPOINTS
# =============================================================================


class CredentialsConfig(BaseModel):
    """API credentials. The private key is never rendered in reprs or logs."""

    model_config = {"frozen": True, "extra": "forbid"}

    api_key: str = Field(
        ...,
        description="API key id",
        min_length=1,
    )
    private_key: SecretStr = Field(
        ...,
        description="Base64 Ed25519 private key (32-byte seed or 64-byte key)",
    )

    @property
    def api_key_prefix(self) -> str:
        """First 8 characters of the API key, for display."""
        return self.api_key[:8]


def derive_ws_base(base_url: str) -> str:
    """
    Derive the stream base URL from the REST base URL.

    Example:
        >>> derive_ws_base("https://api.polymarket.us")
        'wss://api.polymarket.us'
    """
    if base_url.startswith("https"):
        return "wss" + base_url[len("https"):]
    if base_url.startswith("http"):
        return "ws" + base_url[len("http"):]
    return base_url


class EndpointsConfig(BaseModel):
    """REST and stream endpoints."""

    model_config = {"frozen": True, "extra": "forbid"}

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="REST API base URL",
    )
    ws_base_url: Optional[str] = Field(
        default=None,
        description="Stream base URL (derived from base_url when unset)",
    )
    insecure_skip_verify: bool = Field(
        default=False,
        description="Skip TLS certificate verification (staging only)",
    )

    @field_validator("base_url", "ws_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        """Normalize URLs so paths can be appended directly."""
        if v is None:
            return v
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("URL must not be empty")
        return v

    @property
    def stream_base(self) -> str:
        """Resolved stream base URL."""
        return self.ws_base_url or derive_ws_base(self.base_url)

    @property
    def private_stream_url(self) -> str:
        """Private (account) stream URL."""
        return self.stream_base + PRIVATE_STREAM_PATH

    @property
    def markets_stream_url(self) -> str:
        """Public (markets) stream URL."""
        return self.stream_base + MARKETS_STREAM_PATH


# =============================================================================
# TUNING
# =============================================================================


class RestSettings(BaseModel):
    """REST client settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    timeout_seconds: float = Field(
        default=30.0,
        description="Total request timeout",
        gt=0,
        le=300,
    )
    rate_limit_per_second: int = Field(
        default=10,
        description="Maximum REST requests per second",
        ge=1,
        le=100,
    )


class StreamSettings(BaseModel):
    """Streaming session settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    queue_size: int = Field(
        default=100,
        description="Inbound queue bound; messages beyond it are dropped",
        ge=1,
        le=100_000,
    )
    handshake_timeout_seconds: float = Field(
        default=10.0,
        description="WebSocket opening handshake timeout",
        gt=0,
        le=120,
    )
    close_timeout_seconds: float = Field(
        default=5.0,
        description="WebSocket closing handshake timeout",
        gt=0,
        le=60,
    )
    shutdown_timeout_seconds: float = Field(
        default=5.0,
        description="How long close() waits for reader tasks to finish",
        gt=0,
        le=60,
    )
    ping_interval_seconds: Optional[float] = Field(
        default=20.0,
        description="Client keepalive ping interval (None disables pings)",
        gt=0,
        le=300,
    )
    max_message_bytes: int = Field(
        default=4 * 1024 * 1024,
        description="Largest inbound frame accepted",
        ge=1024,
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Default log level",
    )


# =============================================================================
# ROOT CONFIGURATION
# =============================================================================


class ClientConfig(BaseModel):
    """
    Root configuration for the retail client.

    Example:
        >>> config = load_config()
        >>> config.endpoints.private_stream_url
        'wss://api.polymarket.us/v1/ws/private'
    """

    model_config = {"frozen": True, "extra": "forbid"}

    credentials: CredentialsConfig = Field(
        ...,
        description="API credentials",
    )
    symbol: str = Field(
        ...,
        description="Market slug the demo workflow trades",
        min_length=1,
    )
    endpoints: EndpointsConfig = Field(
        default_factory=EndpointsConfig,
        description="REST and stream endpoints",
    )
    rest: RestSettings = Field(
        default_factory=RestSettings,
        description="REST client settings",
    )
    stream: StreamSettings = Field(
        default_factory=StreamSettings,
        description="Streaming session settings",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
