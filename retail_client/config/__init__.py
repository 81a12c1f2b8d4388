"""
Configuration management for the retail client.

Credentials and endpoints come from environment variables; tuning for the
REST client, the streaming session and logging comes from an optional
YAML file (config/client.yaml). Everything is validated with Pydantic so
configuration errors surface at startup.

Example:
    >>> from retail_client.config import load_config
    >>> config = load_config()
    >>> config.stream.queue_size
    100

Modules:
    loader: Environment and YAML loading
    models: Pydantic models for configuration validation
"""

from retail_client.config.loader import ConfigLoadError, ConfigLoader, load_config
from retail_client.config.models import (
    # Enums
    LogFormat,
    LogLevel,
    # Sections
    CredentialsConfig,
    EndpointsConfig,
    LoggingConfig,
    RestSettings,
    StreamSettings,
    # Root config
    ClientConfig,
    derive_ws_base,
)

__all__: list[str] = [
    # Loader
    "load_config",
    "ConfigLoader",
    "ConfigLoadError",
    # Enums
    "LogFormat",
    "LogLevel",
    # Sections
    "CredentialsConfig",
    "EndpointsConfig",
    "LoggingConfig",
    "RestSettings",
    "StreamSettings",
    # Root config
    "ClientConfig",
    "derive_ws_base",
]
