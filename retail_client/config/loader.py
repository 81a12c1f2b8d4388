"""
Configuration loader: environment variables plus an optional YAML file.

Secrets and endpoints are read from the environment. For each setting the
first non-empty variable wins:

    - POLYMARKET_API_KEY, TEST_API_KEY_ID: API key id (required)
    - POLYMARKET_PRIVATE_KEY, TEST_API_SECRET_KEY: base64 Ed25519 key (required)
    - POLYMARKET_SYMBOL, TEST_MARKET_SLUG: market slug (required)
    - POLYMARKET_BASE_URL, RETAIL_API_URL: REST base URL
    - POLYMARKET_WS_URL, RETAIL_WS_URL: stream base URL
    - INSECURE_SKIP_VERIFY: "true" to skip TLS verification
    - LOG_LEVEL: overrides the YAML log level
    - CONFIG_PATH: YAML file location (default: config/client.yaml)

The YAML file holds non-secret tuning under ``rest``, ``stream`` and
``logging``. It is optional unless CONFIG_PATH names it explicitly.

Example:
    >>> from retail_client.config import load_config
    >>> config = load_config()
    >>> print(config.endpoints.markets_stream_url)
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from retail_client.config.models import (
    ClientConfig,
    CredentialsConfig,
    EndpointsConfig,
    LoggingConfig,
    LogLevel,
    RestSettings,
    StreamSettings,
)

DEFAULT_CONFIG_PATH = Path("config") / "client.yaml"


class ConfigLoadError(Exception):
    """
    Raised when configuration loading fails.

    Attributes:
        message: Error message describing what went wrong.
        file_path: Path to the file that caused the error, if applicable.
        cause: Original exception that caused the error, if any.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.cause = cause
        super().__init__(message)


class ConfigLoader:
    """
    Builds a validated ClientConfig from the environment and a YAML file.

    Example:
        >>> loader = ConfigLoader(environ={"POLYMARKET_API_KEY": "...", ...})
        >>> config = loader.load()
    """

    def __init__(
        self,
        config_path: Path | str | None = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize config loader.

        Args:
            config_path: YAML file path. Defaults to CONFIG_PATH or
                config/client.yaml.
            environ: Environment mapping (default: os.environ).
        """
        self.environ: Mapping[str, str] = os.environ if environ is None else environ
        explicit = config_path if config_path is not None else self.environ.get("CONFIG_PATH")
        self.config_path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH
        self._path_required = bool(explicit)

    def _env(self, *names: str) -> str:
        """Return the first non-empty environment variable among ``names``."""
        for name in names:
            value = self.environ.get(name, "")
            if value:
                return value
        return ""

    def _require_env(self, *names: str) -> str:
        value = self._env(*names)
        if not value:
            raise ConfigLoadError(
                f"{' or '.join(names)} environment variable is required"
            )
        return value

    def _load_yaml(self) -> Dict[str, Any]:
        """
        Load the YAML settings file.

        Returns:
            Dict containing parsed YAML content; empty if the default file
            is absent.

        Raises:
            ConfigLoadError: If an explicit file is missing, or the YAML is
                invalid or not a mapping.
        """
        file_path = self.config_path
        if not file_path.exists():
            if self._path_required:
                raise ConfigLoadError(
                    f"Configuration file not found: {file_path}",
                    file_path=file_path,
                )
            return {}

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(
                f"Invalid YAML syntax in {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigLoadError(
                f"Error reading {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Configuration file must contain a mapping: {file_path}",
                file_path=file_path,
            )
        return data

    def _load_credentials(self) -> CredentialsConfig:
        return CredentialsConfig(
            api_key=self._require_env("POLYMARKET_API_KEY", "TEST_API_KEY_ID"),
            private_key=self._require_env("POLYMARKET_PRIVATE_KEY", "TEST_API_SECRET_KEY"),
        )

    def _load_endpoints(self) -> EndpointsConfig:
        base_url = self._env("POLYMARKET_BASE_URL", "RETAIL_API_URL")
        ws_url = self._env("POLYMARKET_WS_URL", "RETAIL_WS_URL")
        kwargs: Dict[str, Any] = {
            "insecure_skip_verify": self._env("INSECURE_SKIP_VERIFY") == "true",
        }
        if base_url:
            kwargs["base_url"] = base_url
        if ws_url:
            kwargs["ws_base_url"] = ws_url
        return EndpointsConfig(**kwargs)

    def _load_logging(self, data: Dict[str, Any]) -> LoggingConfig:
        """
        Build logging settings. LOG_LEVEL overrides the file; unknown
        levels fall back to INFO.
        """
        logging_data = dict(data.get("logging") or {})
        level_str = self._env("LOG_LEVEL").upper()
        if level_str:
            try:
                logging_data["level"] = LogLevel(level_str)
            except ValueError:
                logging_data["level"] = LogLevel.INFO
        return LoggingConfig(**logging_data)

    def load(self) -> ClientConfig:
        """
        Load and validate the configuration.

        Returns:
            ClientConfig: Validated client configuration.

        Raises:
            ConfigLoadError: If any setting is missing or invalid.
        """
        data = self._load_yaml()
        try:
            return ClientConfig(
                credentials=self._load_credentials(),
                symbol=self._require_env("POLYMARKET_SYMBOL", "TEST_MARKET_SLUG"),
                endpoints=self._load_endpoints(),
                rest=RestSettings(**(data.get("rest") or {})),
                stream=StreamSettings(**(data.get("stream") or {})),
                logging=self._load_logging(data),
            )
        except ConfigLoadError:
            raise
        except ValidationError as e:
            raise ConfigLoadError(
                f"Configuration validation failed: {e}",
                file_path=self.config_path if data else None,
                cause=e,
            ) from e
        except TypeError as e:
            raise ConfigLoadError(
                f"Invalid configuration section: {e}",
                file_path=self.config_path,
                cause=e,
            ) from e


def load_config(
    config_path: Path | str | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """
    Convenience function to load client configuration.

    Args:
        config_path: YAML file path (default: CONFIG_PATH or config/client.yaml).
        environ: Environment mapping (default: os.environ).

    Returns:
        ClientConfig: Validated client configuration.

    Raises:
        ConfigLoadError: If configuration loading fails.
    """
    return ConfigLoader(config_path, environ).load()
