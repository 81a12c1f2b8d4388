"""
Unit tests for configuration loading.
"""

from pathlib import Path

import pytest

from retail_client.config import (
    ConfigLoader,
    ConfigLoadError,
    EndpointsConfig,
    LogFormat,
    LogLevel,
    derive_ws_base,
    load_config,
)

REPO_CONFIG = Path(__file__).parent.parent / "config" / "client.yaml"

BASE_ENV = {
    "POLYMARKET_API_KEY": "0123456789abcdef",
    "POLYMARKET_PRIVATE_KEY": "AAECAwQFBgcICQoLDA0ODxAREhMUFRYXGBkaGxwdHh8=",
    "POLYMARKET_SYMBOL": "will-it-rain",
}


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run each test where no default config file exists."""
    monkeypatch.chdir(tmp_path)


class TestEnvironment:
    """Test environment variable handling"""

    def test_minimal_environment(self):
        config = load_config(environ=BASE_ENV)

        assert config.symbol == "will-it-rain"
        assert config.credentials.api_key_prefix == "01234567"
        assert config.endpoints.base_url == "https://api.polymarket.us"
        assert config.endpoints.private_stream_url == "wss://api.polymarket.us/v1/ws/private"
        assert config.endpoints.markets_stream_url == "wss://api.polymarket.us/v1/ws/markets"
        assert config.stream.queue_size == 100
        assert config.rest.timeout_seconds == 30

    def test_fallback_names(self):
        env = {
            "TEST_API_KEY_ID": "k",
            "TEST_API_SECRET_KEY": "s",
            "TEST_MARKET_SLUG": "m",
            "RETAIL_API_URL": "http://localhost:8080/",
        }
        config = load_config(environ=env)

        assert config.credentials.api_key == "k"
        assert config.symbol == "m"
        assert config.endpoints.base_url == "http://localhost:8080"
        assert config.endpoints.stream_base == "ws://localhost:8080"

    def test_primary_name_wins(self):
        env = dict(BASE_ENV, TEST_API_KEY_ID="other")
        assert load_config(environ=env).credentials.api_key == BASE_ENV["POLYMARKET_API_KEY"]

    def test_explicit_ws_url(self):
        env = dict(BASE_ENV, POLYMARKET_WS_URL="wss://stream.example/")
        config = load_config(environ=env)

        assert config.endpoints.private_stream_url == "wss://stream.example/v1/ws/private"

    def test_insecure_skip_verify(self):
        assert load_config(environ=dict(BASE_ENV, INSECURE_SKIP_VERIFY="true")).endpoints.insecure_skip_verify
        assert not load_config(environ=dict(BASE_ENV, INSECURE_SKIP_VERIFY="1")).endpoints.insecure_skip_verify

    @pytest.mark.parametrize("missing", ["POLYMARKET_API_KEY", "POLYMARKET_PRIVATE_KEY", "POLYMARKET_SYMBOL"])
    def test_required_variables(self, missing):
        env = {k: v for k, v in BASE_ENV.items() if k != missing}

        with pytest.raises(ConfigLoadError, match="environment variable is required"):
            load_config(environ=env)

    def test_private_key_not_in_repr(self):
        config = load_config(environ=BASE_ENV)
        assert BASE_ENV["POLYMARKET_PRIVATE_KEY"] not in repr(config)

    def test_log_level_override(self):
        assert load_config(environ=dict(BASE_ENV, LOG_LEVEL="debug")).logging.level == LogLevel.DEBUG
        assert load_config(environ=dict(BASE_ENV, LOG_LEVEL="loud")).logging.level == LogLevel.INFO


class TestYamlFile:
    """Test YAML settings file"""

    def test_repository_defaults(self):
        config = load_config(REPO_CONFIG, environ=BASE_ENV)

        assert config.stream.queue_size == 100
        assert config.stream.handshake_timeout_seconds == 10
        assert config.logging.format == LogFormat.JSON

    def test_overrides(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text("stream:\n  queue_size: 5\nlogging:\n  format: text\n")

        config = ConfigLoader(path, environ=BASE_ENV).load()

        assert config.stream.queue_size == 5
        assert config.logging.format == LogFormat.TEXT

    def test_config_path_from_environment(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("rest:\n  timeout_seconds: 3\n")

        config = load_config(environ=dict(BASE_ENV, CONFIG_PATH=str(path)))

        assert config.rest.timeout_seconds == 3

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="not found") as exc_info:
            load_config(tmp_path / "nope.yaml", environ=BASE_ENV)
        assert exc_info.value.file_path == tmp_path / "nope.yaml"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("stream: [unclosed\n")

        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            load_config(path, environ=BASE_ENV)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(path, environ=BASE_ENV)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "zero.yaml"
        path.write_text("stream:\n  queue_size: 0\n")

        with pytest.raises(ConfigLoadError, match="validation failed") as exc_info:
            load_config(path, environ=BASE_ENV)
        assert exc_info.value.cause is not None

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("stream:\n  queue_sise: 10\n")

        with pytest.raises(ConfigLoadError):
            load_config(path, environ=BASE_ENV)


class TestEndpoints:
    """Test endpoint derivation"""

    @pytest.mark.parametrize(
        "base_url,expected",
        [
            ("https://api.polymarket.us", "wss://api.polymarket.us"),
            ("http://localhost:8080", "ws://localhost:8080"),
            ("wss://already.ws", "wss://already.ws"),
        ],
    )
    def test_derive_ws_base(self, base_url, expected):
        assert derive_ws_base(base_url) == expected

    def test_empty_url_rejected(self):
        with pytest.raises(ValueError):
            EndpointsConfig(base_url="  /")
