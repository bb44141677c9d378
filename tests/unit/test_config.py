"""Unit tests for configuration loading and validation."""

import pytest
from pathlib import Path
from pydantic import ValidationError

from apiwire.common.config import (
    BACKEND_ENV_VAR,
    Config,
    HTTPConfig,
    LoggingConfig,
    TransportBackend,
)


class TestHTTPConfig:
    """Tests for HTTPConfig model."""

    def test_default_values(self):
        config = HTTPConfig()
        assert config.backend is TransportBackend.ASYNC
        assert config.timeout == 30
        assert config.follow_redirects is True
        assert config.verify_ssl is True
        assert config.default_headers == {}

    def test_backend_from_string(self):
        assert HTTPConfig(backend="sync").backend is TransportBackend.SYNC
        assert HTTPConfig(backend=" ASYNC ").backend is TransportBackend.ASYNC

    @pytest.mark.parametrize("backend", ["both", "", "blocking", ["async", "sync"], None])
    def test_exactly_one_backend(self, backend):
        """Selecting both, neither or an unknown backend is a config error."""
        with pytest.raises(ValidationError):
            HTTPConfig(backend=backend)

    def test_validation_constraints(self):
        with pytest.raises(ValidationError):
            HTTPConfig(timeout=0)

        with pytest.raises(ValidationError):
            HTTPConfig(max_redirects=50)

        with pytest.raises(ValidationError):
            HTTPConfig(user_agent="")

    def test_default_header_names_validated(self):
        HTTPConfig(default_headers={"X-Client": "demo"})

        with pytest.raises(ValidationError):
            HTTPConfig(default_headers={"": "x"})

        with pytest.raises(ValidationError):
            HTTPConfig(default_headers={"Bad Name": "x"})


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_default_values(self):
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.format == "json"
        assert config.console is True
        assert config.file is None
        assert config.wire_trace is False

    def test_level_validation(self):
        config = LoggingConfig(level="debug")  # Should be normalized to uppercase
        assert config.level == "DEBUG"

        with pytest.raises(ValidationError):
            LoggingConfig(level="INVALID")

    def test_format_validation(self):
        config = LoggingConfig(format="TEXT")
        assert config.format == "text"

        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_third_party_validation(self):
        config = LoggingConfig(third_party={"httpcore": "debug"})
        assert config.third_party == {"httpcore": "DEBUG"}

        with pytest.raises(ValidationError):
            LoggingConfig(third_party={"httpcore": "LOUD"})


class TestConfig:
    """Tests for main Config model."""

    def test_default_config(self):
        config = Config()
        assert config.http.timeout == 30
        assert config.logging.level == "INFO"

    def test_from_yaml_string(self):
        yaml_str = """
http:
  backend: sync
  timeout: 45
  default_headers:
    X-Client: demo
logging:
  level: DEBUG
  format: text
"""
        config = Config.from_yaml_string(yaml_str)
        assert config.http.backend is TransportBackend.SYNC
        assert config.http.timeout == 45
        assert config.http.default_headers == {"X-Client": "demo"}
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "text"

    def test_empty_yaml_uses_defaults(self):
        config = Config.from_yaml_string("")
        assert config.http.backend is TransportBackend.ASYNC

    def test_invalid_backend_in_yaml(self):
        with pytest.raises(ValidationError):
            Config.from_yaml_string("http:\n  backend: both\n")

    def test_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "test_config.yaml"
        config_file.write_text("""
http:
  timeout: 120
  max_connections: 200
logging:
  level: ERROR
  wire_trace: true
  file:
    path: logs/test.log
    max_bytes: 5242880
    backup_count: 3
""")
        config = Config.from_yaml(config_file)
        assert config.http.timeout == 120
        assert config.http.max_connections == 200
        assert config.logging.level == "ERROR"
        assert config.logging.file is not None
        assert config.logging.file.max_bytes == 5242880
        assert config.logging.file.path == Path("logs/test.log")
        assert config.logging.wire_trace is True

    def test_env_overrides_yaml_backend(self, tmp_path: Path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("http:\n  backend: async\n  timeout: 12\n")
        monkeypatch.setenv(BACKEND_ENV_VAR, "sync")

        config = Config.from_yaml(config_file)
        assert config.http.backend is TransportBackend.SYNC
        assert config.http.timeout == 12

    def test_from_env(self, monkeypatch):
        assert Config.from_env().http.backend is TransportBackend.ASYNC

        monkeypatch.setenv(BACKEND_ENV_VAR, "sync")
        assert Config.from_env().http.backend is TransportBackend.SYNC

        monkeypatch.setenv(BACKEND_ENV_VAR, "both")
        with pytest.raises(ValidationError):
            Config.from_env()

    def test_to_yaml_round_trip(self, tmp_path: Path):
        path = tmp_path / "out" / "config.yaml"
        original = Config(http=HTTPConfig(backend=TransportBackend.SYNC, timeout=15))

        original.to_yaml(path)

        assert path.exists()
        assert [p.name for p in path.parent.iterdir()] == ["config.yaml"]
        loaded = Config.from_yaml(path)
        assert loaded.http.backend is TransportBackend.SYNC
        assert loaded.http.timeout == 15

    def test_to_yaml_redacts_credentials(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        config = Config(
            http=HTTPConfig(
                default_headers={"Authorization": "Bearer secret-token", "X-Client": "demo"}
            )
        )

        config.to_yaml(path)

        text = path.read_text(encoding="utf-8")
        assert "secret-token" not in text
        loaded = Config.from_yaml(path)
        assert loaded.http.default_headers == {"Authorization": "<redacted>", "X-Client": "demo"}
        # The in-memory config is untouched
        assert config.http.default_headers["Authorization"] == "Bearer secret-token"
