"""Configuration models using Pydantic for validation."""

import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationInfo, field_validator
import structlog

logger = structlog.get_logger(__name__)

BACKEND_ENV_VAR = "APIWIRE_HTTP_BACKEND"

# Header values never written back to disk by Config.to_yaml
SECRET_HEADERS = frozenset({"authorization", "proxy-authorization"})
REDACTED = "<redacted>"


class TransportBackend(str, Enum):
    """Network backend used by every transport operation.

    Exactly one backend is active per application; it is resolved once
    when the configuration is loaded.
    """

    ASYNC = "async"  # httpx.AsyncClient, cooperative asyncio scheduling
    SYNC = "sync"  # httpx.Client, blocks the calling thread


class HTTPConfig(BaseModel):
    """Configuration for the HTTP transport."""

    backend: TransportBackend = Field(
        default=TransportBackend.ASYNC,
        description="Transport backend: async or sync",
    )
    timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Request timeout in seconds",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Whether to follow redirects",
    )
    max_redirects: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Maximum number of redirects to follow",
    )
    verify_ssl: bool = Field(
        default=True,
        description="Whether to verify SSL certificates",
    )
    max_connections: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum number of connections in the pool",
    )
    max_keepalive_connections: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Maximum number of keep-alive connections",
    )
    user_agent: str = Field(
        default="apiwire/0.1.0",
        min_length=1,
        description="Value of the user-agent header sent with every request",
    )
    default_headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers sent with every request unless overridden per call",
    )

    @field_validator("backend", mode="before")
    @classmethod
    def validate_backend(cls, v: Any) -> Any:
        """Require exactly one backend name."""
        if isinstance(v, TransportBackend):
            return v
        if not isinstance(v, str):
            raise ValueError(
                f"Invalid backend: {v!r}. Exactly one of "
                f"{[b.value for b in TransportBackend]} must be selected"
            )
        return v.strip().lower()

    @field_validator("default_headers")
    @classmethod
    def validate_default_headers(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Validate header names."""
        for name in v:
            if not name or not name.strip():
                raise ValueError("Header names must be non-empty")
            if any(c in name for c in " \t\r\n:"):
                raise ValueError(f"Invalid header name: {name!r}")
        return v


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class FileLoggingConfig(BaseModel):
    """Rotating log file, written alongside the console stream."""

    path: Path = Field(
        default=Path("logs/apiwire.log"),
        description="Log file location; parent directories are created",
    )
    max_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Size at which the file is rotated",
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        le=50,
        description="Rotated files kept",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: LogLevel = Field(
        default="INFO",
        description="Level for apiwire and the application",
    )
    format: Literal["json", "text"] = Field(
        default="json",
        description="json for log shippers, text for a terminal",
    )
    console: bool = Field(
        default=True,
        description="Write log lines to stderr",
    )
    file: Optional[FileLoggingConfig] = Field(
        default=None,
        description="Also write to a rotating file when set",
    )
    wire_trace: bool = Field(
        default=False,
        description="Let httpx and httpcore log each connection and request at DEBUG",
    )
    third_party: Dict[str, LogLevel] = Field(
        default_factory=dict,
        description="Per-library levels, applied after wire_trace",
    )

    @field_validator("level", "format", mode="before")
    @classmethod
    def normalize_case(cls, v: Any, info: ValidationInfo) -> Any:
        """Accept level and format names in any case."""
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == "level" else v.lower()

    @field_validator("third_party", mode="before")
    @classmethod
    def normalize_third_party(cls, v: Any) -> Any:
        """Accept third-party level names in any case."""
        if isinstance(v, dict):
            return {
                name: level.upper() if isinstance(level, str) else level
                for name, level in v.items()
            }
        return v


class Config(BaseModel):
    """Main configuration class for apiwire."""

    http: HTTPConfig = Field(
        default_factory=HTTPConfig,
        description="HTTP transport configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        The ``APIWIRE_HTTP_BACKEND`` environment variable, when set, takes
        precedence over ``http.backend`` in the file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config object with validated configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML is invalid
            pydantic.ValidationError: If configuration is invalid

        Example:
            >>> from pathlib import Path
            >>> config = Config.from_yaml(Path("config.yaml"))
        """
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(_apply_env_overrides(data or {}))

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "Config":
        """
        Load configuration from YAML string.

        Args:
            yaml_string: YAML configuration as string

        Returns:
            Config object with validated configuration

        Example:
            >>> yaml_str = "http:\\n  backend: sync"
            >>> config = Config.from_yaml_string(yaml_str)
        """
        data = yaml.safe_load(yaml_string)
        return cls.model_validate(data or {})

    @classmethod
    def from_env(cls) -> "Config":
        """
        Build a default configuration with environment overrides applied.

        Returns:
            Config object with validated configuration
        """
        return cls.model_validate(_apply_env_overrides({}))

    def to_yaml(self, path: Path, exclude_defaults: bool = True) -> None:
        """
        Write the configuration to ``path`` as YAML.

        The file is replaced atomically, so a reader never sees a partial
        document. Credentials in ``http.default_headers`` are written as
        ``<redacted>``; a saved file must be edited before those headers
        are usable again.

        Args:
            path: Destination file; parent directories are created
            exclude_defaults: Omit fields left at their default value

        Raises:
            OSError: If the file cannot be written
            yaml.YAMLError: If serialization fails
        """
        data = self.model_dump(
            mode="json",
            exclude_none=True,
            exclude_defaults=exclude_defaults,
        )
        headers = data.get("http", {}).get("default_headers")
        if headers:
            data["http"]["default_headers"] = {
                name: REDACTED if name.lower() in SECRET_HEADERS else value
                for name, value in headers.items()
            }

        path.parent.mkdir(parents=True, exist_ok=True)
        # Same directory as path: os.replace cannot cross filesystems
        fd, temp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_name, path)
        except (OSError, yaml.YAMLError) as e:
            Path(temp_name).unlink(missing_ok=True)
            logger.error("config_save_failed", path=str(path), error=str(e))
            raise

        logger.info("config_saved", path=str(path))


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of raw config data with environment overrides applied."""
    backend = os.environ.get(BACKEND_ENV_VAR)
    if backend is None:
        return data

    http = dict(data.get("http") or {})
    http["backend"] = backend
    logger.debug("config_env_override", variable=BACKEND_ENV_VAR, value=backend)
    return {**data, "http": http}
