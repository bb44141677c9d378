"""apiwire package initialization."""

from pathlib import Path
from typing import Optional

import structlog

from .common.config import Config, HTTPConfig, LoggingConfig, TransportBackend
from .common.logging_config import setup_logging
from .http import (
    AsyncBaseClient,
    BaseClient,
    AsyncTransport,
    SyncTransport,
    Transport,
    build_transport,
)
from .http.headers import AUTHORIZATION, bearer_auth, basic_auth, merge_headers
from .http.exceptions import (
    ClientError,
    InvalidAuthError,
    HTTPStatusError,
    RateLimitedError,
    NetworkError,
    SerializationError,
    InvalidURLError,
    BackendConfigurationError,
)

__version__ = "0.1.0"
__all__ = [
    "Config",
    "HTTPConfig",
    "LoggingConfig",
    "TransportBackend",
    "setup_logging",
    "AsyncBaseClient",
    "BaseClient",
    "AsyncTransport",
    "SyncTransport",
    "Transport",
    "build_transport",
    "AUTHORIZATION",
    "bearer_auth",
    "basic_auth",
    "merge_headers",
    "ClientError",
    "InvalidAuthError",
    "HTTPStatusError",
    "RateLimitedError",
    "NetworkError",
    "SerializationError",
    "InvalidURLError",
    "BackendConfigurationError",
    "configure",
    "get_config",
    "get_transport",
]

# Module-level logger (not configured yet)
logger = structlog.get_logger(__name__)

# Resolved once at startup
_config: Optional[Config] = None
_transport: Optional[Transport] = None


def configure(
    config_path: Optional[Path] = None, config: Optional[Config] = None
) -> Transport:
    """
    Configure apiwire and build the process-wide transport.

    Call once at application startup. The backend chosen here stays active
    for the life of the process; calling again with the same backend
    replaces the configuration, calling with a different backend raises.

    Args:
        config_path: Path to YAML configuration file
        config: Pre-loaded Config object (takes precedence over config_path)

    Returns:
        The configured transport

    Raises:
        BackendConfigurationError: If a different backend was already configured

    Example:
        >>> import apiwire
        >>> transport = apiwire.configure(config_path=Path("config.yaml"))
    """
    global _config, _transport

    if config is not None:
        new_config = config
    elif config_path is not None:
        new_config = Config.from_yaml(config_path)
    else:
        new_config = Config.from_env()

    if _transport is not None and _config is not None:
        if new_config.http.backend is not _config.http.backend:
            raise BackendConfigurationError(
                f"Transport backend already configured as "
                f"{_config.http.backend.value!r}; cannot switch to "
                f"{new_config.http.backend.value!r}"
            )

    setup_logging(new_config.logging, backend=new_config.http.backend.value)

    _config = new_config
    _transport = build_transport(_config.http)

    logger.info("apiwire_configured", version=__version__)
    return _transport


def get_config() -> Config:
    """
    Get current configuration, loading defaults if needed.

    Returns:
        Current Config object
    """
    global _config
    if _config is None:
        _config = Config.from_env()
        setup_logging(_config.logging, backend=_config.http.backend.value)
    return _config


def get_transport() -> Transport:
    """
    Get the process-wide transport, configuring with defaults if needed.

    Returns:
        AsyncTransport or SyncTransport, per ``http.backend``
    """
    global _transport
    if _transport is None:
        _transport = build_transport(get_config().http)
        logger.info("transport_auto_initialized")
    return _transport
