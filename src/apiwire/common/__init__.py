"""Common utilities and shared components for apiwire."""

from .config import (
    Config,
    HTTPConfig,
    LoggingConfig,
    FileLoggingConfig,
    TransportBackend,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "Config",
    "HTTPConfig",
    "LoggingConfig",
    "FileLoggingConfig",
    "TransportBackend",
    "setup_logging",
    "get_logger",
]
