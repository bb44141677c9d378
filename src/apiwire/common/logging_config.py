"""
structlog setup for applications using apiwire.

Transport events (``http_request``, ``http_response``, ``http_error``) are
structured structlog events. httpx and httpcore log through stdlib logging;
their output is quiet unless ``LoggingConfig.wire_trace`` is on, in which
case each connection and request they make shows up at DEBUG next to the
transport events.
"""

import logging
import logging.handlers
from typing import Any, Dict, List, Optional

import structlog
from structlog.types import EventDict, Processor

from .config import LoggingConfig

# Loggers owned by the HTTP stack underneath both backends
WIRE_LOGGERS = ("httpx", "httpcore")


def wire_levels(config: LoggingConfig) -> Dict[str, str]:
    """
    Resolve stdlib levels for third-party loggers.

    httpx and httpcore follow ``wire_trace``; explicit ``third_party``
    entries win over that.
    """
    wire_level = "DEBUG" if config.wire_trace else "WARNING"
    levels = {name: wire_level for name in WIRE_LOGGERS}
    levels.update(config.third_party)
    return levels


def add_backend(backend: str) -> Processor:
    """Return a processor that tags every event with the active backend."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        # Transport loggers bind their own backend already
        event_dict.setdefault("backend", backend)
        return event_dict

    return processor


def _build_handlers(config: LoggingConfig, log_level: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if config.console:
        handlers.append(logging.StreamHandler())

    if config.file is not None:
        config.file.path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=config.file.path,
                maxBytes=config.file.max_bytes,
                backupCount=config.file.backup_count,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(log_level)
    return handlers


def setup_logging(config: LoggingConfig, backend: Optional[str] = None) -> None:
    """
    Configure stdlib logging and structlog from ``config``.

    Safe to call again; handlers from the previous call are replaced.

    Args:
        config: LoggingConfig object with logging settings
        backend: Active transport backend, added to every event when given

    Example:
        >>> from apiwire.common.config import LoggingConfig
        >>> setup_logging(LoggingConfig(level="DEBUG", wire_trace=True), backend="sync")
    """
    log_level = getattr(logging, config.level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    for handler in _build_handlers(config, log_level):
        root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for library, level in wire_levels(config).items():
        logging.getLogger(library).setLevel(getattr(logging, level))

    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if backend is not None:
        processors.append(add_backend(backend))
    processors += [
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    # Renderer goes last; it turns the event dict into the stdlib message
    if config.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # configure() may run more than once; cached loggers would keep the old chain
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)
