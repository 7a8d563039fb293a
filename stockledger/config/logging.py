"""
Logging setup for the ledger.

Every module logs through structlog. Events go to stdout (and to
``LOG_FILE`` when set) either as coloured console lines or as JSON lines,
chosen by ``LOG_FORMAT`` or, when unset, by ``ENVIRONMENT``.
"""

import logging
import sys
from enum import Enum
from typing import Any

import structlog
from structlog.types import Processor

from stockledger import __version__
from stockledger.config.settings import Settings, get_settings

# Loggers that flood the output at the root level unless told otherwise.
# LOG_LEVELS entries take precedence.
DEFAULT_LOGGER_LEVELS: dict[str, str] = {
    "aiosqlite": "WARNING",  # one record per statement
    "uvicorn.access": "WARNING",  # LoggingMiddleware already logs requests
}


def enum_values(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Log enums such as ``MovementType`` by value, not by repr."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _service_stamp(name: str) -> Processor:
    def stamp(
        logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.setdefault("service", name)
        event_dict.setdefault("version", __version__)
        return event_dict

    return stamp


def _handlers(settings: Settings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log.file is not None:
        settings.log.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log.file, encoding="utf-8"))
    return handlers


def configure_logging(settings: Settings | None = None) -> None:
    """Route structlog through the stdlib root logger with the configured levels."""
    settings = settings or get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        enum_values,
    ]
    if settings.log_format == "json":
        processors += [
            _service_stamp(settings.app_name),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        handlers=_handlers(settings),
        level=settings.log.level,
        force=True,
    )
    for name, level in {**DEFAULT_LOGGER_LEVELS, **settings.log.levels}.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger named after the calling module."""
    return structlog.get_logger(name)
