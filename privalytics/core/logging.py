"""
Structured JSON logging via structlog.

Every log entry includes: timestamp, level, event, logger name,
and any bound context (request_id, site_id).

Usage:
    logger = get_logger(__name__)
    logger.info("site.created", site_id=site.id)
    logger.warning("auth.api_key_invalid")

Raw API keys and client IPs must never be passed as log fields.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, WrappedLogger

from privalytics.core.config import settings

_LEVEL_TO_SEVERITY = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}


def add_severity_field(
    logger: WrappedLogger, method: str, event_dict: EventDict
) -> EventDict:
    """Map structlog levels to GCP/Datadog severity strings."""
    event_dict["severity"] = _LEVEL_TO_SEVERITY.get(method, "INFO")
    return event_dict


def setup_logging(
    level: str | None = None,
    fmt: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for JSON (production) or console (dev) output."""
    level = (level or settings.LOG_LEVEL).upper()
    fmt = fmt or settings.LOG_FORMAT

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_severity_field,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.ExceptionRenderer(),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn access lines duplicate the audit middleware
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def bind_request_context(**values: Any) -> None:
    """Attach fields to every log line emitted while handling this request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structlog logger for a module.

    PrintLogger has no name of its own, so the module name travels as the
    ``logger_name`` initial value. Binding stays lazy until first use, after
    setup_logging() has run.
    """
    return structlog.get_logger(logger_name=name)
