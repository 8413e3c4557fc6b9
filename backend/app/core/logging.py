"""
Structured logging configuration using structlog.

The API process and the Celery worker share one setup; every record carries a
`process` field ("api" or "worker") so expiration logs can be told apart from
request logs. JSON in production, console output elsewhere.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator

import structlog
from app.core.config import get_settings

_configured = False

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "celery.app.trace", "aiosqlite")


def _process_tagger(process: str):
    def add_process(logger, method_name, event_dict):
        event_dict.setdefault("process", process)
        return event_dict
    return add_process


def setup_logging(process: str = "api") -> None:
    global _configured
    if _configured:
        return

    settings = get_settings()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _process_tagger(process),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.ENVIRONMENT == "production":
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "development")

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


@contextmanager
def booking_context(booking_id: int, **values) -> Iterator[None]:
    """Bind `booking_id` (and extras) to every record logged inside the block."""
    with structlog.contextvars.bound_contextvars(booking_id=booking_id, **values):
        yield


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
