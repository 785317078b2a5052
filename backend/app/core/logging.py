"""
Structured logging configuration.
Designed for easy debugging without exposing sensitive data.
"""
import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Generator

import structlog
from structlog.types import Processor

from app.core.config import settings


def setup_logging() -> None:
    """Configure structured logging for the application."""

    # Common processors
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.LOG_FORMAT == "json":
        # JSON format for production
        renderer = structlog.processors.JSONRenderer()
    else:
        # Console format for development
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google.auth").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def track_store_call(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    sheet: str = "",
    **extra: Any
) -> Generator[None, None, None]:
    """
    Log timing and failures of a single backend call.

    Usage:
        with track_store_call(logger, "values_get", sheet="Clients"):
            response = spreadsheet.values_get(...)

    Cell values are never logged, only the operation, sheet and sizes.
    """
    start = time.time()
    try:
        yield
    except Exception as e:
        logger.error(
            "Store call failed",
            operation=operation,
            sheet=sheet,
            error_type=type(e).__name__,
            error_message=str(e),
            duration_ms=round((time.time() - start) * 1000, 1),
            **extra
        )
        raise
    else:
        logger.debug(
            "Store call",
            operation=operation,
            sheet=sheet,
            duration_ms=round((time.time() - start) * 1000, 1),
            **extra
        )
