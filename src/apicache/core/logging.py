"""Structured logging configuration using Python's standard logging.

This module configures logging with:
- JSON output for production (machine-readable)
- Console output for development (human-readable)
- Structlog integration for structured log entries

Usage:
    from apicache.core.logging import configure_logging, get_logger

    # Configure at startup
    configure_logging(settings)

    # Get a logger in any module
    logger = get_logger(__name__)
    logger.info("cache_hit", normalized_uri="http://api.example.com/items")
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from apicache.config import CacheSettings


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add library context to log entries."""
    event_dict["component"] = "apicache"
    return event_dict


def configure_logging(settings: CacheSettings | None = None) -> None:
    """Configure structured logging for the process.

    Args:
        settings: Cache settings. If None, uses default settings.
    """
    if settings is None:
        from apicache.config import get_settings

        settings = get_settings()

    log_level = getattr(logging, settings.log_level.value, logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.use_json_logs:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ]
        formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=shared_processors,
        )
    else:
        processors = [
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ]
        formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=True),
            foreign_pre_chain=shared_processors,
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name, typically __name__ of the calling module.

    Returns:
        A bound structlog logger that outputs structured logs.
    """
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """Context manager to bind values to all logs within the context.

    Example:
        with log_context(key_name="weather", uri_hash="9e10..."):
            logger.info("backup_served")  # Includes key_name and uri_hash
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
