"""
Logging Configuration

Structured logging using structlog.

pgrepo only *emits* log events. Importing it configures nothing, so the host
application's logging setup stays in charge. Applications without their own
setup can opt in with ``setup_logging()``.

Log Output (after setup_logging()):
===================================
Development:
    2024-01-15 10:30:00 [info     ] Database connected             host=localhost database=app

Production (JSON):
    {"timestamp": "2024-01-15T10:30:00", "level": "info", "event": "Database connected", "host": "localhost"}

Usage:
======
    from pgrepo.core.logging import get_logger, setup_logging

    setup_logging()                     # application entry point, optional
    logger = get_logger(__name__)
    logger.info("Database connected", host=host, database=database)

Parameter values bound to statements are never logged, only SQL text.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.typing import Processor

from pgrepo.config.settings import settings


def setup_logging(level: Optional[str] = None, json: Optional[bool] = None) -> None:
    """
    Configure stdlib logging and structlog for an application.

    Never called by pgrepo itself.

    Args:
        level: Log level name, defaults to settings.LOG_LEVEL
        json: JSON output when True, colored console output when False;
            defaults to console in development, JSON elsewhere
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    use_json = (not settings.is_development) if json is None else json

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name),
    )

    # Shared processors for all environments
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        processors: list[Processor] = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Uses whatever structlog configuration is active when it first logs.

    Args:
        name: Logger name, usually ``__name__``
    """
    return structlog.get_logger(name)
