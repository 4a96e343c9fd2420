"""Structured logging configuration."""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Configure stdlib logging and structlog."""
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        logging.warning(f"Invalid log level '{log_level}', defaulting to INFO")
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if json_output:
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
