"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Events are written to stderr so CLI stdout stays machine readable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL

_configured = False


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog processors and minimum level.

    Args:
        level: Standard logging level name, e.g. ``INFO``.
    """
    global _configured
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)


def _stderr_logger_factory(*_args: object) -> structlog.PrintLogger:
    # Resolve sys.stderr per logger so redirected streams are honored.
    return structlog.PrintLogger(file=sys.stderr)
