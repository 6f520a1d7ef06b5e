"""Structured logging configuration.

Modules obtain their loggers with :func:`get_logger` and never configure
structlog themselves, so a host application's configuration is left alone.
Applications without their own setup can call :func:`configure_logging` to get
JSON lines with an ISO timestamp and the log level; debug events (construction,
sampling) are dropped unless the level is lowered.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog processors and the minimum level.

    Args:
        level: Minimum stdlib logging level that is emitted.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    The logger is a lazy proxy: it picks up whatever structlog configuration is
    active when an event is emitted.

    Args:
        name: Logger name, usually ``__name__``.

    Returns:
        A structlog bound logger with structured output.
    """
    return structlog.get_logger(name)
