"""Structured logging setup for refreshc.

This module provides:
- Structured logging setup via structlog
- A module logger accessor for the CLI entry points
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

LOGGER_NAME = "refreshc"

_logger: BoundLogger | None = None


def get_logger() -> BoundLogger:
    """Get the package logger, creating it if necessary.

    Returns:
        Configured structlog BoundLogger instance.

    Example:
        >>> logger = get_logger()
        >>> logger.info("shader_compiled", source="blit.frag")
    """
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(LOGGER_NAME)
    assert _logger is not None  # Type narrowing for mypy
    return _logger


def configure_logging(*, log_level: str = "WARNING") -> None:
    """Configure structured logging for refreshc.

    Log records go to stderr so they never mix with compiler progress
    output on stdout.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Example:
        >>> configure_logging(log_level="DEBUG")
    """
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=False),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
        force=True,
    )
