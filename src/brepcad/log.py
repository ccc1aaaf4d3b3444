"""Structured logging setup for brepCAD.

The kernel only emits debug-level events; hosts decide where they go by
calling :func:`configure_logging` once at startup.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, List, Optional

import structlog

from brepcad.config import get_config


def configure_logging(
    level: Optional[str] = None,
    enable_colors: bool = True,
    enable_json: bool = False,
    extra_processors: List[Any] | None = None,
) -> None:
    """Configure structlog for the kernel.

    Args:
        level: Log level name; defaults to ``BREPCAD_LOG_LEVEL``.
        enable_colors: Colored console output when attached to a tty.
        enable_json: Render events as JSON lines instead.
        extra_processors: Additional structlog processors.
    """
    if level is None:
        level = get_config().log_level
    numeric = LOG_LEVELS.get(level.upper())
    if numeric is None:
        raise ValueError(f'unknown log level {level!r}')

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]
    if extra_processors:
        processors.extend(extra_processors)

    if enable_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=enable_colors and sys.stderr.isatty())
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)


LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}
