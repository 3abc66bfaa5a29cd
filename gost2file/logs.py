"""
structlog setup.

The package logs through module-level ``structlog.get_logger()`` and never
configures structlog itself. Unconfigured, structlog prints every level,
debug included, to stdout; library callers should call
``configure_logging()`` or their own ``structlog.configure`` first. The
codec logs a fixed number of events per operation, never one per chunk.
"""

from __future__ import annotations

import sys

import structlog


def configure_logging(level: str = "warning") -> None:
    """Console logging to stderr, filtered at ``level``."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            structlog.stdlib.NAME_TO_LEVEL.get(level.lower(), 30)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
