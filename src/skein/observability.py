"""Structured logging for skein.

Engine modules log through stdlib ``logging`` via structlog wrappers, so a
host application's logging setup decides where records go. Only the CLI
installs a handler, with the level controlled by its ``-v`` flag.
"""

from __future__ import annotations

import logging

import structlog
from rich.console import Console
from rich.logging import RichHandler

_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.KeyValueRenderer(key_order=["event"], drop_missing=True),
]


def configure_logging(verbosity: int = 0) -> None:
    """Send log records to stderr through Rich.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG
    """
    levels = {0: logging.WARNING, 1: logging.INFO}
    level = levels.get(verbosity, logging.DEBUG)

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        markup=False,
        level=level,
    )
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger backed by ``logging.getLogger(name)``."""
    logger: structlog.stdlib.BoundLogger = structlog.wrap_logger(
        logging.getLogger(name),
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )
    return logger
