"""Logging setup for Quire.

Modules log through ``logging.getLogger(__name__)``; the CLI installs a
handler that prints records through click as ``[+] LEVEL: message`` lines,
coloured by level.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

import click

LEVEL_COLOURS = {
    logging.DEBUG: "bright_black",
    logging.INFO: None,
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}

logger = logging.getLogger("quire")


class ClickHandler(logging.Handler):
    """Logging handler that echoes records through click."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            colour = LEVEL_COLOURS.get(record.levelno)
            if colour:
                message = click.style(message, fg=colour)
            click.echo(message, err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool = False) -> None:
    """Install the click handler on the ``quire`` logger once.

    Args:
        verbose: Log DEBUG records as well.
    """
    level = logging.DEBUG if verbose else logging.INFO
    handler = next((h for h in logger.handlers if isinstance(h, ClickHandler)), None)
    if handler is None:
        handler = ClickHandler()
        handler.setFormatter(logging.Formatter("[+] %(levelname)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)


@contextmanager
def log_time_elapsed(message: str) -> Iterator[None]:
    """Log how long the wrapped block took, e.g. ``Creating RSS 0.012 secs``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.info("%s %.3f secs", message, time.perf_counter() - start)
