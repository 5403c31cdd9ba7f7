"""Logging setup for frelon.

Diagnostics (calibration results, skipped persistence, progress) go
through the ``frelon`` logger hierarchy.  Report rows are *not* log
records: they are written through the suite's printer so that
``quiet`` can suppress them independently of the log level.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

_LOGGER_NAME = "frelon"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"


class _EchoHandler(logging.Handler):
    """Console handler that writes through ``click.echo`` to stderr.

    The stream is looked up on every record, so output follows
    whatever stderr is current (including click's test runner).
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the root frelon logger.

    Args:
        verbose: Console level DEBUG.
        quiet: Console level WARNING.  Ignored if *verbose* is True.
        log_file: If provided, also log everything at DEBUG to this
            path (parent directories are created).
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Reconfiguring replaces handlers rather than stacking them.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = _EchoHandler()
    if verbose:
        console.setLevel(logging.DEBUG)
    elif quiet:
        console.setLevel(logging.WARNING)
    else:
        console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the frelon namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
