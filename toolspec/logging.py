"""Logging setup shared by the CLI and the HTTP service."""

from __future__ import annotations

import logging
import os
from pathlib import Path

_LOGGER_NAME = "toolspec"
_LOG_FILE_ENV = "TOOLSPEC_LOG_FILE"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger below the ``toolspec`` hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def _resolve_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Install console (and optional file) handlers on the toolspec logger.

    ``verbose`` wins over ``quiet``. When ``log_file`` is omitted the
    ``TOOLSPEC_LOG_FILE`` environment variable is consulted.
    """
    level = _resolve_level(verbose, quiet)
    if log_file is None and os.getenv(_LOG_FILE_ENV):
        log_file = Path(os.environ[_LOG_FILE_ENV]).expanduser()

    logger = logging.getLogger(_LOGGER_NAME)
    # The file sink always records debug detail, independent of console verbosity.
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter("[toolspec] %(levelname)s %(message)s"))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger"]
