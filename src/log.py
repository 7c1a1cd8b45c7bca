"""Logging for packweight: one ``packweight`` logger tree, configured by the CLI."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

ROOT_LOGGER = "packweight"

_CONSOLE_FORMAT = "[packweight] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(module: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{module}")


def _handler(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send packweight warnings (or, with ``verbose``, debug output) to stderr.

    Handlers from an earlier call are closed first, so ``main`` can run
    repeatedly in one process. ``log_file`` adds a timestamped copy.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_handler(logging.StreamHandler(), _CONSOLE_FORMAT))
    if log_file is not None:
        logger.addHandler(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), _FILE_FORMAT)
        )
    return logger


__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger"]
