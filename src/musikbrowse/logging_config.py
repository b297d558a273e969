"""Logging setup for musikbrowse."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_CONSOLE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(name)s %(levelname)s %(funcName)s:%(lineno)d: %(message)s"


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(level: str = "WARNING", log_file: Path | str | None = None) -> None:
    """Configure the ``musikbrowse`` logger.

    Console output goes to stderr so it does not interleave with the
    interactive shell on stdout.  The optional file handler always logs
    at DEBUG.
    """
    logger = logging.getLogger("musikbrowse")
    logger.setLevel(logging.DEBUG if log_file else level.upper())
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level.upper())
    console.setFormatter(ColoredFormatter(_CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
