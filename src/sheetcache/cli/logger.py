"""Logging setup for the sheetcache CLI."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import colorlog

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FORMAT = "[%(asctime)s] <%(name)s> %(levelname)s: %(message)s"

COLOR_LOG_FORMAT = "%(log_color)s[%(asctime)s] <%(name)s> %(levelname)s:%(reset)s %(message)s"

LOG_COLORS = {
    "DEBUG": "bold_cyan",
    "INFO": "bold_green",
    "WARNING": "bold_yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red,bg_white",
}

# HTTP and GCS client libraries log each request at DEBUG
QUIET_LOGGERS = ("google", "urllib3")


def _use_color(stream: TextIO) -> bool:
    return os.getenv("NO_COLOR") is None and stream.isatty()


def _formatter(stream: TextIO) -> logging.Formatter:
    if _use_color(stream):
        return colorlog.ColoredFormatter(
            fmt=COLOR_LOG_FORMAT, log_colors=LOG_COLORS, datefmt=DATE_FORMAT
        )
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def configure_logging(level: int | str = logging.WARNING, *, verbose: bool = False) -> None:
    """
    Send log records at or above level to stderr, replacing prior setup.

    With verbose the level is DEBUG regardless of level. The QUIET_LOGGERS
    stay at WARNING in both cases.
    """
    stream = sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setFormatter(_formatter(stream))
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        handlers=[handler],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
