"""Logging setup for the command line tool."""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s pfeil: %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

# Loggers that write to stderr: pfeil's own and the OTel SDK/exporters
_LOGGER_LEVELS = {
    "pfeil": None,
    "opentelemetry": logging.WARNING,
}


def configure_logging(verbose: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Send log records to stderr, prefixed with the program name.

    Debug records are only shown with ``verbose``. Calling this again replaces
    the handlers installed by the previous call.
    """
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    for name, level in _LOGGER_LEVELS.items():
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            if getattr(handler, "_pfeil_handler", False):
                logger.removeHandler(handler)
        handler = logging.StreamHandler(stream or sys.stderr)
        handler._pfeil_handler = True
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        if level is None:
            level = logging.DEBUG if verbose else logging.INFO
        logger.setLevel(level)
    return logging.getLogger("pfeil")
