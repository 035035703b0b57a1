"""
Console mirror for queued log lines.

The drain worker mirrors every line it writes to the ``imagescraper.console``
stdlib logger at the record's severity, so terminals show the same ordered
stream as the shared log file.
"""

import logging
import sys
from typing import Optional, TextIO

CONSOLE_LOGGER_NAME = "imagescraper.console"


class DevelopmentFormatter(logging.Formatter):
    """Color-coded console formatter for mirrored lines."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__("%(message)s")
        self.use_colors = use_colors

    def format(self, record):
        message = super().format(record)
        color = self.COLORS.get(record.levelname, '') if self.use_colors else ''
        if not color:
            return message
        return f"{color}{message}{self.RESET}"


def configure_console(stream: Optional[TextIO] = None, use_colors: Optional[bool] = None) -> logging.Logger:
    """
    Attach a stream handler to the console mirror logger.

    Replaces any handler installed by a previous call. The mirror logger does
    not propagate, so mirrored lines are never duplicated by root handlers.

    Args:
        stream: Target stream, stdout by default
        use_colors: Force colors on or off; defaults to whether the stream is a TTY

    Returns:
        The configured console logger
    """
    stream = stream or sys.stdout
    if use_colors is None:
        use_colors = hasattr(stream, "isatty") and stream.isatty()

    console_logger = logging.getLogger(CONSOLE_LOGGER_NAME)
    for handler in console_logger.handlers[:]:
        console_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(DevelopmentFormatter(use_colors=use_colors))
    console_logger.addHandler(handler)
    console_logger.setLevel(logging.DEBUG)
    console_logger.propagate = False
    return console_logger


def get_console_logger() -> logging.Logger:
    """Get the console mirror logger, configuring it on first use."""
    console_logger = logging.getLogger(CONSOLE_LOGGER_NAME)
    if not console_logger.handlers:
        configure_console()
    return console_logger
