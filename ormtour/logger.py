"""Logging setup.

setup_logger(sys.stdout, "debug") has to run before DatabaseManager.setup if
the connection and SQL logs should be visible.
"""

import logging
import sys
from typing import TextIO

ROOT_LOGGER_NAME = "ormtour"

# Names accepted in addition to the logging module's own level names
LEVELS = {
    "off": logging.CRITICAL + 10,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class Colors:
    RESET = "\033[0m"
    GREY = "\033[90m"
    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"


class HumanFormatter(logging.Formatter):
    """Formatter printing one line per record, colored when writing to a tty."""

    FORMATS = {
        logging.DEBUG: (Colors.GREY, "%(asctime)s [DEBUG] %(name)s: %(message)s"),
        logging.INFO: (Colors.BLUE, "%(asctime)s [INFO]  %(name)s: %(message)s"),
        logging.WARNING: (Colors.YELLOW, "%(asctime)s [WARN]  %(name)s: %(message)s"),
        logging.ERROR: (Colors.RED, "%(asctime)s [ERROR] %(name)s: %(message)s"),
        logging.CRITICAL: (Colors.RED, "%(asctime)s [FATAL] %(name)s: %(message)s"),
    }

    def __init__(self, use_color: bool = False):
        super().__init__(datefmt="%H:%M:%S")
        self.use_color = use_color

    def format(self, record):
        color, fmt = self.FORMATS.get(record.levelno, self.FORMATS[logging.INFO])
        if self.use_color:
            fmt = color + fmt + Colors.RESET
        return logging.Formatter(fmt, datefmt=self.datefmt).format(record)


def resolve_level(level: str | int) -> int:
    """Translate a level name (off, fatal, error, warn, info, debug) to a number"""
    if isinstance(level, int):
        return level
    name = level.lower()
    if name in LEVELS:
        return LEVELS[name]
    numeric = logging.getLevelName(level.upper())
    if isinstance(numeric, int):
        return numeric
    raise ValueError(f"Unknown log level: {level!r}")


def setup_logger(stream: TextIO | None = None, level: str | int = "debug") -> logging.Logger:
    """Send ormtour logs to a stream (stdout by default) at the given level.

    Calling it again replaces the handler instead of stacking a second one.
    """
    stream = stream if stream is not None else sys.stdout
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(HumanFormatter(use_color=getattr(stream, "isatty", lambda: False)()))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the ormtour namespace"""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
