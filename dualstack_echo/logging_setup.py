"""Logging configuration for the dualstack_echo package."""

import logging
import sys
from typing import Optional

LOGGER_NAME = "dualstack_echo"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(message)s"

_configured = False


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


def configure_logging(level: Optional[str] = None, force: bool = False) -> logging.Logger:
    """Configure the package logger once at startup.

    Status lines (INFO and below) go to stdout, failures (WARNING and above)
    go to stderr.

    Args:
        level: Log level name. Defaults to INFO.
        force: Reconfigure even if already configured.
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    if _configured and not force:
        return logger

    numeric = getattr(logging, (level or DEFAULT_LOG_LEVEL).upper(), logging.INFO)
    logger.setLevel(numeric)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT)

    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.setFormatter(formatter)
    out_handler.addFilter(_MaxLevelFilter(logging.INFO))
    logger.addHandler(out_handler)

    err_handler = logging.StreamHandler(sys.stderr)
    err_handler.setLevel(logging.WARNING)
    err_handler.setFormatter(formatter)
    logger.addHandler(err_handler)

    logger.propagate = False
    _configured = True
    return logger
