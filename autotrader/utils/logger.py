"""
Logging configuration module.

Centralized logging for the crawler: every module obtains its logger through
get_logger(__name__), which attaches a console handler and a size-rotated
file handler in LOGS_DIR on first use.

Attributes:
    LOG_LEVEL: Logging level imported from settings.
    LOG_FILE: Log file name imported from settings.
    LOG_FORMAT: Log entry format imported from settings.
    LOG_DATE_FORMAT: Date/time format in logs imported from settings.
    LOGS_DIR: Directory for storing log files imported from settings.

Functions:
    get_logger: Creates and returns a configured logger for the module.
"""

import logging
import logging.handlers

from autotrader.config.settings import (
    LOG_DATE_FORMAT,
    LOG_FILE,
    LOG_FORMAT,
    LOG_LEVEL,
    LOGS_DIR,
)

MAX_LOG_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5


def get_logger(name: str) -> logging.Logger:
    """
    Creates and returns a configured logger for the module.

    A logger that already has handlers is returned untouched, so calling
    this at import time of every module is cheap and never duplicates output.

    Args:
        name (str): Module name, usually passed as __name__.

    Returns:
        logging.Logger: Configured logger ready for use.

    Examples:
        >>> from autotrader.utils.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Found 15 vehicle listings on page 1")
    """
    logger = logging.getLogger(name)
    logger.propagate = False

    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=LOGS_DIR / LOG_FILE,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger
