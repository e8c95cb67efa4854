"""Logging for the lab assistant.

Modules grab the application logger at import time, before settings are
loaded, so ``init_app_logger`` reconfigures the existing handlers instead of
creating a second logger.
"""

import logging
import os
from typing import Optional


APP_LOGGER_NAME = "chemlab"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _parse_level(log_level: str) -> int:
    return getattr(logging, str(log_level).upper(), logging.INFO)


def setup_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    replace_handlers: bool = False
) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Args:
        name: Logger name
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        replace_handlers: Drop handlers from an earlier setup first

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    level = _parse_level(log_level)
    logger.setLevel(level)

    if replace_handlers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
    elif logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


app_logger: Optional[logging.Logger] = None


def init_app_logger(settings) -> logging.Logger:
    """
    Apply the configured level and log file to the application logger.

    Args:
        settings: Application settings instance

    Returns:
        Configured application logger
    """
    global app_logger

    app_logger = setup_logger(
        name=APP_LOGGER_NAME,
        log_level=settings.log_level,
        log_file=settings.log_file,
        replace_handlers=True
    )
    return app_logger


def get_app_logger() -> logging.Logger:
    """Application logger; console-only at INFO until init_app_logger() runs."""
    if app_logger is None:
        return setup_logger(APP_LOGGER_NAME)
    return app_logger
