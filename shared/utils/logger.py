"""
Logging configuration for the form fill engine.

Every module calls setup_logger(__name__) once at import time. Output goes
to stdout and, when LOG_TO_FILE is set, to a size-rotated file in LOG_DIR.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable

from .config import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "form_fill.log"


def _file_handler(formatter: logging.Formatter) -> RotatingFileHandler:
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(settings.LOG_LEVEL)
    handler.setFormatter(formatter)
    return handler


def setup_logger(name: str) -> logging.Logger:
    """
    Get a configured logger.

    Handlers are attached once per logger name, so repeated calls
    (module reloads, tests) never duplicate output.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(settings.LOG_LEVEL)
    logger.propagate = False
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(settings.LOG_LEVEL)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        logger.addHandler(_file_handler(formatter))

    return logger


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """
    Log an error with context; the traceback is added in DEBUG mode.

    Args:
        logger: Logger instance
        error: Exception that occurred
        context: Where the error occurred (document path, job)
    """
    message = f"{type(error).__name__}: {error}"
    logger.error(f"{context}: {message}" if context else message)

    if settings.DEBUG:
        logger.exception("Full traceback:")


def log_warnings(logger: logging.Logger, source: str, warnings: Iterable[str]) -> None:
    """Log the per-field warnings of one fill pass, one line each."""
    for warning in warnings:
        logger.warning(f"{source}: {warning}")
