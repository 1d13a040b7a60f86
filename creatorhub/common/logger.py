"""Logging for CreatorHub.

All engine modules log through children of the "creatorhub" logger
(get_logger(__name__)). configure_logging() attaches the handlers once,
from Settings, when the host application starts.
"""

import logging
import logging.handlers
import os
from typing import Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
ISO_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _resolve_level(level: str) -> int:
    level_upper = level.upper()
    if level_upper not in LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {level}. Must be one of: {', '.join(LOG_LEVELS)}"
        )
    return getattr(logging, level_upper)


def _rotating_file_handler(
    log_dir: str,
    filename: str,
    max_bytes: int,
    backup_count: int,
) -> logging.Handler:
    os.makedirs(log_dir, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, filename),
        maxBytes=max_bytes,
        backupCount=backup_count,
    )


def setup_logger(
    name: str,
    log_dir: str = "/var/log/creatorhub",
    level: str = "INFO",
    log_format: Optional[str] = None,
    file_logging: bool = True,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Set up a logger with rotating file and console handlers.

    The level is (re)applied on every call; handlers are only attached
    the first time, so repeated calls never duplicate output.

    Args:
        name: Logger name; the log file is "<name>.log" in log_dir
        log_dir: Directory for log files
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string
        file_logging: Enable file logging
        console_logging: Enable console logging
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        Configured logger instance

    Raises:
        ValueError: If level is not a known logging level
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(log_format or DEFAULT_FORMAT, datefmt=ISO_DATE_FORMAT)

    handlers = []
    if file_logging:
        handlers.append(
            _rotating_file_handler(log_dir, f"{name}.log", max_bytes, backup_count)
        )
    if console_logging:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(settings) -> logging.Logger:
    """Configure the "creatorhub" package logger from application settings."""
    return setup_logger(
        "creatorhub",
        log_dir=settings.log_dir,
        level=settings.log_level,
        file_logging=settings.file_logging,
        console_logging=settings.console_logging,
    )
