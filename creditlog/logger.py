"""
Logging configuration for the credit log pipeline.

Every module logs through a child of the package logger. The package logger
owns the only handler, so one level setting controls the whole package.
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level_name: Optional[str]) -> int:
    """Maps a level name such as "debug" to its number; unknown names give INFO."""
    level = logging.getLevelName(str(level_name or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a logger instance.

    The first call for a package attaches a stderr handler to the package
    logger (the first dotted component of `name`) at the level named by
    CREDITLOG_LOG_LEVEL, or INFO.

    Args:
        name: Logger name (usually __name__)
        level: Explicit level for this logger. Pass it with the package name
            to change the level of every module at once.

    Returns:
        Configured logger instance
    """
    package_logger = logging.getLogger(name.split(".", 1)[0])

    # Avoid duplicate handlers
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        package_logger.addHandler(handler)
        package_logger.setLevel(resolve_level(os.getenv("CREDITLOG_LOG_LEVEL")))

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(resolve_level(level))
    return logger
