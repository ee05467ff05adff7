"""Logging setup shared by the CLI and library modules."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


def setup_logging(level: str | int = logging.INFO, name: str = "groupdelta") -> logging.Logger:
    """Attach a console handler to the package logger.

    Calling this again only updates the level; handlers are never duplicated.

    :param level: Logging level name or number.
    :param name: Logger to configure (default: the package root logger).
    :returns: The configured logger.
    """
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger that inherits the package configuration."""
    return logging.getLogger(name)
