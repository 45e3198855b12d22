"""Logging configuration helpers for the quizboard backend."""

import logging
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> Logger:
    """Configure basic logging for the application and return the package logger."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    # Keep per-request access logs out of the application log at INFO.
    logging.getLogger("uvicorn.access").setLevel(max(numeric_level, logging.WARNING))
    return logging.getLogger("src")
