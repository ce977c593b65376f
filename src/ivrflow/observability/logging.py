"""Logging configuration for ivrflow."""

import logging
import logging.config
from typing import Any

from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "ivrflow"


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure logging for the ``ivrflow`` logger hierarchy.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a rotating JSON log file
    """
    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": JsonFormatter,
                "fmt": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "level": level,
            },
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    }

    if log_file is not None:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "formatter": "json",
            "level": level,
        }
        config["loggers"][LOGGER_NAME]["handlers"].append("file")

    logging.config.dictConfig(config)
