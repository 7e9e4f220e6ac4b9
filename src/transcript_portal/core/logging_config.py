"""Logging setup applied once per application."""

import logging.config
import sys


def build_logging_config(level: str = "INFO") -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": sys.stdout,
            }
        },
        "loggers": {
            "transcript_portal": {"level": level.upper(), "propagate": True},
            "apscheduler": {"level": "WARNING", "propagate": True},
        },
        "root": {"handlers": ["console"], "level": "INFO"},
    }


def configure_logging(level: str = "INFO") -> None:
    """Configure console logging for the application."""

    logging.config.dictConfig(build_logging_config(level))
