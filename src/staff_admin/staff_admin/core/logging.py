"""Logging configuration."""
import logging
import logging.config
import sys
from typing import Any, Dict


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging."""
    level = (level or "INFO").upper()
    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": sys.stdout,
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        "loggers": {
            "msal": {
                "level": "WARNING",
            },
        },
    }

    logging.config.dictConfig(logging_config)
