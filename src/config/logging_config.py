import logging
import logging.config
import os
from typing import Optional

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_logging_config(log_file: Optional[str] = None) -> dict:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "level": LOG_LEVEL,
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "formatter": "default",
            "level": LOG_LEVEL,
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": LOG_FORMAT,
            },
        },
        "handlers": handlers,
        "root": {
            "handlers": list(handlers),
            "level": LOG_LEVEL,
        },
    }


def setup_logging(log_file: Optional[str] = None):
    logging.config.dictConfig(build_logging_config(log_file or os.getenv("LOG_FILE")))
