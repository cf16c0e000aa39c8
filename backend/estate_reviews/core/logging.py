"""
core/logging.py

Centralized logging configuration for the application.
- Uses RotatingFileHandler for file logs (1MB max, 5 backups)
- Logs to both console and <LOG_DIR>/app.log
- Separate <LOG_DIR>/error.log for ERROR and above
- Colored console logs via `colorlog`
- Log level controlled via environment variable (LOG_LEVEL)

Should be initialized once early in app startup (e.g., in main.py)
"""

import os
from logging.config import dictConfig
from typing import Any

from estate_reviews.core.config import settings


def build_logging_config(log_dir: str, level: str) -> dict[str, Any]:
    """Builds the dictConfig payload for the given log directory and level."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "[%(asctime)s] %(levelname)s [%(name)s] in %(module)s: %(message)s",
            },
            "color": {
                "()": "colorlog.ColoredFormatter",
                "format": "%(log_color)s[%(asctime)s] %(levelname)s [%(name)s] in %(module)s: %(message)s",
                "log_colors": {
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "bold_red",
                },
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "color",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": os.path.join(log_dir, "app.log"),
                "maxBytes": 1 * 1024 * 1024,  # 1MB
                "backupCount": 5,
                "formatter": "default",
                "encoding": "utf-8",
            },
            "error_file": {
                "class": "logging.FileHandler",
                "filename": os.path.join(log_dir, "error.log"),
                "level": "ERROR",
                "formatter": "default",
                "encoding": "utf-8",
            },
        },
        "loggers": {
            "uvicorn": {"level": "WARNING"},
            "sqlalchemy": {"level": "WARNING"},
            "aiosqlite": {"level": "WARNING"},
        },
        "root": {
            "level": level.upper(),
            "handlers": ["console", "file", "error_file"],
        },
    }


def init_logging() -> None:
    """Initializes logging from the application settings."""
    log_dir = str(settings.log_path)
    os.makedirs(log_dir, exist_ok=True)
    dictConfig(build_logging_config(log_dir, settings.LOG_LEVEL))
