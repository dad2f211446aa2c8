from __future__ import annotations

import logging
import os
from logging.config import dictConfig
from typing import Any

# Loggers of libraries the engine drives; they only speak up on problems
QUIET_LOGGERS = ("asyncio",)


def _default_logging_dict(level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)-8s %(name)s - %(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {
            name: {"level": "WARNING"} for name in QUIET_LOGGERS
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
    }


def resolve_level(level_name: str | int | None) -> int:
    """Turn 'debug', 'INFO', 20 or None (LOG_LEVEL env var, then INFO) into a numeric level."""
    if level_name is None:
        level_name = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level_name, int):
        return level_name
    return getattr(logging, level_name.upper(), logging.INFO)


def configure_logging(level_name: str | int | None = None) -> None:
    """Configure logging for test runs.

    Handlers use DEBUG so the root logger alone controls what is printed.
    Command scheduling and poll ticks are logged at DEBUG, navigation and
    option selection at INFO.
    """
    level = resolve_level(level_name)
    dictConfig(_default_logging_dict(logging.getLevelName(level)))
    logging.getLogger().setLevel(level)

