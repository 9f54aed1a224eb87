"""Logging setup shared by the Lambda, CLI and HTTP entry points."""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from uvicorn.logging import DefaultFormatter

PACKAGE_LOGGER = "heartbeat_publisher"

# Structured fields attached through ``extra=`` by the retry and storage helpers.
CONTEXT_FIELDS = ("attempts", "error_name", "error_message", "failed_group_index")

# Library loggers pinned regardless of the requested level.
QUIET_LOGGERS = {"botocore": "WARNING", "boto3": "WARNING", "urllib3": "WARNING"}


class ContextFormatter(DefaultFormatter):
    """Uvicorn-style formatter that appends known ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [
            f"{name}={getattr(record, name)!r}" for name in CONTEXT_FIELDS if hasattr(record, name)
        ]
        if context:
            line = f"{line} | {' '.join(context)}"
        return line


def build_logging_config(level: str | int = "INFO") -> dict[str, Any]:
    """Return a ``dictConfig`` mapping for the given level."""

    if isinstance(level, str):
        level = level.upper()

    def stream_logger(propagate: bool = False) -> dict[str, Any]:
        return {"handlers": ["default"], "level": level, "propagate": propagate}

    loggers: dict[str, Any] = {
        "uvicorn": stream_logger(propagate=True),
        "uvicorn.error": stream_logger(),
        "uvicorn.access": {"handlers": ["uvicorn.access"], "level": level, "propagate": False},
        PACKAGE_LOGGER: stream_logger(),
    }
    loggers.update({name: {"level": quiet} for name, quiet in QUIET_LOGGERS.items()})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": ContextFormatter,
                "fmt": "%(asctime)s | %(levelprefix)s | %(name)s | %(message)s",
                # Lambda and cron capture stdout into plain-text sinks.
                "use_colors": False,
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": "%(levelprefix)s %(client_addr)s - \"%(request_line)s\" %(status_code)s",
                "use_colors": False,
            },
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default"},
            "uvicorn.access": {"class": "logging.StreamHandler", "formatter": "access"},
        },
        "loggers": loggers,
        "root": {"handlers": ["default"], "level": level},
    }


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the logging subsystem for the publisher and its HTTP surface."""

    dictConfig(build_logging_config(level))
    logging.getLogger(__name__).debug("Logging configured with level %s", level)


__all__ = ["CONTEXT_FIELDS", "ContextFormatter", "build_logging_config", "configure_logging"]
