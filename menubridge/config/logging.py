"""Logging helpers for the menubar bridge."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from logging import Handler
from logging.config import dictConfig
from logging.handlers import RotatingFileHandler, SysLogHandler
from pathlib import Path
from typing import Any

import msgspec

from ..const import LOG_FILE_BACKUPS, LOG_FILE_MAX_BYTES, LOG_STREAM_ENV
from .settings import RuntimeConfig

SYSLOG_SOCKET = Path("/dev/log")
SYSLOG_SOCKET_FALLBACK = Path("/var/run/log")

_RESERVED_LOG_KEYS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


def _serialise_value(value: Any) -> Any:
    """Serialise values for JSON logs with strict type handling."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        # Raw socket payloads may be arbitrary bytes; never decode blindly.
        return f"[{' '.join(f'{b:02X}' for b in value)}]"
    return str(value)


class StructuredLogFormatter(logging.Formatter):
    """Emit JSON per log line while trimming the shared prefix."""

    PREFIX = "menubridge."

    def format(self, record: logging.LogRecord) -> str:
        logger_name = record.name
        if logger_name.startswith(self.PREFIX):
            logger_name = logger_name[len(self.PREFIX) :]

        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": logger_name,
            "message": record.getMessage(),
        }

        extras = {
            key: _serialise_value(value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_LOG_KEYS and not key.startswith("_")
        }
        if extras:
            payload["extra"] = extras

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return msgspec.json.encode(payload).decode("utf-8")


def _build_syslog_handler() -> Handler | None:
    for candidate in (SYSLOG_SOCKET, SYSLOG_SOCKET_FALLBACK):
        if candidate.exists():
            handler = SysLogHandler(address=str(candidate), facility=SysLogHandler.LOG_USER)
            handler.ident = "menubridge "
            return handler
    return None


def _build_handler(log_file: str | None = None) -> Handler:
    if os.environ.get(LOG_STREAM_ENV):
        return logging.StreamHandler()

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )

    syslog_handler = _build_syslog_handler()
    if syslog_handler is not None:
        return syslog_handler
    return logging.StreamHandler()


def configure_logging(config: RuntimeConfig) -> None:
    """Configure root logging based on runtime settings."""

    level_name = "DEBUG" if config.debug_logging else "INFO"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": "menubridge.config.logging.StructuredLogFormatter",
                }
            },
            "handlers": {
                "menubridge": {
                    "()": _build_handler,
                    "log_file": config.log_file,
                    "level": level_name,
                    "formatter": "structured",
                }
            },
            "root": {
                "level": level_name,
                "handlers": ["menubridge"],
            },
        }
    )

    logging.getLogger("menubridge").info("Logging configured at level %s", level_name)


__all__ = ["StructuredLogFormatter", "configure_logging"]
