"""Settings for the menubar bridge.

Configuration is read from a TOML file (``$MENUBRIDGE_CONFIG`` or
``~/.config/kawaiilogger/menubridge.toml``). Every key is optional; a
missing file means defaults throughout.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from marshmallow import ValidationError

from ..const import (
    DEFAULT_ACCEPT_RETRY_DELAY,
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_FRAMING,
    DEFAULT_MAX_MESSAGE_BYTES,
    DEFAULT_READ_SIZE,
    DEFAULT_SOCKET_MODE,
    DEFAULT_SOCKET_PATH,
    DEFAULT_TRAY_TITLE,
    DEFAULT_TRAY_TOOLTIP,
    FRAMING_CHUNK,
    FRAMING_MODES,
    MIN_READ_SIZE,
)
from ..errors import ConfigError
from .common import get_config_path, read_config_file

logger = logging.getLogger(__name__)

# sun_path is 104 bytes on macOS and 108 on Linux, NUL included.
MAX_SOCKET_PATH_BYTES = 103


@dataclass(slots=True)
class RuntimeConfig:
    """Strongly typed configuration for the daemon."""

    socket_path: str = DEFAULT_SOCKET_PATH
    socket_mode: int = DEFAULT_SOCKET_MODE
    read_size: int = DEFAULT_READ_SIZE
    max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES
    framing: str = DEFAULT_FRAMING
    accept_retry_delay: float = DEFAULT_ACCEPT_RETRY_DELAY
    debug_logging: bool = DEFAULT_DEBUG_LOGGING
    log_file: str | None = None
    tray_title: str = DEFAULT_TRAY_TITLE
    tray_tooltip: str = DEFAULT_TRAY_TOOLTIP

    def __post_init__(self) -> None:
        self.socket_path = self._normalize_path(self.socket_path, field_name="socket_path")
        if len(os.fsencode(self.socket_path)) > MAX_SOCKET_PATH_BYTES:
            raise ValueError(
                f"socket_path must be at most {MAX_SOCKET_PATH_BYTES} bytes"
            )
        if not 0 <= self.socket_mode <= 0o777:
            raise ValueError("socket_mode must be a permission mode between 0 and 0o777")
        if self.read_size < MIN_READ_SIZE:
            raise ValueError(f"read_size must be at least {MIN_READ_SIZE}")
        self.max_message_bytes = self._require_positive(
            "max_message_bytes", self.max_message_bytes
        )
        if self.framing not in FRAMING_MODES:
            raise ValueError(
                "framing must be one of: " + ", ".join(sorted(FRAMING_MODES))
            )
        if self.framing == FRAMING_CHUNK:
            logger.info(
                "Chunk framing enabled; messages split across reads will fail to decode."
            )
        self.accept_retry_delay = max(0.0, float(self.accept_retry_delay))
        if self.log_file:
            self.log_file = self._normalize_path(self.log_file, field_name="log_file")
        else:
            self.log_file = None

    @staticmethod
    def _require_positive(name: str, value: int) -> int:
        if value <= 0:
            raise ValueError(f"{name} must be a positive integer")
        return value

    @staticmethod
    def _normalize_path(value: str, *, field_name: str) -> str:
        candidate = (value or "").strip()
        if not candidate:
            raise ValueError(f"{field_name} must be a non-empty path")
        expanded = os.path.expanduser(candidate)
        if not os.path.isabs(expanded):
            raise ValueError(f"{field_name} must be an absolute path")
        return os.path.abspath(expanded)


def load_runtime_config(path: str | Path | None = None) -> RuntimeConfig:
    """Load configuration from the TOML file, falling back to defaults."""
    # Lazy import to break the schema -> settings cycle.
    from .schema import RuntimeConfigSchema

    config_path = Path(path) if path is not None else get_config_path()
    raw = read_config_file(config_path)
    try:
        config = RuntimeConfigSchema().load(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc.messages}") from exc
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc
    logger.debug("Configuration loaded from %s", config_path if raw else "defaults")
    return config


__all__ = ["MAX_SOCKET_PATH_BYTES", "RuntimeConfig", "load_runtime_config"]
