"""Constants shared across the menubar bridge."""

from __future__ import annotations

from typing import Final

DEFAULT_SOCKET_PATH: Final[str] = "/tmp/kawaiilogger.sock"
DEFAULT_SOCKET_MODE: Final[int] = 0o600
DEFAULT_LISTEN_BACKLOG: Final[int] = 8

# One read is at most this many bytes; the original receiver used 1 KiB.
DEFAULT_READ_SIZE: Final[int] = 1024
DEFAULT_MAX_MESSAGE_BYTES: Final[int] = 4096
MIN_READ_SIZE: Final[int] = 64

FRAMING_OBJECT: Final[str] = "object"
FRAMING_NEWLINE: Final[str] = "newline"
FRAMING_CHUNK: Final[str] = "chunk"
FRAMING_MODES: Final[frozenset[str]] = frozenset({FRAMING_OBJECT, FRAMING_NEWLINE, FRAMING_CHUNK})
DEFAULT_FRAMING: Final[str] = FRAMING_OBJECT
MESSAGE_DELIMITER: Final[bytes] = b"\n"

DEFAULT_ACCEPT_RETRY_DELAY: Final[float] = 0.1
DEFAULT_DEBUG_LOGGING: Final[bool] = False

DEFAULT_CONFIG_ENV: Final[str] = "MENUBRIDGE_CONFIG"
DEFAULT_CONFIG_PATH: Final[str] = "~/.config/kawaiilogger/menubridge.toml"
LOG_STREAM_ENV: Final[str] = "MENUBRIDGE_LOG_STREAM"
LOG_FILE_MAX_BYTES: Final[int] = 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

DEFAULT_TRAY_TITLE: Final[str] = "\U0001F4CA"
DEFAULT_TRAY_TOOLTIP: Final[str] = "KawaiiLogger"

# Producer client retry policy (20 attempts, 250 ms apart).
CLIENT_CONNECT_ATTEMPTS: Final[int] = 20
CLIENT_CONNECT_DELAY: Final[float] = 0.25

SUPERVISOR_DEFAULT_MIN_BACKOFF: Final[float] = 0.5
SUPERVISOR_DEFAULT_MAX_BACKOFF: Final[float] = 10.0
SUPERVISOR_DEFAULT_RESTART_INTERVAL: Final[float] = 60.0
SUPERVISOR_MIN_RESTART_WINDOW: Final[float] = 10.0
