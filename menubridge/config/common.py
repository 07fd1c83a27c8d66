"""Configuration file helpers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import msgspec

from ..const import DEFAULT_CONFIG_ENV, DEFAULT_CONFIG_PATH
from ..errors import ConfigError

logger = logging.getLogger(__name__)

# Keys may live at the top level or under this table.
_CONFIG_TABLE = "menubridge"


def get_config_path() -> Path:
    """Return the configuration file path, honouring ``$MENUBRIDGE_CONFIG``."""
    override = os.environ.get(DEFAULT_CONFIG_ENV, "").strip()
    return Path(os.path.expanduser(override or DEFAULT_CONFIG_PATH))


def read_config_file(path: Path) -> dict[str, Any]:
    """Read the raw TOML mapping, or ``{}`` if the file does not exist."""
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        logger.debug("No configuration file at %s; using defaults.", path)
        return {}
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc

    try:
        raw = msgspec.toml.decode(data, type=dict[str, Any])
    except msgspec.MsgspecError as exc:
        raise ConfigError(f"Cannot parse configuration file {path}: {exc}") from exc

    section = raw.get(_CONFIG_TABLE)
    if isinstance(section, dict):
        return dict(section)
    return raw


__all__ = ["get_config_path", "read_config_file"]
