"""Marshmallow schema for RuntimeConfig validation."""

from __future__ import annotations

from typing import Any, Dict

from marshmallow import Schema, ValidationError, fields, post_load, pre_load, validate

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
    FRAMING_MODES,
    MIN_READ_SIZE,
)
from .settings import RuntimeConfig


class RuntimeConfigSchema(Schema):
    """Declarative validation schema for menubar bridge configuration."""

    # Channel
    socket_path = fields.Str(load_default=DEFAULT_SOCKET_PATH, validate=validate.Length(min=1))
    socket_mode = fields.Int(load_default=DEFAULT_SOCKET_MODE, validate=validate.Range(min=0, max=0o777))
    read_size = fields.Int(load_default=DEFAULT_READ_SIZE, validate=validate.Range(min=MIN_READ_SIZE))
    max_message_bytes = fields.Int(load_default=DEFAULT_MAX_MESSAGE_BYTES, validate=validate.Range(min=1))
    framing = fields.Str(load_default=DEFAULT_FRAMING, validate=validate.OneOf(sorted(FRAMING_MODES)))
    accept_retry_delay = fields.Float(load_default=DEFAULT_ACCEPT_RETRY_DELAY, validate=validate.Range(min=0.0))

    # System
    debug_logging = fields.Bool(load_default=DEFAULT_DEBUG_LOGGING)
    log_file = fields.Str(load_default=None, allow_none=True)

    # Tray
    tray_title = fields.Str(load_default=DEFAULT_TRAY_TITLE)
    tray_tooltip = fields.Str(load_default=DEFAULT_TRAY_TOOLTIP)

    @pre_load
    def coerce_socket_mode(self, data: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        """Accept ``socket_mode = "0600"`` as an octal string."""
        mode = data.get("socket_mode")
        if isinstance(mode, str):
            try:
                data = {**data, "socket_mode": int(mode, 8)}
            except ValueError as exc:
                raise ValidationError("socket_mode must be an octal string", field_name="socket_mode") from exc
        return data

    @post_load
    def make_config(self, data: Dict[str, Any], **kwargs: Any) -> RuntimeConfig:
        return RuntimeConfig(**data)


__all__ = ["RuntimeConfigSchema"]
