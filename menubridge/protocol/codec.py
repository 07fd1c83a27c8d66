"""JSON codec for metrics snapshots."""

from __future__ import annotations

from typing import Any

import msgspec

from ..errors import DecodeError
from .structures import MetricsSnapshot

_DECODER = msgspec.json.Decoder(dict[str, Any])
_ENCODER = msgspec.json.Encoder()


def decode(data: bytes | bytearray | memoryview) -> MetricsSnapshot:
    """Decode one JSON message into a snapshot.

    A field sent as ``null`` counts as absent and keeps its zero default.

    Raises:
        DecodeError: the message is empty, not JSON, not an object, or a
            field has the wrong type or a negative value.
    """
    payload = bytes(data)
    if not payload.strip():
        raise DecodeError("Empty message")
    try:
        fields = _DECODER.decode(payload)
        return msgspec.convert(
            {name: value for name, value in fields.items() if value is not None},
            MetricsSnapshot,
        )
    except msgspec.MsgspecError as exc:
        raise DecodeError(str(exc)) from exc


def encode(snapshot: MetricsSnapshot) -> bytes:
    """Encode a snapshot as a compact JSON object (no delimiter)."""
    return _ENCODER.encode(snapshot)


__all__ = ["decode", "encode"]
