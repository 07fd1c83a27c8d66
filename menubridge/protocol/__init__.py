"""Wire protocol for metrics snapshots."""

from .codec import decode, encode
from .framing import ChunkFramer, LineFramer, MessageFramer, ObjectFramer, build_framer
from .structures import MetricsSnapshot

__all__ = [
    "ChunkFramer",
    "LineFramer",
    "MessageFramer",
    "MetricsSnapshot",
    "ObjectFramer",
    "build_framer",
    "decode",
    "encode",
]
