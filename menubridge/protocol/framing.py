"""Stream framing for inbound snapshot messages.

Three strategies are supported:

- ``object`` (default): JSON-object boundaries. Back-to-back objects with no
  separator are split, objects spanning reads are reassembled, and a newline
  outside a string also ends the current message. Both undelimited and
  newline-delimited producers work unchanged.
- ``newline``: newline-delimited JSON only.
- ``chunk``: every read is exactly one message. This cannot reassemble split
  messages.

The buffering framers bound a partial message to ``max_message_bytes``; an
oversized message is dropped and the framer resyncs on the next boundary.
"""

from __future__ import annotations

import logging

from ..const import FRAMING_CHUNK, FRAMING_NEWLINE, FRAMING_OBJECT, MESSAGE_DELIMITER

logger = logging.getLogger("menubridge.framing")

_NEWLINE = ord("\n")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_OPEN_OBJECT = ord("{")
_OPENERS = frozenset(b"{[")
_CLOSERS = frozenset(b"}]")
_WHITESPACE = frozenset(b" \t\r\n")


class MessageFramer:
    """Base class: turn raw reads into candidate messages."""

    def __init__(self) -> None:
        self.overflows = 0

    def feed(self, chunk: bytes) -> list[bytes]:
        raise NotImplementedError

    def finish(self) -> list[bytes]:
        """Flush whatever is pending once the stream has ended."""
        return []


class ChunkFramer(MessageFramer):
    """One read equals one message."""

    def feed(self, chunk: bytes) -> list[bytes]:
        if not chunk:
            return []
        return [bytes(chunk)]


class _BufferedFramer(MessageFramer):
    """Shared reassembly buffer with an upper bound."""

    def __init__(self, max_message_bytes: int) -> None:
        super().__init__()
        if max_message_bytes <= 0:
            raise ValueError("max_message_bytes must be positive")
        self.max_message_bytes = max_message_bytes
        self._buffer = bytearray()
        self._discarding = False

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def _overflow(self) -> None:
        self.overflows += 1
        self._buffer.clear()
        logger.warning(
            "Message exceeds %d bytes; discarding.",
            self.max_message_bytes,
        )

    def finish(self) -> list[bytes]:
        if self._discarding:
            self._discarding = False
            self._buffer.clear()
            return []
        if not self._buffer.strip():
            self._buffer.clear()
            return []
        message = bytes(self._buffer)
        self._buffer.clear()
        return [message]


class LineFramer(_BufferedFramer):
    """Newline-delimited framing."""

    def feed(self, chunk: bytes) -> list[bytes]:
        messages: list[bytes] = []
        start = 0
        while True:
            index = chunk.find(MESSAGE_DELIMITER, start)
            if index < 0:
                break
            segment = chunk[start:index]
            start = index + len(MESSAGE_DELIMITER)

            if self._discarding:
                # Tail of an oversized message; resync on this delimiter.
                self._discarding = False
                self._buffer.clear()
                continue

            self._buffer += segment
            if len(self._buffer) > self.max_message_bytes:
                self._overflow()
                continue
            if self._buffer.strip():
                messages.append(bytes(self._buffer))
            self._buffer.clear()

        rest = chunk[start:]
        if rest and not self._discarding:
            self._buffer += rest
            if len(self._buffer) > self.max_message_bytes:
                self._overflow()
                self._discarding = True
        return messages


class ObjectFramer(_BufferedFramer):
    """Split the stream on top-level JSON object boundaries.

    Brackets inside strings are ignored. Bytes outside any object that are
    not whitespace are collected and handed on as one message, so garbage
    still surfaces as a decode error instead of vanishing.
    """

    def __init__(self, max_message_bytes: int) -> None:
        super().__init__(max_message_bytes)
        self._depth = 0
        self._in_string = False
        self._escaped = False

    def _reset(self) -> None:
        self._buffer.clear()
        self._depth = 0
        self._in_string = False
        self._escaped = False
        self._discarding = False

    def _emit(self, messages: list[bytes]) -> None:
        if self._buffer.strip():
            messages.append(bytes(self._buffer))
        self._buffer.clear()

    def feed(self, chunk: bytes) -> list[bytes]:
        messages: list[bytes] = []
        for byte in chunk:
            if byte == _NEWLINE:
                # Compact JSON never carries a raw newline; always a boundary.
                if not self._discarding:
                    self._emit(messages)
                self._reset()
                continue

            if self._in_string:
                if self._escaped:
                    self._escaped = False
                elif byte == _BACKSLASH:
                    self._escaped = True
                elif byte == _QUOTE:
                    self._in_string = False
            elif byte == _QUOTE:
                self._in_string = True
            elif byte in _OPENERS:
                if byte == _OPEN_OBJECT and self._depth == 0 and not self._discarding:
                    # Whatever preceded a new top-level object is its own message.
                    self._emit(messages)
                self._depth += 1
            elif byte in _CLOSERS and self._depth > 0:
                self._depth -= 1
                if self._depth == 0:
                    if self._discarding:
                        self._discarding = False
                    else:
                        self._buffer.append(byte)
                        self._emit(messages)
                    continue
            elif self._depth == 0 and byte in _WHITESPACE and not self._buffer:
                continue

            if self._discarding:
                continue
            self._buffer.append(byte)
            if len(self._buffer) > self.max_message_bytes:
                self._overflow()
                # Keep tracking structure so the next object is found.
                self._discarding = self._depth > 0
        return messages

    def finish(self) -> list[bytes]:
        messages = super().finish()
        self._reset()
        return messages


def build_framer(mode: str, max_message_bytes: int) -> MessageFramer:
    """Return a fresh framer for one connection."""
    if mode == FRAMING_OBJECT:
        return ObjectFramer(max_message_bytes)
    if mode == FRAMING_NEWLINE:
        return LineFramer(max_message_bytes)
    if mode == FRAMING_CHUNK:
        return ChunkFramer()
    raise ValueError(f"Unknown framing mode: {mode!r}")


__all__ = ["ChunkFramer", "LineFramer", "MessageFramer", "ObjectFramer", "build_framer"]
