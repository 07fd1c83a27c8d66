"""Per-connection reader: frame, decode and publish snapshots."""

from __future__ import annotations

import asyncio
import logging
import socket

import msgspec

from ..const import DEFAULT_FRAMING, DEFAULT_MAX_MESSAGE_BYTES, DEFAULT_READ_SIZE
from ..errors import DecodeError
from ..protocol.codec import decode
from ..protocol.framing import build_framer
from ..state.publisher import StatePublisher

logger = logging.getLogger("menubridge.reader")

# Bytes of a rejected message echoed into the log.
_LOG_PAYLOAD_PREVIEW = 64


class ReaderStats(msgspec.Struct):
    connections_closed: int = 0
    messages_received: int = 0
    decode_errors: int = 0
    framing_overflows: int = 0
    read_errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return msgspec.structs.asdict(self)


class ConnectionReader:
    """Consumes one accepted connection until the peer goes away.

    Decode failures are logged and skipped; the connection stays open. A
    read failure or end of stream ends this reader only.
    """

    def __init__(
        self,
        publisher: StatePublisher,
        *,
        read_size: int = DEFAULT_READ_SIZE,
        framing: str = DEFAULT_FRAMING,
        max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES,
        stats: ReaderStats | None = None,
    ) -> None:
        self.publisher = publisher
        self.read_size = read_size
        self.framer = build_framer(framing, max_message_bytes)
        self.stats = stats if stats is not None else ReaderStats()

    async def run(self, conn: socket.socket) -> None:
        loop = asyncio.get_running_loop()
        overflows_before = self.framer.overflows
        try:
            while True:
                try:
                    chunk = await loop.sock_recv(conn, self.read_size)
                except OSError as exc:
                    self.stats.read_errors += 1
                    logger.info("Error reading from socket: %s", exc)
                    return

                if not chunk:
                    logger.info("Client disconnected")
                    for message in self.framer.finish():
                        self._handle_message(message)
                    return

                for message in self.framer.feed(chunk):
                    self._handle_message(message)
        finally:
            self.stats.framing_overflows += self.framer.overflows - overflows_before
            self.stats.connections_closed += 1

    def _handle_message(self, message: bytes) -> None:
        self.stats.messages_received += 1
        try:
            snapshot = decode(message)
        except DecodeError as exc:
            self.stats.decode_errors += 1
            logger.warning(
                "Error decoding metrics: %s",
                exc,
                extra={"payload": message[:_LOG_PAYLOAD_PREVIEW], "length": len(message)},
            )
            return
        logger.debug("Received metrics: %s", snapshot)
        self.publisher.publish(snapshot)


__all__ = ["ConnectionReader", "ReaderStats"]
