"""Latest-snapshot publisher shared by the reader and the display."""

from __future__ import annotations

import logging
import threading

import msgspec

from ..display.base import DisplaySink, format_fields
from ..protocol.structures import MetricsSnapshot

logger = logging.getLogger("menubridge.publisher")


class PublisherStats(msgspec.Struct):
    published: int = 0
    rendered: int = 0
    render_skipped: int = 0
    render_errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return msgspec.structs.asdict(self)


class StatePublisher:
    """Holds the latest snapshot and the display-ready flag.

    ``publish`` may be called from any event loop task or thread. The state
    lock only guards the snapshot reference and the flag; it is never held
    while the sink is called. A separate render lock keeps two renders from
    interleaving their field updates.
    """

    def __init__(self, sink: DisplaySink) -> None:
        self._sink = sink
        self._lock = threading.Lock()
        self._render_lock = threading.Lock()
        self._latest: MetricsSnapshot | None = None
        self._ready = False
        self.stats = PublisherStats()

    @property
    def latest(self) -> MetricsSnapshot | None:
        with self._lock:
            return self._latest

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._ready

    def publish(self, snapshot: MetricsSnapshot) -> None:
        """Replace the latest snapshot (last write wins) and render it."""
        with self._lock:
            self._latest = snapshot
            self.stats.published += 1
        logger.debug("Published snapshot: %s", snapshot)
        self.render_tick()

    def mark_ready(self) -> None:
        with self._lock:
            if self._ready:
                return
            self._ready = True
        logger.info("Display ready; updates enabled.")

    def render_tick(self) -> bool:
        """Push the latest snapshot to the sink.

        Returns ``True`` when the sink was updated. Before ``mark_ready`` or
        before any snapshot exists this is a no-op.
        """
        with self._render_lock:
            with self._lock:
                ready = self._ready
                snapshot = self._latest
                if not ready:
                    self.stats.render_skipped += 1
            if not ready:
                logger.debug("Display not initialized; skipping update.")
                return False
            if snapshot is None:
                return False

            try:
                for field, text in format_fields(snapshot).items():
                    self._sink.set_display_text(field, text)
            except Exception:
                # Sink failures are contained here; the reader keeps going.
                with self._lock:
                    self.stats.render_errors += 1
                logger.exception("Display update failed.")
                return False

            with self._lock:
                self.stats.rendered += 1
            return True


__all__ = ["PublisherStats", "StatePublisher"]
