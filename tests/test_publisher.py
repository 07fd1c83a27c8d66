"""Tests for the state publisher."""

from __future__ import annotations

import logging
import threading

import pytest
from menubridge.display import DisplayField, format_fields, initial_fields
from menubridge.protocol import MetricsSnapshot
from menubridge.state import StatePublisher

from mocks import FailingDisplay, RecordingDisplay


def test_publish_before_ready_is_stored_but_not_rendered(caplog: pytest.LogCaptureFixture) -> None:
    display = RecordingDisplay()
    publisher = StatePublisher(display)

    with caplog.at_level(logging.DEBUG, logger="menubridge.publisher"):
        publisher.publish(MetricsSnapshot(keypresses=3))

    assert display.updates == []
    assert publisher.latest == MetricsSnapshot(keypresses=3)
    assert publisher.stats.render_skipped == 1
    assert "Display not initialized" in caplog.text


def test_render_after_ready_shows_latest_snapshot() -> None:
    display = RecordingDisplay()
    publisher = StatePublisher(display)
    publisher.publish(MetricsSnapshot(keypresses=1))
    publisher.publish(MetricsSnapshot(keypresses=2, mouse_distance_in=63360.0, mouse_distance_mi=1.0))

    publisher.mark_ready()
    assert publisher.render_tick() is True

    assert display.texts[DisplayField.KEYPRESSES] == "Keypresses: 2"
    assert display.texts[DisplayField.MOUSE_TRAVEL] == "Mouse Travel: 63360.00 in / 1.00 mi"
    # Pre-ready publishes are never queued up for replay.
    assert len(display.updates) == len(DisplayField)


def test_publish_after_ready_renders_immediately() -> None:
    display = RecordingDisplay()
    publisher = StatePublisher(display)
    publisher.mark_ready()

    publisher.publish(MetricsSnapshot(mouse_clicks=9, scroll_steps=4))

    assert display.texts[DisplayField.MOUSE_CLICKS] == "Mouse Clicks: 9"
    assert display.texts[DisplayField.SCROLL_STEPS] == "Scroll Steps: 4"
    assert publisher.stats.published == 1
    assert publisher.stats.rendered == 1


def test_render_tick_without_snapshot_is_noop() -> None:
    display = RecordingDisplay()
    publisher = StatePublisher(display)
    publisher.mark_ready()

    assert publisher.render_tick() is False
    assert display.updates == []


def test_mark_ready_is_idempotent(caplog: pytest.LogCaptureFixture) -> None:
    publisher = StatePublisher(RecordingDisplay())

    with caplog.at_level(logging.INFO, logger="menubridge.publisher"):
        publisher.mark_ready()
        publisher.mark_ready()

    assert publisher.ready is True
    assert caplog.text.count("Display ready") == 1


def test_sink_failure_is_contained(caplog: pytest.LogCaptureFixture) -> None:
    publisher = StatePublisher(FailingDisplay())
    publisher.mark_ready()

    with caplog.at_level(logging.ERROR, logger="menubridge.publisher"):
        publisher.publish(MetricsSnapshot(keypresses=1))

    assert publisher.latest == MetricsSnapshot(keypresses=1)
    assert publisher.stats.render_errors == 1
    assert "Display update failed" in caplog.text


def test_concurrent_publishers_last_write_wins() -> None:
    display = RecordingDisplay()
    publisher = StatePublisher(display)
    publisher.mark_ready()

    def worker(offset: int) -> None:
        for value in range(offset, offset + 200):
            publisher.publish(MetricsSnapshot(keypresses=value))

    threads = [threading.Thread(target=worker, args=(i * 1000,)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    publisher.publish(MetricsSnapshot(keypresses=99999))
    assert publisher.stats.published == 801
    assert display.texts == format_fields(MetricsSnapshot(keypresses=99999))


def test_initial_fields_show_zero_values() -> None:
    fields = initial_fields()
    assert fields[DisplayField.KEYPRESSES] == "Keypresses: 0"
    assert fields[DisplayField.MOUSE_TRAVEL] == "Mouse Travel: 0.00 in / 0.00 mi"
