"""Tests for stream framing."""

from __future__ import annotations

import logging

import pytest
from menubridge.protocol.framing import ChunkFramer, LineFramer, ObjectFramer, build_framer


def test_line_framer_reassembles_split_message() -> None:
    framer = LineFramer(256)

    assert framer.feed(b'{"keypres') == []
    assert framer.pending == len(b'{"keypres')
    assert framer.feed(b'ses": 4}\n') == [b'{"keypresses": 4}']
    assert framer.pending == 0


def test_line_framer_yields_every_message_in_one_read() -> None:
    framer = LineFramer(256)

    messages = framer.feed(b'{"keypresses": 1}\n{"keypresses": 2}\n{"keypr')

    assert messages == [b'{"keypresses": 1}', b'{"keypresses": 2}']
    assert framer.feed(b'esses": 3}\n') == [b'{"keypresses": 3}']


def test_line_framer_skips_blank_lines() -> None:
    framer = LineFramer(256)
    assert framer.feed(b"\n  \n{}\n\n") == [b"{}"]


def test_line_framer_discards_oversized_message_and_resyncs(caplog: pytest.LogCaptureFixture) -> None:
    framer = LineFramer(16)

    with caplog.at_level(logging.WARNING, logger="menubridge.framing"):
        assert framer.feed(b"x" * 20) == []
        # Still inside the oversized message: dropped up to the delimiter.
        assert framer.feed(b"yyyy\n{}\n") == [b"{}"]

    assert framer.overflows == 1
    assert "exceeds 16 bytes" in caplog.text


def test_line_framer_overflow_on_complete_line() -> None:
    framer = LineFramer(8)

    assert framer.feed(b"0123456789\n{}\n") == [b"{}"]
    assert framer.overflows == 1


def test_line_framer_finish_flushes_trailing_message() -> None:
    framer = LineFramer(256)
    framer.feed(b'{"scroll_steps": 1}')

    assert framer.finish() == [b'{"scroll_steps": 1}']
    assert framer.finish() == []


def test_line_framer_finish_drops_partial_overflow() -> None:
    framer = LineFramer(4)
    framer.feed(b"abcdefgh")

    assert framer.finish() == []


def test_line_framer_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        LineFramer(0)


def test_chunk_framer_treats_each_read_as_message() -> None:
    framer = ChunkFramer()

    assert framer.feed(b'{"keypresses": 1}{"keypresses": 2}') == [b'{"keypresses": 1}{"keypresses": 2}']
    assert framer.feed(b"") == []
    assert framer.finish() == []


def test_build_framer_selects_strategy() -> None:
    assert isinstance(build_framer("object", 64), ObjectFramer)
    assert isinstance(build_framer("newline", 64), LineFramer)
    assert isinstance(build_framer("chunk", 64), ChunkFramer)
    with pytest.raises(ValueError):
        build_framer("length-prefixed", 64)


def test_object_framer_splits_back_to_back_objects() -> None:
    framer = ObjectFramer(256)

    messages = framer.feed(b'{"keypresses": 1}{"keypresses": 2} {"keypresses": 3}')

    assert messages == [b'{"keypresses": 1}', b'{"keypresses": 2}', b'{"keypresses": 3}']
    assert framer.pending == 0


def test_object_framer_yields_object_without_waiting_for_more() -> None:
    framer = ObjectFramer(256)
    assert framer.feed(b'{"keypresses": 5, "mouse_clicks": 1}') == [b'{"keypresses": 5, "mouse_clicks": 1}']


def test_object_framer_reassembles_split_object() -> None:
    framer = ObjectFramer(256)

    assert framer.feed(b'{"scroll_steps": 1, "x": {"y"') == []
    assert framer.feed(b": 2}}") == [b'{"scroll_steps": 1, "x": {"y": 2}}']


def test_object_framer_ignores_braces_inside_strings() -> None:
    framer = ObjectFramer(256)

    messages = framer.feed(b'{"note": "}{ \\"}"}{"keypresses": 4}')

    assert messages == [b'{"note": "}{ \\"}"}', b'{"keypresses": 4}']


def test_object_framer_accepts_newline_delimited_input() -> None:
    framer = ObjectFramer(256)
    assert framer.feed(b'{"keypresses": 1}\n\n{"keypresses": 2}\n') == [
        b'{"keypresses": 1}',
        b'{"keypresses": 2}',
    ]


def test_object_framer_surfaces_garbage_as_a_message() -> None:
    framer = ObjectFramer(256)

    assert framer.feed(b'garbage{"keypresses": 1}') == [b"garbage", b'{"keypresses": 1}']
    assert framer.feed(b"more junk\n") == [b"more junk"]


def test_object_framer_newline_ends_unterminated_object() -> None:
    framer = ObjectFramer(256)

    messages = framer.feed(b'{"keypresses": \n{"keypresses": 3}')

    assert messages == [b'{"keypresses": ', b'{"keypresses": 3}']


def test_object_framer_recovers_after_oversized_object() -> None:
    framer = ObjectFramer(32)
    oversized = b'{"keypresses": 1, "pad": "' + b"}" * 64 + b'"}'

    messages = framer.feed(oversized + b'{"keypresses": 6}')

    assert messages == [b'{"keypresses": 6}']
    assert framer.overflows == 1


def test_object_framer_keeps_working_for_long_undelimited_sessions() -> None:
    framer = ObjectFramer(4096)
    message = b'{"keypresses": 12345, "mouse_clicks": 678, "mouse_distance_in": 1234.5,' \
        b' "mouse_distance_mi": 0.02, "scroll_steps": 90}'

    received = 0
    for _ in range(200):
        received += len(framer.feed(message))

    assert received == 200
    assert framer.overflows == 0


def test_object_framer_finish_flushes_partial_object() -> None:
    framer = ObjectFramer(256)
    framer.feed(b'{"keypresses": 1')

    assert framer.finish() == [b'{"keypresses": 1']
    assert framer.finish() == []
