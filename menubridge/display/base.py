"""Display sink capability interface and field formatting."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Protocol, runtime_checkable

from ..protocol.structures import EMPTY_SNAPSHOT, MetricsSnapshot


class DisplayField(str, Enum):
    """Visible rows of the summary, in menu order."""

    KEYPRESSES = "keypresses"
    MOUSE_CLICKS = "mouse_clicks"
    MOUSE_TRAVEL = "mouse_travel"
    SCROLL_STEPS = "scroll_steps"


@runtime_checkable
class DisplaySink(Protocol):
    """What the bridge needs from a presentation shell.

    ``start`` must return promptly; the sink calls ``on_ready`` once its
    setup is done and ``on_dismiss`` each time the user asks to quit. Either
    callback may arrive on a thread other than the caller's.
    """

    def start(self, on_ready: Callable[[], None], on_dismiss: Callable[[], None]) -> None: ...

    def set_display_text(self, field: DisplayField, text: str) -> None: ...

    def stop(self) -> None: ...


def format_fields(snapshot: MetricsSnapshot) -> dict[DisplayField, str]:
    """Render the four visible rows for *snapshot*."""
    return {
        DisplayField.KEYPRESSES: f"Keypresses: {snapshot.keypresses}",
        DisplayField.MOUSE_CLICKS: f"Mouse Clicks: {snapshot.mouse_clicks}",
        DisplayField.MOUSE_TRAVEL: (
            f"Mouse Travel: {snapshot.mouse_distance_in:.2f} in / "
            f"{snapshot.mouse_distance_mi:.2f} mi"
        ),
        DisplayField.SCROLL_STEPS: f"Scroll Steps: {snapshot.scroll_steps}",
    }


def initial_fields() -> dict[DisplayField, str]:
    """Rows shown before the first snapshot arrives."""
    return format_fields(EMPTY_SNAPSHOT)


__all__ = ["DisplayField", "DisplaySink", "format_fields", "initial_fields"]
