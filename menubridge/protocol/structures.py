"""Metrics snapshot structures.

SINGLE SOURCE OF TRUTH for the field names used on the wire.
"""

from __future__ import annotations

from typing import Annotated

import msgspec

NonNegativeInt = Annotated[int, msgspec.Meta(ge=0)]
NonNegativeFloat = Annotated[float, msgspec.Meta(ge=0.0)]


class MetricsSnapshot(msgspec.Struct, frozen=True, kw_only=True):
    """Input activity totals as of one point in time.

    Absent fields default to zero, and so does an explicit ``null``;
    unknown fields are ignored on decode.
    ``mouse_distance_mi`` is the producer's own conversion of the same
    distance and is not cross-checked against ``mouse_distance_in``.
    """

    keypresses: NonNegativeInt = 0
    mouse_clicks: NonNegativeInt = 0
    mouse_distance_in: NonNegativeFloat = 0.0
    mouse_distance_mi: NonNegativeFloat = 0.0
    scroll_steps: NonNegativeInt = 0


EMPTY_SNAPSHOT = MetricsSnapshot()

__all__ = ["EMPTY_SNAPSHOT", "MetricsSnapshot", "NonNegativeFloat", "NonNegativeInt"]
