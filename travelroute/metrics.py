"""Arc-length bookkeeping over a dense polyline."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from .geometry import Coordinate, haversine_m


@dataclass(frozen=True)
class SegmentDistances:
    """Per-segment and cumulative great-circle lengths in metres.

    ``segments[i]`` is the length from point ``i`` to point ``i + 1``;
    ``cumulative[i]`` is the distance from the start to point ``i``, so it has
    one more entry than ``segments`` and starts at zero.
    """

    segments: Tuple[float, ...] = ()
    cumulative: Tuple[float, ...] = (0.0,)

    @property
    def total(self) -> float:
        return self.cumulative[-1]

    @property
    def segment_count(self) -> int:
        return len(self.segments)


def measure_path(polyline: Sequence[Coordinate]) -> SegmentDistances:
    """Measure ``polyline``; fewer than two points give zero-length metrics."""

    if len(polyline) < 2:
        return SegmentDistances()

    segments = []
    cumulative = [0.0]
    for start, end in zip(polyline[:-1], polyline[1:]):
        length = haversine_m(start, end)
        segments.append(length)
        cumulative.append(cumulative[-1] + length)
    return SegmentDistances(segments=tuple(segments), cumulative=tuple(cumulative))
