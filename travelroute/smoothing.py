"""Turn an ordered list of waypoints into a dense, smooth polyline.

Two waypoints are joined by a straight line that is subdivided finely enough
for per-frame sampling. Three or more waypoints are joined by a Catmull-Rom
spline that passes through every waypoint. The spline needs a control point
before the first and after the last waypoint; these are extrapolated from the
neighbouring segment so the curve leaves the end points without a kink.
"""
from __future__ import annotations

from typing import List, Sequence, Tuple

Coordinate = Tuple[float, float]
DensePolyline = Tuple[Coordinate, ...]


LINE_STEPS = 60
SPAN_STEPS = 30
TENSION = 0.5
VIRTUAL_POINT_FACTOR = 0.3


def catmull_rom_point(
    t: float,
    p0: Coordinate,
    p1: Coordinate,
    p2: Coordinate,
    p3: Coordinate,
    tension: float = TENSION,
) -> Coordinate:
    """Evaluate the spline span running from ``p1`` (t=0) to ``p2`` (t=1)."""

    t2 = t * t
    t3 = t2 * t

    w0 = -tension * t3 + 2.0 * tension * t2 - tension * t
    w1 = (2.0 - tension) * t3 + (tension - 3.0) * t2 + 1.0
    w2 = (tension - 2.0) * t3 + (3.0 - 2.0 * tension) * t2 + tension * t
    w3 = tension * t3 - tension * t2

    lat = w0 * p0[0] + w1 * p1[0] + w2 * p2[0] + w3 * p3[0]
    lon = w0 * p0[1] + w1 * p1[1] + w2 * p2[1] + w3 * p3[1]
    return lat, lon


def _subdivide_line(start: Coordinate, end: Coordinate, steps: int) -> List[Coordinate]:
    path: List[Coordinate] = []
    for step in range(steps + 1):
        t = step / steps
        keep = 1.0 - t
        path.append((start[0] * keep + end[0] * t, start[1] * keep + end[1] * t))
    return path


def _virtual_end_points(coords: Sequence[Coordinate]) -> Tuple[Coordinate, Coordinate]:
    first, second = coords[0], coords[1]
    last, second_last = coords[-1], coords[-2]
    before = (
        first[0] - (second[0] - first[0]) * VIRTUAL_POINT_FACTOR,
        first[1] - (second[1] - first[1]) * VIRTUAL_POINT_FACTOR,
    )
    after = (
        last[0] + (last[0] - second_last[0]) * VIRTUAL_POINT_FACTOR,
        last[1] + (last[1] - second_last[1]) * VIRTUAL_POINT_FACTOR,
    )
    return before, after


def smooth_path(
    waypoints: Sequence[Coordinate],
    line_steps: int = LINE_STEPS,
    span_steps: int = SPAN_STEPS,
) -> DensePolyline:
    """Return the dense polyline for ``waypoints``.

    Fewer than two waypoints produce an empty polyline, which callers treat
    as "nothing to animate". Waypoint ``k`` of a spline route lands exactly on
    index ``k * span_steps`` of the result.
    """

    coords = [(float(lat), float(lon)) for lat, lon in waypoints]
    if len(coords) < 2:
        return ()

    if len(coords) == 2:
        return tuple(_subdivide_line(coords[0], coords[1], line_steps))

    before, after = _virtual_end_points(coords)
    extended = [before, *coords, after]

    path: List[Coordinate] = [coords[0]]
    for index in range(len(extended) - 3):
        p0, p1, p2, p3 = extended[index : index + 4]
        # t=0 of this span is t=1 of the previous one; skip it.
        for step in range(1, span_steps + 1):
            path.append(catmull_rom_point(step / span_steps, p0, p1, p2, p3))
        # Pin the span end to its waypoint so joints never drift.
        path[-1] = p2
    return tuple(path)
