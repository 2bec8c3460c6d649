"""Geodesy helpers shared by the path, sampler and backdrop modules."""
from __future__ import annotations

import math
from typing import Tuple

Coordinate = Tuple[float, float]


EARTH_RADIUS_M = 6371008.8
METRES_PER_DEGREE = 111000.0


def _radians(coordinate: Coordinate) -> Tuple[float, float]:
    return math.radians(coordinate[0]), math.radians(coordinate[1])


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in metres."""

    phi1, lam1 = _radians(a)
    phi2, lam2 = _radians(b)
    h = math.sin((phi2 - phi1) / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin((lam2 - lam1) / 2.0) ** 2
    h = min(1.0, h)
    return 2.0 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))


def lerp_coordinate(a: Coordinate, b: Coordinate, fraction: float) -> Coordinate:
    """Linearly interpolate latitude and longitude between two coordinates.

    Written as ``a * (1 - f) + b * f`` so that ``f == 0`` and ``f == 1`` return
    the end points bit for bit.
    """

    keep = 1.0 - fraction
    return (a[0] * keep + b[0] * fraction, a[1] * keep + b[1] * fraction)


def bearing_degrees(a: Coordinate, b: Coordinate) -> float:
    """Initial compass bearing from ``a`` towards ``b``: 0 is north, 90 is east."""

    phi1, lam1 = _radians(a)
    phi2, lam2 = _radians(b)
    east = math.sin(lam2 - lam1) * math.cos(phi2)
    north = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(lam2 - lam1)
    return math.degrees(math.atan2(east, north)) % 360.0
