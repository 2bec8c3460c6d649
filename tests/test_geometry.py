"""Tests for the geodesy helpers."""

from __future__ import annotations

import pytest

from travelroute.geometry import bearing_degrees, haversine_m, lerp_coordinate


def test_haversine_known_distances():
    assert haversine_m((0.0, 0.0), (0.0, 0.0)) == 0.0
    # Paris to London is about 344 km.
    assert haversine_m((48.8566, 2.3522), (51.5074, -0.1278)) == pytest.approx(343_500, rel=5e-3)
    # Antipodal points are half the circumference apart.
    assert haversine_m((0.0, 0.0), (0.0, 180.0)) == pytest.approx(20_015_000, rel=1e-3)


def test_haversine_is_symmetric():
    a, b = (35.6762, 139.6503), (-33.8688, 151.2093)
    assert haversine_m(a, b) == pytest.approx(haversine_m(b, a))


@pytest.mark.parametrize(
    "target, expected",
    [
        ((1.0, 0.0), 0.0),
        ((0.0, 1.0), 90.0),
        ((-1.0, 0.0), 180.0),
        ((0.0, -1.0), 270.0),
    ],
)
def test_bearing_compass_points(target, expected):
    assert bearing_degrees((0.0, 0.0), target) == pytest.approx(expected)


def test_bearing_stays_in_range():
    bearing = bearing_degrees((10.0, 10.0), (9.0, 9.0))
    assert 180.0 < bearing < 270.0


def test_lerp_end_points_are_exact():
    a, b = (0.1, 0.7), (12.3, -45.6)

    assert lerp_coordinate(a, b, 0.0) == a
    assert lerp_coordinate(a, b, 1.0) == b
    assert lerp_coordinate(a, b, 0.5) == pytest.approx((6.2, -22.45))
