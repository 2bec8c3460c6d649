"""Tests for region fitting, projection and the offline backdrop."""

from __future__ import annotations

import math

import pytest

from travelroute.background import (
    MAX_LON_SPAN,
    MIN_SPAN_DEGREES,
    REGION_MARGIN,
    MapBackdropRenderer,
    MapRegion,
    Projector,
    fit_region,
    region_for_camera,
)
from travelroute.config import CameraOverride
from travelroute.gazetteer import Gazetteer, Place

# ---------------------------------------------------------------------------
# regions
# ---------------------------------------------------------------------------


def test_fit_region_adds_margin_around_route():
    region = fit_region([(10.0, 20.0), (14.0, 30.0)])

    assert region.center == (12.0, 25.0)
    assert region.lat_span == pytest.approx(4.0 * REGION_MARGIN)
    assert region.lon_span == pytest.approx(10.0 * REGION_MARGIN)


def test_fit_region_has_minimum_span():
    region = fit_region([(51.5, -0.12), (51.5, -0.12)])

    assert region.lat_span == MIN_SPAN_DEGREES
    assert region.lon_span == MIN_SPAN_DEGREES


def test_fit_region_without_coordinates_is_whole_world():
    region = fit_region([])
    assert region.lon_span == MAX_LON_SPAN


@pytest.mark.parametrize("size", [(1080, 1080), (720, 1280), (1280, 720)])
def test_fitted_region_keeps_route_and_matches_aspect(size):
    coords = [(45.0, 5.0), (47.0, 9.0)]
    region = fit_region(coords, size)

    for lat, lon in coords:
        assert region.south <= lat <= region.north
        assert region.west <= lon <= region.east
    projector = Projector(region, size)
    # One degree of latitude and one (cos-corrected) degree of longitude cover
    # similar pixel distances at the centre.
    x0, y0 = projector((46.0, 7.0))
    x1, _ = projector((46.0, 8.0))
    _, y1 = projector((45.0, 7.0))

    assert (x1 - x0) / math.cos(math.radians(46.0)) == pytest.approx(y1 - y0, rel=1e-6)


def test_region_for_camera_uses_distance():
    region = region_for_camera(CameraOverride(center=(0.0, 0.0), distance_m=111_000.0))

    assert region.lat_span == pytest.approx(1.0)
    assert region.lon_span == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# projector
# ---------------------------------------------------------------------------


def test_projector_maps_corners_and_centre():
    region = MapRegion(center=(0.0, 0.0), lat_span=10.0, lon_span=20.0)
    project = Projector(region, (200, 100))

    assert project((5.0, -10.0)) == pytest.approx((0.0, 0.0))
    assert project((-5.0, 10.0)) == pytest.approx((200.0, 100.0))
    assert project((0.0, 0.0)) == pytest.approx((100.0, 50.0))
    assert project.project_all([(0.0, 0.0)]) == [pytest.approx((100.0, 50.0))]


# ---------------------------------------------------------------------------
# renderer
# ---------------------------------------------------------------------------


def test_backdrop_has_requested_size_and_shares_projection():
    region = fit_region([(48.85, 2.35), (43.30, 5.37)], (320, 180))
    gazetteer = Gazetteer([Place("France", "Paris", 48.8566, 2.3522)])

    background = MapBackdropRenderer(gazetteer).generate(region, (320, 180))

    assert background.image.size == (320, 180)
    assert background.image.mode == "RGB"
    assert background.projector.region == region
    assert background.projector.size == (320, 180)


def test_backdrop_over_open_ocean_is_ocean_coloured():
    region = MapRegion(center=(-40.0, -120.0), lat_span=4.0, lon_span=4.0)

    background = MapBackdropRenderer(show_places=False).generate(region, (64, 64))

    assert background.image.getpixel((32, 32)) == (0xCF, 0xE3, 0xF2)
