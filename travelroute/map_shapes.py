"""Coarse land outlines for the offline map backdrop.

The outlines are hand-placed at roughly five to ten degree resolution. They
give an export some geographic context when no tile service is available and
are not meant for navigation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

Coordinate = Tuple[float, float]


@dataclass(frozen=True)
class LandMass:
    name: str
    outline: Tuple[Coordinate, ...]

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """``(south, west, north, east)`` of the outline."""

        lats = [lat for lat, _ in self.outline]
        lons = [lon for _, lon in self.outline]
        return min(lats), min(lons), max(lats), max(lons)

    def intersects(self, south: float, west: float, north: float, east: float) -> bool:
        s, w, n, e = self.bounds
        return not (n < south or s > north or e < west or w > east)


LAND_MASSES: Tuple[LandMass, ...] = (
    LandMass(
        "north_america",
        (
            (71.0, -156.0), (60.0, -165.0), (58.0, -137.0), (49.0, -125.0),
            (40.0, -124.0), (32.5, -117.0), (23.0, -110.0), (16.0, -95.0),
            (15.0, -87.0), (8.5, -79.5), (9.5, -76.0), (18.5, -88.0),
            (21.0, -87.0), (19.0, -96.0), (26.0, -97.5), (29.5, -94.0),
            (29.0, -89.0), (30.0, -84.0), (25.2, -81.0), (27.0, -80.0),
            (35.0, -75.5), (41.0, -71.0), (45.0, -66.0), (47.0, -53.0),
            (52.0, -56.0), (60.0, -64.5), (58.5, -78.0), (62.5, -77.5),
            (68.0, -81.0), (69.5, -95.0), (68.5, -115.0), (70.0, -130.0),
            (71.0, -156.0),
        ),
    ),
    LandMass(
        "greenland",
        (
            (83.0, -40.0), (81.0, -15.0), (70.0, -22.0), (60.0, -43.0),
            (66.0, -53.5), (76.0, -68.0), (82.0, -60.0), (83.0, -40.0),
        ),
    ),
    LandMass(
        "south_america",
        (
            (12.0, -72.0), (10.5, -62.0), (5.0, -52.0), (-1.0, -48.0),
            (-5.0, -35.0), (-13.0, -38.5), (-23.0, -42.0), (-34.0, -53.5),
            (-39.0, -62.0), (-47.0, -65.5), (-54.5, -68.0), (-52.0, -75.0),
            (-41.0, -73.5), (-30.0, -71.5), (-18.0, -70.5), (-14.0, -76.0),
            (-5.0, -81.0), (1.0, -80.0), (8.0, -77.5), (12.0, -72.0),
        ),
    ),
    LandMass(
        "eurasia",
        (
            (36.0, -9.0), (43.5, -9.0), (48.5, -4.5), (51.0, 2.0),
            (54.0, 8.5), (57.5, 8.0), (59.0, 5.0), (65.0, 12.0),
            (71.0, 25.0), (69.0, 40.0), (68.0, 55.0), (73.0, 70.0),
            (76.0, 100.0), (73.0, 130.0), (70.0, 160.0), (66.0, 179.0),
            (62.0, 175.0), (60.0, 163.0), (51.0, 156.5), (59.0, 143.0),
            (53.0, 141.0), (42.5, 132.0), (38.0, 128.5), (34.5, 126.5),
            (39.0, 121.5), (30.0, 122.0), (22.5, 114.0), (21.5, 108.0),
            (10.0, 106.5), (1.5, 104.0), (8.0, 98.0), (16.0, 97.5),
            (22.0, 91.5), (20.0, 86.5), (13.0, 80.0), (8.0, 77.5),
            (21.0, 72.5), (25.0, 66.5), (25.5, 57.0), (22.5, 59.5),
            (16.5, 52.0), (12.5, 44.0), (21.0, 39.0), (28.0, 34.5),
            (31.5, 34.5), (36.5, 36.0), (36.5, 28.0), (40.5, 26.0),
            (38.0, 23.5), (40.0, 19.5), (45.5, 13.5), (40.0, 18.5),
            (38.0, 15.5), (44.0, 8.5), (43.0, 3.0), (36.0, -5.5),
            (36.0, -9.0),
        ),
    ),
    LandMass(
        "great_britain",
        (
            (58.5, -3.0), (57.5, -6.0), (54.5, -5.0), (51.5, -5.5),
            (50.5, 0.0), (51.5, 1.5), (53.0, 0.5), (56.0, -2.0),
            (58.5, -3.0),
        ),
    ),
    LandMass(
        "japan",
        (
            (45.5, 142.0), (43.0, 145.5), (40.0, 142.0), (35.0, 140.5),
            (33.5, 135.5), (31.0, 130.5), (34.0, 130.5), (37.0, 137.0),
            (41.5, 140.0), (45.5, 142.0),
        ),
    ),
    LandMass(
        "africa",
        (
            (35.5, -6.0), (37.0, 10.0), (32.5, 15.0), (31.0, 20.0),
            (31.5, 32.0), (22.0, 36.5), (15.0, 39.5), (11.5, 43.5),
            (11.5, 51.0), (2.0, 45.5), (-4.5, 39.5), (-10.5, 40.5),
            (-15.0, 40.5), (-25.0, 35.0), (-34.0, 26.0), (-34.5, 18.5),
            (-29.0, 16.5), (-17.0, 11.5), (-9.0, 13.0), (-5.0, 12.0),
            (4.0, 9.0), (4.5, 2.0), (5.0, -4.0), (4.5, -7.5),
            (10.0, -14.5), (15.0, -17.5), (21.0, -17.0), (28.0, -13.0),
            (35.5, -6.0),
        ),
    ),
    LandMass(
        "madagascar",
        (
            (-12.0, 49.5), (-17.0, 50.5), (-25.5, 47.0), (-24.0, 43.5),
            (-16.0, 44.5), (-12.0, 49.5),
        ),
    ),
    LandMass(
        "australia",
        (
            (-11.0, 142.5), (-18.0, 146.0), (-25.0, 153.0), (-33.0, 152.0),
            (-37.5, 150.0), (-38.5, 146.0), (-38.0, 140.5), (-35.0, 136.5),
            (-32.0, 133.5), (-34.0, 123.5), (-35.0, 117.0), (-31.5, 115.5),
            (-22.0, 113.5), (-20.0, 119.0), (-14.5, 126.0), (-12.0, 131.5),
            (-12.5, 136.5), (-17.5, 140.5), (-11.0, 142.5),
        ),
    ),
    LandMass(
        "new_zealand",
        (
            (-34.5, 173.0), (-41.0, 176.5), (-46.5, 169.0), (-44.0, 168.0),
            (-40.5, 172.5), (-34.5, 173.0),
        ),
    ),
    LandMass(
        "antarctica",
        (
            (-64.0, -180.0), (-66.0, -120.0), (-72.0, -75.0), (-63.0, -57.0),
            (-70.0, -10.0), (-68.0, 40.0), (-66.0, 90.0), (-66.5, 140.0),
            (-71.0, 180.0), (-90.0, 180.0), (-90.0, -180.0), (-64.0, -180.0),
        ),
    ),
)


def land_masses_in(south: float, west: float, north: float, east: float) -> List[LandMass]:
    """Return the land masses whose bounding box touches the given box."""

    return [land for land in LAND_MASSES if land.intersects(south, west, north, east)]
