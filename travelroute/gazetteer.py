"""Offline name <-> coordinate lookup backed by a small CSV of world cities."""
from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import Waypoint
from .geometry import Coordinate, haversine_m

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Place:
    country: str
    name: str
    latitude: float
    longitude: float

    @property
    def coordinate(self) -> Coordinate:
        return self.latitude, self.longitude

    def within(self, south: float, west: float, north: float, east: float) -> bool:
        """Edges count as inside."""

        return south <= self.latitude <= north and west <= self.longitude <= east

    @staticmethod
    def from_row(row: Dict[str, str]) -> "Place":
        return Place(
            country=row["country"].strip(),
            name=row["name"].strip(),
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
        )


_DATA_PATH = Path(__file__).resolve().parent / "data" / "places.csv"

DEFAULT_REVERSE_RADIUS_M = 50000.0


def load_places(path: Path = _DATA_PATH) -> List[Place]:
    """Read the ``country,name,latitude,longitude`` table at ``path``."""

    with Path(path).open("r", encoding="utf8", newline="") as handle:
        return [Place.from_row(row) for row in csv.DictReader(handle)]


class Gazetteer:
    """Looks up places by name and by proximity."""

    def __init__(self, places: Optional[Sequence[Place]] = None) -> None:
        self.places: List[Place] = list(places) if places is not None else load_places()
        self._by_name: Dict[str, Place] = {}
        for place in self.places:
            self._by_name.setdefault(place.name.casefold(), place)

    def lookup_coordinate(self, name: str) -> Optional[Coordinate]:
        """Return the coordinate for ``name`` or ``None`` when it is unknown."""

        place = self._by_name.get(name.strip().casefold())
        return place.coordinate if place else None

    def reverse_lookup_name(
        self, coordinate: Coordinate, max_distance_m: float = DEFAULT_REVERSE_RADIUS_M
    ) -> Optional[str]:
        """Return the nearest place name within ``max_distance_m`` or ``None``."""

        best: Optional[Place] = None
        best_distance = max_distance_m
        for place in self.places:
            distance = haversine_m(coordinate, place.coordinate)
            if distance <= best_distance:
                best, best_distance = place, distance
        return best.name if best else None

    def places_within(self, south: float, west: float, north: float, east: float) -> List[Place]:
        return [place for place in self.places if place.within(south, west, north, east)]


def resolve_waypoints(waypoints: Sequence[Waypoint], gazetteer: Gazetteer) -> List[Waypoint]:
    """Fill in missing coordinates by name and drop waypoints that stay unresolved.

    Waypoints that already have coordinates but no name get one from a
    reverse lookup when a place is close enough.
    """

    resolved: List[Waypoint] = []
    for waypoint in waypoints:
        if waypoint.coordinate is None:
            coordinate = gazetteer.lookup_coordinate(waypoint.name or "")
            if coordinate is None:
                _logger.warning("Dropping waypoint %r: place not found", waypoint.name)
                continue
            waypoint = waypoint.with_coordinate(coordinate)
        elif not waypoint.display_name:
            name = gazetteer.reverse_lookup_name(waypoint.coordinate)
            if name is not None:
                waypoint = Waypoint(name=name, latitude=waypoint.latitude, longitude=waypoint.longitude)
        resolved.append(waypoint)
    return resolved
