"""Immutable route snapshots and their validation rules.

Editing a route never mutates it: each operation returns a new snapshot
with a refreshed ``updated_at``. Persisting a snapshot is an explicit call
on :class:`travelroute.store.RouteStore`.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .config import Waypoint

MIN_ROUTE_WAYPOINTS = 2


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Route:
    name: str
    waypoints: Tuple[Waypoint, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def _touched(self, **changes: Any) -> "Route":
        return replace(self, updated_at=_now(), **changes)

    def renamed(self, name: str) -> "Route":
        return self._touched(name=name)

    def with_waypoint(self, waypoint: Waypoint, index: Optional[int] = None) -> "Route":
        points = list(self.waypoints)
        if index is None:
            points.append(waypoint)
        else:
            points.insert(index, waypoint)
        return self._touched(waypoints=tuple(points))

    def without_waypoint(self, index: int) -> "Route":
        if not 0 <= index < len(self.waypoints):
            return self
        points = list(self.waypoints)
        del points[index]
        return self._touched(waypoints=tuple(points))

    def reordered(self, source: int, destination: int) -> "Route":
        """Move the waypoint at ``source`` to ``destination``; out of range is a no-op."""

        count = len(self.waypoints)
        if not (0 <= source < count and 0 <= destination < count):
            return self
        points = list(self.waypoints)
        points.insert(destination, points.pop(source))
        return self._touched(waypoints=tuple(points))

    def replace_waypoint(self, index: int, waypoint: Waypoint) -> "Route":
        if not 0 <= index < len(self.waypoints):
            return self
        points = list(self.waypoints)
        points[index] = waypoint
        return self._touched(waypoints=tuple(points))

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "waypoints": [wp.to_mapping() for wp in self.waypoints],
        }

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "Route":
        return Route(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            waypoints=tuple(Waypoint.from_mapping(item) for item in data.get("waypoints", [])),
        )


def validate_waypoint(waypoint: Waypoint) -> Optional[str]:
    """Return why ``waypoint`` is unusable, or ``None`` if it is fine."""

    if waypoint.name is not None:
        if not waypoint.name.strip():
            return "Place name must not be blank."
        if waypoint.coordinate is None:
            return None
    coordinate = waypoint.coordinate
    if coordinate is None:
        return "Provide a place name or a latitude and longitude."
    lat, lon = coordinate
    if not -90.0 <= lat <= 90.0:
        return "Latitude must be between -90 and 90."
    if not -180.0 <= lon <= 180.0:
        return "Longitude must be between -180 and 180."
    return None


def validate_route(route: Route) -> Optional[str]:
    if len(route.waypoints) < MIN_ROUTE_WAYPOINTS:
        return f"A route needs at least {MIN_ROUTE_WAYPOINTS} places."
    for waypoint in route.waypoints:
        reason = validate_waypoint(waypoint)
        if reason is not None:
            return reason
    return None
