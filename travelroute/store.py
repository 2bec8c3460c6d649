"""JSON file store for saved routes, keyed by route id."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .route import Route

_logger = logging.getLogger(__name__)


class RouteStore:
    """Keeps every saved route in one JSON document.

    Writes go to a temporary file that replaces the store in one step, so a
    crash never leaves a half-written store behind.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf8") as handle:
            raw = json.load(handle)
        if not isinstance(raw, dict):
            raise ValueError(f"Route store {self.path} must contain a mapping.")
        return raw

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".routes-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def save(self, route: Route) -> None:
        data = self._read()
        data[route.id] = route.to_mapping()
        self._write(data)
        _logger.info("Saved route %s (%s, %d places)", route.id, route.name, len(route.waypoints))

    def get(self, route_id: str) -> Optional[Route]:
        entry = self._read().get(route_id)
        return Route.from_mapping(entry) if entry is not None else None

    def delete(self, route_id: str) -> bool:
        data = self._read()
        if data.pop(route_id, None) is None:
            return False
        self._write(data)
        _logger.info("Deleted route %s", route_id)
        return True

    def load_all(self) -> List[Route]:
        """All saved routes, most recently updated first."""

        routes = [Route.from_mapping(entry) for entry in self._read().values()]
        routes.sort(key=lambda route: route.updated_at, reverse=True)
        return routes
