"""Configuration loading utilities for route video exports."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
import json

Coordinate = Tuple[float, float]

FRAME_RATE = 24
MIN_DURATION = 3.0
MAX_DURATION = 60.0
DEFAULT_DURATION = 12.0
MIN_VEHICLE_SCALE = 0.2
MAX_VEHICLE_SCALE = 1.5
DEFAULT_CAMERA_DISTANCE = 50000.0


class AspectRatio(Enum):
    SQUARE = "square"
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"

    @property
    def size(self) -> Tuple[int, int]:
        """Frame size in pixels as ``(width, height)``."""

        return _ASPECT_SIZES[self]

    @staticmethod
    def parse(value: Any) -> "AspectRatio":
        if isinstance(value, AspectRatio):
            return value
        key = str(value).strip().lower()
        key = _ASPECT_ALIASES.get(key, key)
        try:
            return AspectRatio(key)
        except ValueError as exc:
            raise ValueError(
                f"Unknown aspect ratio {value!r}; expected one of square, vertical, horizontal."
            ) from exc


_ASPECT_SIZES: Dict[AspectRatio, Tuple[int, int]] = {
    AspectRatio.SQUARE: (1080, 1080),
    AspectRatio.VERTICAL: (720, 1280),
    AspectRatio.HORIZONTAL: (1280, 720),
}

_ASPECT_ALIASES: Dict[str, str] = {"1:1": "square", "9:16": "vertical", "16:9": "horizontal"}


class VehicleType(Enum):
    CAR = "car"
    PLANE = "plane"
    TRAIN = "train"
    SHIP = "ship"
    BIKE = "bike"
    WALK = "walk"

    @staticmethod
    def parse(value: Any) -> "VehicleType":
        if isinstance(value, VehicleType):
            return value
        try:
            return VehicleType(str(value).strip().lower())
        except ValueError as exc:
            names = ", ".join(v.value for v in VehicleType)
            raise ValueError(f"Unknown vehicle {value!r}; expected one of {names}.") from exc


def _parse_coordinate(value: Any) -> Coordinate:
    if isinstance(value, dict):
        lat = value["lat"] if "lat" in value else value["latitude"]
        lon = value["lon"] if "lon" in value else value["longitude"]
        return float(lat), float(lon)
    lat, lon = value
    return float(lat), float(lon)


@dataclass(frozen=True)
class Waypoint:
    """A single stop on the route; coordinates may still need geocoding."""

    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude

    @property
    def display_name(self) -> str:
        return self.name.strip() if self.name and self.name.strip() else ""

    def with_coordinate(self, coordinate: Coordinate) -> "Waypoint":
        return Waypoint(name=self.name, latitude=coordinate[0], longitude=coordinate[1])

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "Waypoint":
        if not isinstance(data, dict):
            raise ValueError("Each waypoint must be a mapping.")
        name = data.get("name") or data.get("city")
        lat = data["lat"] if "lat" in data else data.get("latitude")
        lon = data["lon"] if "lon" in data else data.get("longitude")
        if (lat is None) != (lon is None):
            raise ValueError(f"Waypoint {name or '?'} needs both latitude and longitude.")
        if name is None and lat is None:
            raise ValueError("A waypoint needs a name or a coordinate.")
        return Waypoint(
            name=str(name) if name is not None else None,
            latitude=float(lat) if lat is not None else None,
            longitude=float(lon) if lon is not None else None,
        )

    def to_mapping(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.name is not None:
            data["name"] = self.name
        if self.coordinate is not None:
            data["lat"], data["lon"] = self.coordinate
        return data


@dataclass(frozen=True)
class CameraOverride:
    """A fixed camera taken from an interactive preview."""

    center: Coordinate
    distance_m: float = DEFAULT_CAMERA_DISTANCE
    heading: float = 0.0
    pitch: float = 0.0

    @staticmethod
    def from_mapping(data: Optional[Dict[str, Any]]) -> Optional["CameraOverride"]:
        if not data:
            return None
        try:
            center = _parse_coordinate(data["center"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError("Camera override needs a 'center' of [lat, lon].") from exc
        distance = float(data.get("distance_m", data.get("distance", DEFAULT_CAMERA_DISTANCE)))
        if distance <= 0:
            raise ValueError("Camera distance must be positive.")
        return CameraOverride(
            center=center,
            distance_m=distance,
            heading=float(data.get("heading", 0.0)),
            pitch=float(data.get("pitch", 0.0)),
        )


@dataclass(frozen=True)
class ExportConfig:
    """Settings for one export run.

    ``duration_seconds`` of ``None`` means "derive it from route length".
    """

    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    duration_seconds: Optional[float] = DEFAULT_DURATION
    frame_rate: int = FRAME_RATE
    vehicle: VehicleType = VehicleType.CAR
    vehicle_scale: float = 1.0
    camera: Optional[CameraOverride] = None
    show_label: bool = True
    show_places: bool = True

    def __post_init__(self) -> None:
        if self.frame_rate != FRAME_RATE:
            raise ValueError(f"Frame rate is fixed at {FRAME_RATE} fps.")
        if self.duration_seconds is not None and not (
            MIN_DURATION <= self.duration_seconds <= MAX_DURATION
        ):
            raise ValueError(
                f"Duration must be between {MIN_DURATION:g} and {MAX_DURATION:g} seconds."
            )
        if not MIN_VEHICLE_SCALE <= self.vehicle_scale <= MAX_VEHICLE_SCALE:
            raise ValueError(
                f"Vehicle scale must be between {MIN_VEHICLE_SCALE} and {MAX_VEHICLE_SCALE}."
            )

    @property
    def size(self) -> Tuple[int, int]:
        return self.aspect_ratio.size

    @staticmethod
    def from_mapping(data: Optional[Dict[str, Any]]) -> "ExportConfig":
        if not data:
            return ExportConfig()
        raw_duration = data.get("duration_seconds", data.get("duration", DEFAULT_DURATION))
        duration: Optional[float]
        if raw_duration in (None, "auto") or float(raw_duration) == 0:
            duration = None
        else:
            duration = float(raw_duration)
        return ExportConfig(
            aspect_ratio=AspectRatio.parse(data.get("aspect_ratio", data.get("aspect", "square"))),
            duration_seconds=duration,
            frame_rate=int(data.get("frame_rate", data.get("fps", FRAME_RATE))),
            vehicle=VehicleType.parse(data.get("vehicle", "car")),
            vehicle_scale=float(data.get("vehicle_scale", 1.0)),
            camera=CameraOverride.from_mapping(data.get("camera")),
            show_label=bool(data.get("show_label", True)),
            show_places=bool(data.get("show_places", True)),
        )


@dataclass
class ExportDocument:
    """Top-level configuration file: a route plus how to export it."""

    name: str = ""
    waypoints: List[Waypoint] = field(default_factory=list)
    export: ExportConfig = field(default_factory=ExportConfig)
    output_path: Path = Path("travelroute.mp4")

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "ExportDocument":
        waypoints_data = data.get("waypoints") or []
        if not isinstance(waypoints_data, Iterable) or isinstance(waypoints_data, (str, bytes)):
            raise ValueError("Waypoints must be provided as a list of mappings.")

        waypoints = [Waypoint.from_mapping(item) for item in waypoints_data]
        output_path = data.get("output") or data.get("output_path") or "travelroute.mp4"

        return ExportDocument(
            name=str(data.get("name", data.get("title", ""))),
            waypoints=waypoints,
            export=ExportConfig.from_mapping(data.get("export")),
            output_path=Path(output_path),
        )


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:  # pragma: no cover - optional dependency
        import yaml  # type: ignore
    except Exception as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "YAML configuration requested but PyYAML is not available. Install with 'pip install pyyaml'."
        ) from exc
    with path.open("r", encoding="utf8") as handle:
        try:
            return yaml.safe_load(handle)  # type: ignore[no-any-return]
        except yaml.YAMLError as exc:
            raise ValueError(f"Malformed YAML in {path}: {exc}") from exc


def load_config(path: Path) -> ExportDocument:
    """Load an :class:`ExportDocument` from a JSON or YAML file."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    if path.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(path)
    else:
        with path.open("r", encoding="utf8") as handle:
            raw = json.load(handle)

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level.")

    return ExportDocument.from_mapping(raw)
