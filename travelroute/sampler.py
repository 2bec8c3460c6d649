"""Resolve vehicle position, heading and camera pose from eased progress."""
from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .config import CameraOverride
from .geometry import Coordinate, bearing_degrees, lerp_coordinate
from .metrics import SegmentDistances, measure_path

_logger = logging.getLogger(__name__)


REFERENCE_DISTANCE_M = 500000.0
REFERENCE_DURATION_S = 30.0
BASE_ALTITUDE_M = 80000.0
MIN_ALTITUDE_M = 40000.0
MAX_ALTITUDE_M = 200000.0
ZOOM_TRANSITION = 0.05
BOUNDARY_PULLBACK = 1.5


@dataclass(frozen=True)
class PlaybackState:
    """Snapshot of the animation at one tick.

    ``coordinate`` is ``None`` when there is no path to animate; the caller
    skips rendering for such a tick.
    """

    raw_progress: float
    eased_progress: float
    segment_index: int = 0
    coordinate: Optional[Coordinate] = None
    heading: float = 0.0
    traveled: Tuple[Coordinate, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.coordinate is None


@dataclass(frozen=True)
class CameraPose:
    center: Coordinate
    altitude: float
    heading: float = 0.0
    pitch: float = 0.0


def sample_path(
    eased_progress: float,
    polyline: Sequence[Coordinate],
    metrics: SegmentDistances,
    raw_progress: Optional[float] = None,
) -> PlaybackState:
    """Locate the point ``eased_progress`` of the way along ``polyline`` by distance."""

    raw = eased_progress if raw_progress is None else raw_progress
    if len(polyline) < 2:
        if polyline:
            only = polyline[0]
            return PlaybackState(raw, eased_progress, 0, only, 0.0, (only,))
        return PlaybackState(raw, eased_progress)

    progress = min(1.0, max(0.0, eased_progress))
    total = metrics.total
    target = progress * total
    last_segment = len(polyline) - 2

    if target >= total:
        index = last_segment
        fraction = 1.0
    else:
        index = min(max(bisect_right(metrics.cumulative, target) - 1, 0), last_segment)
        length = metrics.segments[index]
        fraction = (target - metrics.cumulative[index]) / length if length > 0 else 0.0
        fraction = min(1.0, max(0.0, fraction))

    start, end = polyline[index], polyline[index + 1]
    current = lerp_coordinate(start, end, fraction)
    heading = bearing_degrees(start, end)
    traveled = tuple(polyline[: index + 1]) + (current,)

    return PlaybackState(
        raw_progress=raw,
        eased_progress=eased_progress,
        segment_index=index,
        coordinate=current,
        heading=heading,
        traveled=traveled,
    )


def camera_altitude(total_distance_m: float, duration_seconds: float, progress: float) -> float:
    """Camera altitude in metres for the given route, duration and eased progress.

    Longer routes and shorter videos pull the camera back. For the first and
    last 5% of playback the altitude blends towards 1.5x so the camera opens
    and closes on a wider view.
    """

    route_factor = total_distance_m / REFERENCE_DISTANCE_M
    duration_factor = duration_seconds / REFERENCE_DURATION_S
    target = BASE_ALTITUDE_M * route_factor / max(duration_factor, 0.5)
    target = min(max(target, MIN_ALTITUDE_M), MAX_ALTITUDE_M)

    wide = target * BOUNDARY_PULLBACK
    if progress < ZOOM_TRANSITION:
        t = progress / ZOOM_TRANSITION
        return wide + (target - wide) * t
    if progress > 1.0 - ZOOM_TRANSITION:
        t = (progress - (1.0 - ZOOM_TRANSITION)) / ZOOM_TRANSITION
        return target + (wide - target) * t
    return target


class AnimationSampler:
    """Owns one session's dense polyline and its metrics."""

    def __init__(
        self,
        polyline: Sequence[Coordinate],
        duration_seconds: float,
        metrics: Optional[SegmentDistances] = None,
        camera: Optional[CameraOverride] = None,
    ) -> None:
        self.polyline: Tuple[Coordinate, ...] = tuple(polyline)
        self.metrics = metrics if metrics is not None else measure_path(self.polyline)
        self.duration_seconds = duration_seconds
        self.camera = camera

    @property
    def total_distance(self) -> float:
        return self.metrics.total

    def sample(self, eased_progress: float, raw_progress: Optional[float] = None) -> PlaybackState:
        state = sample_path(eased_progress, self.polyline, self.metrics, raw_progress)
        _logger.debug(
            "progress=%.3f segment=%d traveled=%d coordinate=%s",
            eased_progress,
            state.segment_index,
            len(state.traveled),
            state.coordinate,
        )
        return state

    def camera_pose(self, state: PlaybackState) -> Optional[CameraPose]:
        if self.camera is not None:
            return CameraPose(
                center=self.camera.center,
                altitude=self.camera.distance_m,
                heading=self.camera.heading,
                pitch=self.camera.pitch,
            )
        if state.coordinate is None:
            return None
        altitude = camera_altitude(self.total_distance, self.duration_seconds, state.eased_progress)
        # North up, looking straight down.
        return CameraPose(center=state.coordinate, altitude=altitude)
