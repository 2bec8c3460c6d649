"""Drives one export from waypoints to a finished video file.

The orchestrator runs the frame loop on its own worker thread and reports to
the caller only through ``on_progress`` and ``on_state`` callbacks, both
invoked from that worker. One export at a time: :meth:`ExportOrchestrator.start`
is a no-op while a render is in flight.
"""
from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple, Union

from .background import Background, MapBackdropRenderer, MapRegion, fit_region, region_for_camera
from .compositor import FrameCompositor, VehiclePose, markers_for, nearest_marker_name
from .config import ExportConfig, Waypoint
from .encoder import VideoEncodeSink
from .errors import (
    BackgroundGenerationFailure,
    BackgroundGenerationTimeout,
    Cancelled,
    ExportError,
    FrameCompositionFailure,
    InvalidRoute,
)
from .gazetteer import Gazetteer
from .geometry import Coordinate
from .metrics import measure_path
from .playback import PlaybackClock, auto_duration, ease_progress
from .sampler import AnimationSampler
from .smoothing import smooth_path

_logger = logging.getLogger(__name__)

Size = Tuple[int, int]

BACKGROUND_TIMEOUT = 10.0
PROGRESS_INTERVAL = 10
LOG_INTERVAL = 30


# ----------------------------------------------------------------------
# Render state
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Rendering:
    progress: float = 0.0


@dataclass(frozen=True)
class Completed:
    output_path: Path


@dataclass(frozen=True)
class Failed:
    reason: str
    error: Optional[ExportError] = field(default=None, compare=False)

    @property
    def cancelled(self) -> bool:
        return isinstance(self.error, Cancelled)


RenderState = Union[Idle, Rendering, Completed, Failed]


class BackgroundService(Protocol):
    def generate(self, region: MapRegion, size: Size) -> Background:
        ...


SinkFactory = Callable[[Path, Size, int], Any]


def default_sink_factory(path: Path, size: Size, frame_rate: int) -> VideoEncodeSink:
    return VideoEncodeSink(path, size, frame_rate)


@dataclass(frozen=True)
class ExportJob:
    """Everything one export needs, captured before the worker starts."""

    waypoints: Tuple[Waypoint, ...]
    config: ExportConfig
    output_path: Path

    @staticmethod
    def create(waypoints: Sequence[Waypoint], config: ExportConfig, output_path: Path) -> "ExportJob":
        return ExportJob(waypoints=tuple(waypoints), config=config, output_path=Path(output_path))

    @property
    def coordinates(self) -> List[Coordinate]:
        return [wp.coordinate for wp in self.waypoints if wp.coordinate is not None]


class ExportOrchestrator:
    def __init__(
        self,
        background_service: Optional[BackgroundService] = None,
        sink_factory: SinkFactory = default_sink_factory,
        background_timeout: float = BACKGROUND_TIMEOUT,
        progress_interval: int = PROGRESS_INTERVAL,
        on_progress: Optional[Callable[[float], None]] = None,
        on_state: Optional[Callable[[RenderState], None]] = None,
    ) -> None:
        self._background_service = background_service
        self._sink_factory = sink_factory
        self.background_timeout = background_timeout
        self.progress_interval = max(1, progress_interval)
        self._on_progress = on_progress
        self._on_state = on_state

        self._lock = threading.Lock()
        self._state: RenderState = Idle()
        self._cancel = threading.Event()
        self._sink: Any = None
        self._worker: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> RenderState:
        with self._lock:
            return self._state

    def start(self, job: ExportJob) -> bool:
        """Begin rendering ``job`` on a worker thread.

        Returns ``False`` without doing anything if an export is already
        rendering.
        """

        if not self._begin():
            _logger.info("Export already in progress; ignoring start request")
            return False
        self._worker = threading.Thread(
            target=self._execute, args=(job,), name="travelroute-export", daemon=True
        )
        self._worker.start()
        return True

    def run(self, job: ExportJob) -> RenderState:
        """Render ``job`` on the calling thread and return the final state."""

        if not self._begin():
            return self.state
        return self._execute(job)

    def wait(self, timeout: Optional[float] = None) -> RenderState:
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
        return self.state

    def cancel(self) -> None:
        """Ask the running export to stop at the next frame boundary."""

        self._cancel.set()
        sink = self._sink
        if sink is not None:
            sink.cancel()

    def acknowledge(self) -> None:
        """Return a finished export to ``Idle``."""

        with self._lock:
            if isinstance(self._state, (Completed, Failed)):
                self._state = Idle()
            state = self._state
        self._notify_state(state)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _begin(self) -> bool:
        with self._lock:
            if isinstance(self._state, Rendering):
                return False
            self._state = Rendering(0.0)
            self._cancel.clear()
            self._sink = None
        self._notify_state(Rendering(0.0))
        return True

    def _execute(self, job: ExportJob) -> RenderState:
        try:
            output = self._render(job)
        except ExportError as exc:
            self._abort_sink()
            final: RenderState = Failed(reason=exc.reason, error=exc)
            _logger.error("Export failed: %s (%s)", exc.reason, exc)
        except Exception as exc:
            self._abort_sink()
            error = FrameCompositionFailure(str(exc))
            final = Failed(reason=error.reason, error=error)
            _logger.exception("Export failed unexpectedly")
        else:
            final = Completed(output)
            _logger.info("Export finished: %s", output)
        finally:
            self._sink = None

        with self._lock:
            self._state = final
        self._notify_state(final)
        return final

    def _render(self, job: ExportJob) -> Path:
        config = job.config
        coordinates = job.coordinates
        if len(coordinates) < 2:
            raise InvalidRoute(f"{len(coordinates)} usable waypoint(s)")

        polyline = smooth_path(coordinates)
        metrics = measure_path(polyline)
        duration = config.duration_seconds or auto_duration(metrics.total)
        clock = PlaybackClock(duration_seconds=duration, frame_rate=config.frame_rate)
        total_frames = clock.total_frames
        size = config.size
        _logger.info(
            "Export start: %dx%d, %d fps, %.1fs (%d frames), route %.1f km, %d path points",
            size[0],
            size[1],
            config.frame_rate,
            duration,
            total_frames,
            metrics.total / 1000.0,
            len(polyline),
        )

        sampler = AnimationSampler(polyline, duration, metrics=metrics, camera=config.camera)
        if config.camera is not None:
            region = region_for_camera(config.camera, size)
        else:
            region = fit_region(polyline, size)
        background = self._generate_background(config, region, size)
        self._check_cancelled(0)

        markers = markers_for(job.waypoints)
        compositor = FrameCompositor(size, vehicle=config.vehicle, vehicle_scale=config.vehicle_scale)

        sink = self._sink_factory(job.output_path, size, config.frame_rate)
        self._sink = sink
        sink.open()
        if self._cancel.is_set():
            sink.cancel()

        for index in range(total_frames):
            self._check_cancelled(index)
            raw = clock.raw_progress_for_frame(index)
            state = sampler.sample(ease_progress(raw), raw_progress=raw)

            vehicle = None
            label = None
            if state.coordinate is not None:
                vehicle = VehiclePose(state.coordinate, state.heading)
                if config.show_label:
                    label = nearest_marker_name(state.coordinate, markers)

            try:
                frame = compositor.render(background, state.traveled, markers, vehicle, label)
            except ExportError:
                raise
            except Exception as exc:
                raise FrameCompositionFailure(f"Frame {index}: {exc}") from exc

            sink.push(frame, index)

            if index % self.progress_interval == 0:
                self._report_progress(raw)
            if index % LOG_INTERVAL == 0:
                _logger.info("Rendered frame %d/%d (%d%%)", index, total_frames, int(raw * 100))

        output = sink.finish()
        self._report_progress(1.0)
        return Path(output)

    def _generate_background(self, config: ExportConfig, region: MapRegion, size: Size) -> Background:
        service = self._background_service
        if service is None:
            service = MapBackdropRenderer(Gazetteer(), show_places=config.show_places)

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="travelroute-backdrop")
        try:
            future = executor.submit(service.generate, region, size)
            try:
                background = future.result(timeout=self.background_timeout)
            except concurrent.futures.TimeoutError as exc:
                raise BackgroundGenerationTimeout(
                    f"No backdrop after {self.background_timeout:g}s"
                ) from exc
            except ExportError:
                raise
            except Exception as exc:
                raise BackgroundGenerationFailure(str(exc)) from exc
        finally:
            executor.shutdown(wait=False)
        _logger.info("Backdrop generated")
        return background

    def _check_cancelled(self, index: int) -> None:
        if self._cancel.is_set():
            _logger.info("Cancellation observed at frame %d", index)
            raise Cancelled(f"Cancelled at frame {index}")

    def _abort_sink(self) -> None:
        sink = self._sink
        if sink is None:
            return
        sink.cancel()
        sink.discard()

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _report_progress(self, progress: float) -> None:
        with self._lock:
            if isinstance(self._state, Rendering) and progress < self._state.progress:
                return
            self._state = Rendering(progress)
        if self._on_progress is not None:
            self._on_progress(progress)

    def _notify_state(self, state: RenderState) -> None:
        if self._on_state is not None:
            self._on_state(state)
