"""Tests for the export orchestrator with fake backdrops and sinks."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest
from PIL import Image

from travelroute.background import Background, Projector
from travelroute.config import AspectRatio, ExportConfig, Waypoint
from travelroute.encoder import VideoEncodeSink
from travelroute.errors import (
    BackgroundGenerationFailure,
    BackgroundGenerationTimeout,
    Cancelled,
    EncoderBackpressureTimeout,
    InvalidRoute,
)
from travelroute.exporter import Completed, ExportJob, ExportOrchestrator, Failed, Idle, Rendering
from travelroute.playback import PlaybackClock

PARIS = Waypoint(name="Paris", latitude=48.85, longitude=2.35)
LYON = Waypoint(name="Lyon", latitude=45.76, longitude=4.84)
MARSEILLE = Waypoint(name="Marseille", latitude=43.30, longitude=5.37)


# ---------------------------------------------------------------------------
# fakes
# ---------------------------------------------------------------------------


class PlainBackdrop:
    def __init__(self, delay: float = 0.0, error: Exception = None) -> None:
        self.delay = delay
        self.error = error
        self.calls = 0

    def generate(self, region, size):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return Background(image=Image.new("RGB", size, (200, 220, 240)), projector=Projector(region, size))


class RecordingSink:
    def __init__(self, path: Path, size, frame_rate: int) -> None:
        self.path = path
        self.size = size
        self.frame_rate = frame_rate
        self.pushed = []
        self.opened = False
        self.finished = False
        self.cancelled = False
        self.discarded = False
        self.on_push = None
        self.fail_at = None
        self.open_gate = None

    def open(self):
        if self.open_gate is not None:
            self.open_gate.wait()
        self.opened = True
        return self

    def push(self, frame, index):
        if self.cancelled:
            raise Cancelled("sink cancelled")
        if index == self.fail_at:
            raise EncoderBackpressureTimeout(f"frame {index}")
        assert frame.shape == (self.size[1], self.size[0], 3)
        self.pushed.append(index)
        if self.on_push is not None:
            self.on_push(index)
        return index / self.frame_rate

    def finish(self):
        self.finished = True
        return self.path

    def cancel(self):
        self.cancelled = True

    def discard(self):
        self.discarded = True


class SinkFactory:
    def __init__(self, configure=None) -> None:
        self.sinks = []
        self.configure = configure

    def __call__(self, path, size, frame_rate):
        sink = RecordingSink(path, size, frame_rate)
        if self.configure is not None:
            self.configure(sink)
        self.sinks.append(sink)
        return sink


def _config(**changes) -> ExportConfig:
    defaults = dict(aspect_ratio=AspectRatio.HORIZONTAL, duration_seconds=3.0)
    defaults.update(changes)
    return ExportConfig(**defaults)


def _job(tmp_path, waypoints=(PARIS, LYON, MARSEILLE), **changes) -> ExportJob:
    return ExportJob.create(waypoints, _config(**changes), tmp_path / "route.mp4")


# ---------------------------------------------------------------------------
# success
# ---------------------------------------------------------------------------


def test_job_coordinates_skip_unresolved_waypoints():
    job = ExportJob.create([PARIS, Waypoint(name="Nowhere"), LYON], _config(), "route.mp4")

    assert job.coordinates == [(48.85, 2.35), (45.76, 4.84)]
    assert job.output_path == Path("route.mp4")
    assert isinstance(job.waypoints, tuple)


def test_export_completes_and_pushes_every_frame(tmp_path):
    factory = SinkFactory()
    progress = []
    states = []
    orchestrator = ExportOrchestrator(
        background_service=PlainBackdrop(),
        sink_factory=factory,
        on_progress=progress.append,
        on_state=states.append,
    )

    final = orchestrator.run(_job(tmp_path))

    assert final == Completed(tmp_path / "route.mp4")
    assert orchestrator.state == final
    sink = factory.sinks[0]
    assert sink.opened and sink.finished
    assert sink.pushed == list(range(72))
    assert sink.size == (1280, 720)
    assert states[0] == Rendering(0.0)
    assert states[-1] == final
    assert progress[-1] == 1.0
    assert all(b >= a for a, b in zip(progress, progress[1:]))


def test_auto_duration_uses_route_length(tmp_path):
    factory = SinkFactory()
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=factory)

    # About 660 km, which maps to the 3 second floor.
    final = orchestrator.run(_job(tmp_path, duration_seconds=None))

    assert isinstance(final, Completed)
    assert len(factory.sinks[0].pushed) == 72


def test_acknowledge_returns_to_idle(tmp_path):
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=SinkFactory())
    orchestrator.run(_job(tmp_path))

    orchestrator.acknowledge()
    assert orchestrator.state == Idle()


def test_start_runs_on_worker_thread(tmp_path):
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=SinkFactory())

    assert orchestrator.start(_job(tmp_path)) is True
    final = orchestrator.wait(timeout=60)

    assert isinstance(final, Completed)


def test_second_start_is_ignored_while_rendering(tmp_path):
    gate = threading.Event()
    factory = SinkFactory(configure=lambda sink: setattr(sink, "open_gate", gate))
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=factory)

    assert orchestrator.start(_job(tmp_path)) is True
    assert orchestrator.start(_job(tmp_path)) is False
    assert isinstance(orchestrator.state, Rendering)
    gate.set()
    orchestrator.wait(timeout=60)

    assert len(factory.sinks) == 1
    assert isinstance(orchestrator.state, Completed)


# ---------------------------------------------------------------------------
# failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "waypoints",
    [
        (),
        (PARIS,),
        (PARIS, Waypoint(name="Nowhere")),
    ],
)
def test_too_few_located_waypoints_is_invalid(tmp_path, waypoints):
    factory = SinkFactory()
    backdrop = PlainBackdrop()
    orchestrator = ExportOrchestrator(background_service=backdrop, sink_factory=factory)

    final = orchestrator.run(_job(tmp_path, waypoints=waypoints))

    assert isinstance(final, Failed)
    assert isinstance(final.error, InvalidRoute)
    assert final.reason == InvalidRoute.reason
    assert backdrop.calls == 0
    assert factory.sinks == []


def test_cancel_at_frame_100_stops_pushing(tmp_path):
    job = _job(tmp_path, duration_seconds=12.0)
    assert PlaybackClock(job.config.duration_seconds, job.config.frame_rate).total_frames == 288

    def cancel_after_99(sink):
        sink.on_push = lambda index: orchestrator.cancel() if index == 99 else None

    factory = SinkFactory(configure=cancel_after_99)
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=factory)

    final = orchestrator.run(job)

    assert isinstance(final, Failed)
    assert final.cancelled
    sink = factory.sinks[0]
    assert sink.pushed == list(range(100))
    assert sink.cancelled and sink.discarded
    assert not sink.finished


def test_cancel_before_rendering_skips_all_frames(tmp_path):
    # Cancelling while the backdrop is drawn is observed before the first frame.
    class CancellingBackdrop(PlainBackdrop):
        def generate(self, region, size):
            orchestrator.cancel()
            return super().generate(region, size)

    factory = SinkFactory()
    orchestrator = ExportOrchestrator(background_service=CancellingBackdrop(), sink_factory=factory)

    final = orchestrator.run(_job(tmp_path))

    assert isinstance(final.error, Cancelled)
    assert factory.sinks == []


def test_background_timeout(tmp_path):
    factory = SinkFactory()
    orchestrator = ExportOrchestrator(
        background_service=PlainBackdrop(delay=1.0),
        sink_factory=factory,
        background_timeout=0.1,
    )

    started = time.monotonic()
    final = orchestrator.run(_job(tmp_path))

    assert time.monotonic() - started < 1.0
    assert isinstance(final.error, BackgroundGenerationTimeout)
    assert factory.sinks == []


def test_background_errors_are_reported(tmp_path):
    orchestrator = ExportOrchestrator(
        background_service=PlainBackdrop(error=RuntimeError("no tiles")),
        sink_factory=SinkFactory(),
    )

    final = orchestrator.run(_job(tmp_path))

    assert isinstance(final.error, BackgroundGenerationFailure)
    assert final.reason == BackgroundGenerationFailure.reason


def test_encoder_backpressure_fails_and_aborts_sink(tmp_path):
    factory = SinkFactory(configure=lambda sink: setattr(sink, "fail_at", 5))
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=factory)

    final = orchestrator.run(_job(tmp_path))

    assert isinstance(final.error, EncoderBackpressureTimeout)
    sink = factory.sinks[0]
    assert sink.pushed == [0, 1, 2, 3, 4]
    assert sink.cancelled and sink.discarded


def test_failed_export_can_be_restarted(tmp_path):
    factory = SinkFactory(configure=lambda sink: setattr(sink, "fail_at", 0 if not factory.sinks else None))
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=factory)

    assert isinstance(orchestrator.run(_job(tmp_path)), Failed)
    assert isinstance(orchestrator.run(_job(tmp_path)), Completed)


# ---------------------------------------------------------------------------
# real sink over a stalled writer
# ---------------------------------------------------------------------------


class GatedWriter:
    """Writer that can hang in ``append_data`` or ``close`` until released."""

    def __init__(self, path: Path, hold_append: bool, hold_close: bool) -> None:
        self.path = path
        self.release = threading.Event()
        self.appending = threading.Event()
        self.closing = threading.Event()
        self.hold_append = hold_append
        self.hold_close = hold_close
        self.frames = 0

    def append_data(self, frame) -> None:
        self.appending.set()
        if self.hold_append:
            self.release.wait()
        self.frames += 1

    def close(self) -> None:
        self.closing.set()
        if self.hold_close:
            self.release.wait()
        self.path.write_bytes(b"mp4")


class GatedSinks:
    def __init__(self, ready_timeout: float, hold_append: bool = False, hold_close: bool = False) -> None:
        self.ready_timeout = ready_timeout
        self.hold_append = hold_append
        self.hold_close = hold_close
        self.writers = []

    def _writer(self, path, frame_rate):
        writer = GatedWriter(path, self.hold_append, self.hold_close)
        self.writers.append(writer)
        return writer

    def __call__(self, path, size, frame_rate):
        return VideoEncodeSink(
            path, size, frame_rate, ready_timeout=self.ready_timeout, queue_size=1, writer_factory=self._writer
        )

    def release(self) -> None:
        for writer in self.writers:
            writer.release.set()


def _wait_for(event: threading.Event, sinks: GatedSinks, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if sinks.writers and getattr(sinks.writers[0], event).wait(0.01):
            return
    raise AssertionError(f"writer never reached {event}")


def test_stalled_encoder_fails_export_within_one_window(tmp_path):
    sinks = GatedSinks(ready_timeout=0.2, hold_append=True)
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=sinks)
    try:
        started = time.monotonic()
        final = orchestrator.run(_job(tmp_path))
        elapsed = time.monotonic() - started
    finally:
        sinks.release()

    assert isinstance(final, Failed)
    assert isinstance(final.error, EncoderBackpressureTimeout)
    assert elapsed < 5.0
    assert sinks.writers[0].frames <= 1


def test_cancel_while_push_is_waiting(tmp_path):
    sinks = GatedSinks(ready_timeout=10.0, hold_append=True)
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=sinks)
    try:
        orchestrator.start(_job(tmp_path))
        _wait_for("appending", sinks)
        # Frame 1 fills the queue, so frame 2 is now waiting for room.
        time.sleep(0.3)

        started = time.monotonic()
        orchestrator.cancel()
        final = orchestrator.wait(timeout=5.0)
        elapsed = time.monotonic() - started
    finally:
        sinks.release()

    assert isinstance(final, Failed)
    assert final.cancelled
    assert elapsed < 3.0


def test_cancel_while_finish_is_waiting(tmp_path):
    sinks = GatedSinks(ready_timeout=10.0, hold_close=True)
    orchestrator = ExportOrchestrator(background_service=PlainBackdrop(), sink_factory=sinks)
    try:
        orchestrator.start(_job(tmp_path))
        _wait_for("closing", sinks, timeout=60.0)
        assert isinstance(orchestrator.state, Rendering)

        started = time.monotonic()
        orchestrator.cancel()
        final = orchestrator.wait(timeout=5.0)
        elapsed = time.monotonic() - started
    finally:
        sinks.release()

    assert isinstance(final, Failed)
    assert final.cancelled
    assert elapsed < 3.0
    assert sinks.writers[0].frames == 72
