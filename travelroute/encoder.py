"""MP4/H.264 sink fed one frame at a time.

Frames go through a small bounded queue to a writer thread that owns the
ffmpeg process. When the queue is full, :meth:`VideoEncodeSink.push` waits
for room up to ``ready_timeout`` seconds and then gives up. It never drops
or retries a frame. :meth:`VideoEncodeSink.finish` is bounded the same way:
the writer gets ``finish_timeout`` seconds to drain the queue and close the
file, and a cancel ends the wait at once.
"""
from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

import imageio.v2 as imageio
import numpy as np

from .errors import (
    Cancelled,
    EncoderBackpressureTimeout,
    EncoderSetupFailure,
    FinalizationFailure,
)

_logger = logging.getLogger(__name__)

Size = Tuple[int, int]
WriterFactory = Callable[[Path, int], Any]

READY_TIMEOUT = 5.0
QUEUE_SIZE = 8
POLL_INTERVAL = 0.01
CODEC = "libx264"

_STOP = object()


def presentation_time(index: int, frame_rate: int) -> float:
    """Seconds at which frame ``index`` is shown."""

    return index / frame_rate


def ffmpeg_writer(path: Path, frame_rate: int) -> Any:
    """Open an H.264 MP4 writer through imageio's ffmpeg plugin."""

    try:
        return imageio.get_writer(
            path,
            fps=frame_rate,
            codec=CODEC,
            format="FFMPEG",
            macro_block_size=None,
            quality=8,
            pixelformat="yuv420p",
        )
    except ImportError as exc:
        raise ImportError(
            "FFMPEG support is required to export videos. Install the "
            "'imageio-ffmpeg' package (for example via 'pip install "
            "imageio-ffmpeg') and try again."
        ) from exc


class VideoEncodeSink:
    """Accepts frames in presentation order and produces one video file."""

    def __init__(
        self,
        path: Path,
        size: Size,
        frame_rate: int,
        ready_timeout: float = READY_TIMEOUT,
        queue_size: int = QUEUE_SIZE,
        writer_factory: WriterFactory = ffmpeg_writer,
        finish_timeout: Optional[float] = None,
    ) -> None:
        self.path = Path(path)
        self.size = (int(size[0]), int(size[1]))
        self.frame_rate = frame_rate
        self.ready_timeout = ready_timeout
        queue_size = max(1, queue_size)
        # Every queued frame plus the close gets one ready window by default.
        self.finish_timeout = finish_timeout if finish_timeout is not None else ready_timeout * (queue_size + 1)
        self._writer_factory = writer_factory
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._writer: Any = None
        self._error: Optional[BaseException] = None
        self._next_index = 0
        self._finished = False
        self._discarded = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def frames_pushed(self) -> int:
        return self._next_index

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def open(self) -> "VideoEncodeSink":
        if self.path.exists():
            _logger.warning("Removing stale output %s", self.path)
            try:
                self.path.unlink()
            except OSError as exc:
                raise EncoderSetupFailure(f"Cannot remove {self.path}: {exc}") from exc
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._writer = self._writer_factory(self.path, self.frame_rate)
        except Exception as exc:
            raise EncoderSetupFailure(str(exc)) from exc

        self._thread = threading.Thread(target=self._drain, name="travelroute-encoder", daemon=True)
        self._thread.start()
        _logger.info(
            "Encoder open: %s %dx%d @ %d fps (%s)",
            self.path,
            self.size[0],
            self.size[1],
            self.frame_rate,
            CODEC,
        )
        return self

    def push(self, frame: np.ndarray, index: int) -> float:
        """Queue frame ``index``; returns its presentation time in seconds."""

        if self._thread is None:
            raise EncoderSetupFailure("Encoder is not open")
        if index != self._next_index:
            raise ValueError(f"Expected frame {self._next_index}, got {index}")
        width, height = self.size
        if frame.shape[:2] != (height, width):
            raise ValueError(f"Frame is {frame.shape[1]}x{frame.shape[0]}, expected {width}x{height}")

        deadline = time.monotonic() + self.ready_timeout
        while True:
            self._raise_if_stopped()
            try:
                self._queue.put(frame, timeout=POLL_INTERVAL)
                break
            except queue.Full:
                if time.monotonic() >= deadline:
                    raise EncoderBackpressureTimeout(
                        f"Frame {index} waited more than {self.ready_timeout:g}s for the encoder"
                    )
        self._next_index += 1
        return presentation_time(index, self.frame_rate)

    def finish(self) -> Path:
        """Flush and close the file; fails if the sink was cancelled at any point."""

        if self._thread is None:
            raise FinalizationFailure("Encoder is not open")
        with self._lock:
            if self._finished:
                raise FinalizationFailure("Encoder already finished")
            self._finished = True

        deadline = time.monotonic() + self.finish_timeout
        while not self._cancelled.is_set() and self._error is None:
            try:
                self._queue.put(_STOP, timeout=POLL_INTERVAL)
                break
            except queue.Full:
                if time.monotonic() >= deadline:
                    self._drain_timed_out()
        while self._thread.is_alive() and not self._cancelled.is_set():
            if time.monotonic() >= deadline:
                self._drain_timed_out()
            self._thread.join(POLL_INTERVAL)

        if self._cancelled.is_set():
            self.discard()
            raise Cancelled("Export cancelled before the file was finalised")
        if self._error is not None:
            self.discard()
            raise FinalizationFailure(str(self._error)) from self._error
        if not self.path.exists():
            raise FinalizationFailure(f"Encoder produced no file at {self.path}")
        _logger.info("Encoder finished: %d frames -> %s", self._next_index, self.path)
        return self.path

    def cancel(self) -> None:
        """Stop encoding. Safe to call from any thread, any number of times."""

        if self._cancelled.is_set():
            return
        self._cancelled.set()
        _logger.info("Encoder cancelled after %d frames", self._next_index)

    def discard(self) -> None:
        """Delete whatever was written so far."""

        if self._thread is not None and self._thread.is_alive() and not self._discarded:
            self.cancel()
            self._thread.join(min(self.ready_timeout, 1.0))
        self._discarded = True
        self._remove_output()

    # ------------------------------------------------------------------
    # Writer thread
    # ------------------------------------------------------------------

    def _drain_timed_out(self) -> None:
        self.cancel()
        self.discard()
        raise FinalizationFailure(f"Encoder did not drain in time ({self.finish_timeout:g}s)")

    def _remove_output(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            _logger.warning("Could not remove partial output %s: %s", self.path, exc)

    def _raise_if_stopped(self) -> None:
        if self._cancelled.is_set():
            raise Cancelled("Encoder was cancelled")
        if self._error is not None:
            raise FinalizationFailure(f"Encoder failed: {self._error}")

    def _drain(self) -> None:
        try:
            while not self._cancelled.is_set():
                try:
                    item = self._queue.get(timeout=POLL_INTERVAL)
                except queue.Empty:
                    continue
                if item is _STOP:
                    break
                self._writer.append_data(item)
        except Exception as exc:
            _logger.error("Encoder failed: %s", exc)
            self._error = exc
        finally:
            try:
                self._writer.close()
            except Exception as exc:
                if self._error is None and not self._cancelled.is_set():
                    self._error = exc
            # Cancelled output is never kept.
            if self._cancelled.is_set():
                self._remove_output()
