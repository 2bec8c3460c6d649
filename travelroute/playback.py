"""Playback timing: easing of raw progress and duration selection."""
from __future__ import annotations

from dataclasses import dataclass

EASE_FRACTION = 0.02

MIN_AUTO_DURATION = 3.0
MAX_AUTO_DURATION = 10.0


def ease_progress(raw: float, edge: float = EASE_FRACTION) -> float:
    """Map raw progress in [0, 1] onto eased progress in [0, 1].

    The first and last ``edge`` of the timeline use a quadratic ease so the
    vehicle starts and stops gently; everything in between is linear. Both
    quadratic pieces meet the linear part with matching slope, so there is no
    visible jump in speed at the breakpoints.
    """

    t = min(1.0, max(0.0, raw))
    if t >= 1.0:
        return 1.0
    if t < edge:
        u = t / edge
        return u * u * edge
    if t > 1.0 - edge:
        u = (t - (1.0 - edge)) / edge
        return (1.0 - edge) + (1.0 - (1.0 - u) * (1.0 - u)) * edge
    return t


def auto_duration(total_distance_m: float, requested: float = 0.0) -> float:
    """Pick an animation duration in seconds.

    A positive ``requested`` value wins. Otherwise the route length decides:
    metres / 1000 / 1000, clamped to [3, 10] seconds. That formula is kept for
    compatibility with routes exported by earlier versions.
    """

    if requested > 0:
        return max(MIN_AUTO_DURATION, min(MAX_AUTO_DURATION, requested))
    calculated = total_distance_m / 1000.0 / 1000.0
    return max(MIN_AUTO_DURATION, min(MAX_AUTO_DURATION, calculated))


@dataclass(frozen=True)
class PlaybackClock:
    """Converts frame indices or elapsed seconds into eased progress."""

    duration_seconds: float
    frame_rate: int = 24

    @property
    def total_frames(self) -> int:
        return int(round(self.duration_seconds * self.frame_rate))

    def raw_progress_for_frame(self, index: int) -> float:
        total = self.total_frames
        if total <= 0:
            return 0.0
        return index / total

    def progress_for_frame(self, index: int) -> float:
        return ease_progress(self.raw_progress_for_frame(index))

    def progress_at(self, elapsed_seconds: float) -> float:
        if self.duration_seconds <= 0:
            return 1.0
        return ease_progress(elapsed_seconds / self.duration_seconds)
