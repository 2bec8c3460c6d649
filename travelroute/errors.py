"""Reasons an export can fail.

Every error aborts the whole export; nothing here is retried inside the
pipeline. ``reason`` is the message shown to the user.
"""
from __future__ import annotations


class ExportError(Exception):
    reason = "Video export failed."

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.reason)
        self.detail = detail


class InvalidRoute(ExportError):
    reason = "The route needs at least two places with known coordinates."


class BackgroundGenerationTimeout(ExportError):
    reason = "Timed out while drawing the map background."


class BackgroundGenerationFailure(ExportError):
    reason = "Could not draw the map background."


class EncoderSetupFailure(ExportError):
    reason = "Could not start the video encoder."


class EncoderBackpressureTimeout(ExportError):
    reason = "The video encoder stopped accepting frames."


class FrameCompositionFailure(ExportError):
    reason = "Could not draw a video frame."


class Cancelled(ExportError):
    reason = "The export was cancelled."


class FinalizationFailure(ExportError):
    reason = "Could not finish writing the video file."
