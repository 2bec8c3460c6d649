"""Per-frame drawing on top of the pre-rendered map backdrop.

Layers, back to front: backdrop, travelled path, waypoint markers, vehicle,
label. The order matters for what hides what and must not change.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFilter, ImageFont

from .background import Background
from .config import VehicleType, Waypoint
from .errors import FrameCompositionFailure
from .geometry import Coordinate, haversine_m
from .icons import rotate_glyph, vehicle_glyph

Size = Tuple[int, int]

PATH_COLOUR = (251, 89, 92, 255)
PATH_WIDTH = 6
ACCENT_COLOUR = (49, 159, 249, 255)
WHITE = (255, 255, 255, 255)
SHADOW_ALPHA = 0.4
SHADOW_OFFSET = (0, 3)
SHADOW_BLUR = 6

MARKER_SIZE = 28
MARKER_RING = 3
MARKER_CORE = 0.35

VEHICLE_BASE_SIZE = 40
VEHICLE_GLYPH_SIZE = 24
VEHICLE_RING = 3

LABEL_PADDING = 20
LABEL_HEIGHT = 60
LABEL_INSET = (16, 12)
LABEL_RADIUS = 12
LABEL_FILL = (0, 0, 0, 178)
LABEL_FONT_SIZE = 22
UNKNOWN_PLACE = "Unknown place"


class MarkerRole(Enum):
    START = "start"
    INTERMEDIATE = "intermediate"
    END = "end"


MARKER_COLOURS = {
    MarkerRole.START: (0, 0, 0, 255),
    MarkerRole.INTERMEDIATE: (255, 149, 0, 255),
    MarkerRole.END: (142, 142, 147, 255),
}


@dataclass(frozen=True)
class Marker:
    coordinate: Coordinate
    role: MarkerRole
    name: str = ""


@dataclass(frozen=True)
class VehiclePose:
    coordinate: Coordinate
    heading: float


def markers_for(waypoints: Sequence[Waypoint]) -> List[Marker]:
    """One marker per waypoint with a coordinate, tagged start/intermediate/end."""

    located = [wp for wp in waypoints if wp.coordinate is not None]
    markers: List[Marker] = []
    for index, waypoint in enumerate(located):
        if index == 0:
            role = MarkerRole.START
        elif index == len(located) - 1:
            role = MarkerRole.END
        else:
            role = MarkerRole.INTERMEDIATE
        markers.append(Marker(coordinate=waypoint.coordinate, role=role, name=waypoint.display_name))
    return markers


def nearest_marker_name(coordinate: Coordinate, markers: Sequence[Marker]) -> Optional[str]:
    """Display name of the marker closest to ``coordinate``."""

    if not markers:
        return None
    nearest = min(markers, key=lambda marker: haversine_m(coordinate, marker.coordinate))
    return nearest.name or UNKNOWN_PLACE


@lru_cache(maxsize=4)
def _label_font(size: int) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


def _ellipse_box(center: Tuple[float, float], diameter: float) -> List[Tuple[float, float]]:
    radius = diameter / 2.0
    x, y = center
    return [(x - radius, y - radius), (x + radius, y + radius)]


class FrameCompositor:
    """Renders frames of a fixed size.

    Holds only read-only settings, so one instance can be shared by worker
    threads. The sole cache is the glyph cache in :mod:`travelroute.icons`.
    """

    def __init__(self, size: Size, vehicle: VehicleType = VehicleType.CAR, vehicle_scale: float = 1.0) -> None:
        self.size = (int(size[0]), int(size[1]))
        self.vehicle = vehicle
        self.vehicle_scale = vehicle_scale

    def render(
        self,
        background: Background,
        traveled: Sequence[Coordinate],
        markers: Sequence[Marker],
        vehicle: Optional[VehiclePose],
        label: Optional[str] = None,
    ) -> np.ndarray:
        """Return one ``(height, width, 3)`` uint8 RGB frame."""

        if background.image.size != self.size:
            raise FrameCompositionFailure(
                f"Backdrop is {background.image.size}, frames are {self.size}"
            )
        project = background.projector

        frame = background.image.convert("RGBA")
        overlay = Image.new("RGBA", self.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        self._draw_path(draw, [project(point) for point in traveled])
        for marker in markers:
            self._draw_marker(draw, project(marker.coordinate), marker.role)
        frame = Image.alpha_composite(frame, overlay)

        if vehicle is not None:
            self._draw_vehicle(frame, project(vehicle.coordinate), vehicle.heading)

        if label:
            frame = Image.alpha_composite(frame, self._label_layer(label))

        return np.array(frame.convert("RGB"))

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def _draw_path(self, draw: ImageDraw.ImageDraw, points: List[Tuple[float, float]]) -> None:
        if len(points) < 2:
            return
        draw.line(points, fill=PATH_COLOUR, width=PATH_WIDTH, joint="curve")
        # Round caps.
        for end in (points[0], points[-1]):
            draw.ellipse(_ellipse_box(end, PATH_WIDTH), fill=PATH_COLOUR)

    def _draw_marker(self, draw: ImageDraw.ImageDraw, center: Tuple[float, float], role: MarkerRole) -> None:
        draw.ellipse(
            _ellipse_box(center, MARKER_SIZE),
            fill=MARKER_COLOURS[role],
            outline=WHITE,
            width=MARKER_RING,
        )
        draw.ellipse(_ellipse_box(center, MARKER_SIZE * MARKER_CORE), fill=WHITE)

    def _vehicle_disc(self, diameter: int) -> Image.Image:
        pad = SHADOW_BLUR * 2 + abs(SHADOW_OFFSET[1])
        side = diameter + pad * 2
        disc_box = [(pad, pad), (pad + diameter - 1, pad + diameter - 1)]

        shadow = Image.new("RGBA", (side, side), (0, 0, 0, 0))
        ImageDraw.Draw(shadow).ellipse(disc_box, fill=(0, 0, 0, int(255 * SHADOW_ALPHA)))
        shadow = shadow.filter(ImageFilter.GaussianBlur(SHADOW_BLUR / 2.0))

        disc = Image.new("RGBA", (side, side), (0, 0, 0, 0))
        disc.paste(shadow, SHADOW_OFFSET, shadow)
        ImageDraw.Draw(disc).ellipse(disc_box, fill=ACCENT_COLOUR, outline=WHITE, width=VEHICLE_RING)
        return disc

    def _draw_vehicle(self, frame: Image.Image, center: Tuple[float, float], heading: float) -> None:
        diameter = max(8, int(round(VEHICLE_BASE_SIZE * self.vehicle_scale)))
        disc = self._vehicle_disc(diameter)
        glyph = rotate_glyph(
            vehicle_glyph(self.vehicle, max(8, int(round(VEHICLE_GLYPH_SIZE * self.vehicle_scale)))),
            heading,
        )
        cx, cy = center
        for layer in (disc, glyph):
            origin = (int(round(cx - layer.width / 2.0)), int(round(cy - layer.height / 2.0)))
            frame.paste(layer, origin, layer)

    def _label_layer(self, text: str) -> Image.Image:
        width, height = self.size
        layer = Image.new("RGBA", self.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        left = LABEL_PADDING
        top = height - LABEL_HEIGHT - LABEL_PADDING
        right = width - LABEL_PADDING
        bottom = height - LABEL_PADDING
        inset_x, inset_y = LABEL_INSET
        draw.rounded_rectangle(
            [(left - inset_x, top - inset_y), (right + inset_x, bottom + inset_y)],
            radius=LABEL_RADIUS,
            fill=LABEL_FILL,
        )
        font = _label_font(LABEL_FONT_SIZE)
        text_box = draw.textbbox((0, 0), text, font=font)
        text_height = text_box[3] - text_box[1]
        draw.text(
            (left, top + (LABEL_HEIGHT - text_height) / 2.0 - text_box[1]),
            text,
            font=font,
            fill=WHITE,
        )
        return layer
