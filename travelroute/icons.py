"""Vehicle glyphs drawn with Pillow.

Every glyph points to the right (east) in its unrotated form. The compositor
rotates by ``heading - 90`` to face the direction of travel, so a new glyph
must keep that orientation.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Callable, Dict, List, Tuple

from PIL import Image, ImageDraw

from .config import VehicleType

GLYPH_COLOUR = (255, 255, 255, 255)

Point = Tuple[float, float]


def _scaled(points: List[Point], size: int) -> List[Point]:
    return [(x * size, y * size) for x, y in points]


def _draw_car(draw: ImageDraw.ImageDraw, size: int) -> None:
    draw.rounded_rectangle(
        [(0.12 * size, 0.30 * size), (0.88 * size, 0.70 * size)],
        radius=0.12 * size,
        fill=GLYPH_COLOUR,
    )
    # Windscreen cut-out towards the front.
    draw.rectangle([(0.60 * size, 0.36 * size), (0.70 * size, 0.64 * size)], fill=(0, 0, 0, 0))


def _draw_plane(draw: ImageDraw.ImageDraw, size: int) -> None:
    draw.polygon(
        _scaled(
            [
                (0.92, 0.50), (0.80, 0.44), (0.56, 0.44), (0.36, 0.10),
                (0.28, 0.10), (0.40, 0.44), (0.20, 0.44), (0.12, 0.32),
                (0.06, 0.32), (0.10, 0.50), (0.06, 0.68), (0.12, 0.68),
                (0.20, 0.56), (0.40, 0.56), (0.28, 0.90), (0.36, 0.90),
                (0.56, 0.56), (0.80, 0.56),
            ],
            size,
        ),
        fill=GLYPH_COLOUR,
    )


def _draw_train(draw: ImageDraw.ImageDraw, size: int) -> None:
    draw.polygon(
        _scaled([(0.10, 0.28), (0.70, 0.28), (0.92, 0.50), (0.70, 0.72), (0.10, 0.72)], size),
        fill=GLYPH_COLOUR,
    )
    draw.rectangle([(0.22 * size, 0.36 * size), (0.34 * size, 0.64 * size)], fill=(0, 0, 0, 0))


def _draw_ship(draw: ImageDraw.ImageDraw, size: int) -> None:
    draw.polygon(
        _scaled([(0.08, 0.32), (0.66, 0.32), (0.94, 0.50), (0.66, 0.68), (0.08, 0.68)], size),
        fill=GLYPH_COLOUR,
    )
    draw.ellipse([(0.30 * size, 0.42 * size), (0.46 * size, 0.58 * size)], fill=(0, 0, 0, 0))


def _draw_bike(draw: ImageDraw.ImageDraw, size: int) -> None:
    width = max(1, size // 12)
    draw.ellipse([(0.06 * size, 0.40 * size), (0.34 * size, 0.68 * size)], outline=GLYPH_COLOUR, width=width)
    draw.ellipse([(0.66 * size, 0.40 * size), (0.94 * size, 0.68 * size)], outline=GLYPH_COLOUR, width=width)
    draw.line(
        _scaled([(0.20, 0.54), (0.42, 0.32), (0.80, 0.54), (0.50, 0.54), (0.42, 0.32)], size),
        fill=GLYPH_COLOUR,
        width=width,
    )
    draw.line(_scaled([(0.66, 0.28), (0.80, 0.54)], size), fill=GLYPH_COLOUR, width=width)


def _draw_walk(draw: ImageDraw.ImageDraw, size: int) -> None:
    width = max(1, size // 10)
    draw.ellipse([(0.60 * size, 0.12 * size), (0.78 * size, 0.30 * size)], fill=GLYPH_COLOUR)
    draw.line(_scaled([(0.62, 0.34), (0.48, 0.62)], size), fill=GLYPH_COLOUR, width=width)
    draw.line(_scaled([(0.48, 0.62), (0.66, 0.88)], size), fill=GLYPH_COLOUR, width=width)
    draw.line(_scaled([(0.48, 0.62), (0.30, 0.88)], size), fill=GLYPH_COLOUR, width=width)
    draw.line(_scaled([(0.40, 0.44), (0.78, 0.50)], size), fill=GLYPH_COLOUR, width=width)


_GLYPH_PAINTERS: Dict[VehicleType, Callable[[ImageDraw.ImageDraw, int], None]] = {
    VehicleType.CAR: _draw_car,
    VehicleType.PLANE: _draw_plane,
    VehicleType.TRAIN: _draw_train,
    VehicleType.SHIP: _draw_ship,
    VehicleType.BIKE: _draw_bike,
    VehicleType.WALK: _draw_walk,
}


@lru_cache(maxsize=32)
def vehicle_glyph(vehicle: VehicleType, size: int) -> Image.Image:
    """Return the RGBA glyph for ``vehicle`` at ``size`` pixels square.

    The result is shared between calls; treat it as read-only.
    """

    size = max(8, int(size))
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    _GLYPH_PAINTERS[vehicle](draw, size)
    return image


def rotate_glyph(glyph: Image.Image, heading: float) -> Image.Image:
    """Rotate a right-facing glyph so that it faces compass ``heading``."""

    # PIL rotates counter-clockwise; screen headings turn clockwise.
    return glyph.rotate(-(heading - 90.0), resample=Image.BICUBIC, expand=True)
