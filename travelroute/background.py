"""Static map backdrop: region fitting, projection and the offline renderer.

The backdrop is drawn once per export. The :class:`Projector` returned with it
is the only way overlay code turns coordinates into pixels, so the route and
markers always line up with the map underneath.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from PIL import Image

from .config import CameraOverride
from .gazetteer import Gazetteer
from .geometry import METRES_PER_DEGREE, Coordinate
from .map_shapes import land_masses_in

_logger = logging.getLogger(__name__)

Size = Tuple[int, int]

REGION_MARGIN = 1.5
MIN_SPAN_DEGREES = 0.5
MAX_LAT_SPAN = 170.0
MAX_LON_SPAN = 360.0

OCEAN_COLOUR = "#cfe3f2"
LAND_COLOUR = "#f3efe6"
COAST_COLOUR = "#b9c7d3"
PLACE_COLOUR = "#5b6b7a"


@dataclass(frozen=True)
class MapRegion:
    center: Coordinate
    lat_span: float
    lon_span: float

    @property
    def south(self) -> float:
        return self.center[0] - self.lat_span / 2.0

    @property
    def north(self) -> float:
        return self.center[0] + self.lat_span / 2.0

    @property
    def west(self) -> float:
        return self.center[1] - self.lon_span / 2.0

    @property
    def east(self) -> float:
        return self.center[1] + self.lon_span / 2.0

    def fitted_to(self, size: Size) -> "MapRegion":
        """Widen the narrower span so the region has the pixel aspect of ``size``."""

        width, height = size
        shrink = max(math.cos(math.radians(self.center[0])), 0.1)
        lat_span, lon_span = self.lat_span, self.lon_span
        needed_lon = lat_span * width / (height * shrink)
        if lon_span < needed_lon:
            lon_span = needed_lon
        else:
            lat_span = lon_span * shrink * height / width
        return MapRegion(
            center=self.center,
            lat_span=min(lat_span, MAX_LAT_SPAN),
            lon_span=min(lon_span, MAX_LON_SPAN),
        )


def fit_region(coordinates: Sequence[Coordinate], size: Optional[Size] = None) -> MapRegion:
    """Region around ``coordinates`` with a 50% margin."""

    if not coordinates:
        region = MapRegion(center=(0.0, 0.0), lat_span=MAX_LAT_SPAN, lon_span=MAX_LON_SPAN)
        return region.fitted_to(size) if size else region

    lats = [lat for lat, _ in coordinates]
    lons = [lon for _, lon in coordinates]
    center = ((min(lats) + max(lats)) / 2.0, (min(lons) + max(lons)) / 2.0)
    region = MapRegion(
        center=center,
        lat_span=max((max(lats) - min(lats)) * REGION_MARGIN, MIN_SPAN_DEGREES),
        lon_span=max((max(lons) - min(lons)) * REGION_MARGIN, MIN_SPAN_DEGREES),
    )
    return region.fitted_to(size) if size else region


def region_for_camera(camera: CameraOverride, size: Optional[Size] = None) -> MapRegion:
    """Region seen by a fixed camera; distance is converted at ~111 km per degree."""

    span = camera.distance_m / METRES_PER_DEGREE
    region = MapRegion(center=camera.center, lat_span=span, lon_span=span)
    return region.fitted_to(size) if size else region


@dataclass(frozen=True)
class Projector:
    """Equirectangular projection of one region onto one pixel grid."""

    region: MapRegion
    size: Size

    def __call__(self, coordinate: Coordinate) -> Tuple[float, float]:
        width, height = self.size
        lat, lon = coordinate
        x = (lon - self.region.west) / self.region.lon_span * width
        y = (self.region.north - lat) / self.region.lat_span * height
        return x, y

    def project_all(self, coordinates: Sequence[Coordinate]) -> List[Tuple[float, float]]:
        return [self(coordinate) for coordinate in coordinates]


@dataclass(frozen=True)
class Background:
    image: Image.Image
    projector: Projector


class MapBackdropRenderer:
    """Draws a stylised map for a region without any network access."""

    def __init__(self, gazetteer: Optional[Gazetteer] = None, show_places: bool = True) -> None:
        self.gazetteer = gazetteer
        self.show_places = show_places

    def generate(self, region: MapRegion, size: Size) -> Background:
        width, height = size
        dpi = 100
        fig = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
        canvas = FigureCanvasAgg(fig)
        fig.patch.set_facecolor(OCEAN_COLOUR)
        ax = fig.add_axes([0.0, 0.0, 1.0, 1.0])
        ax.set_facecolor(OCEAN_COLOUR)
        ax.set_axis_off()

        for land in land_masses_in(region.south, region.west, region.north, region.east):
            lats = [lat for lat, _ in land.outline]
            lons = [lon for _, lon in land.outline]
            ax.fill(lons, lats, color=LAND_COLOUR, linewidth=0)
            ax.plot(lons, lats, color=COAST_COLOUR, linewidth=1.2)

        if self.show_places and self.gazetteer is not None:
            for place in self.gazetteer.places_within(region.south, region.west, region.north, region.east):
                ax.plot(place.longitude, place.latitude, marker="o", markersize=3, color=PLACE_COLOUR)
                ax.text(
                    place.longitude,
                    place.latitude,
                    f" {place.name}",
                    fontsize=8,
                    color=PLACE_COLOUR,
                    ha="left",
                    va="center",
                )

        # Limits last: plotting autoscales the axes.
        ax.set_xlim(region.west, region.east)
        ax.set_ylim(region.south, region.north)
        ax.set_aspect("auto")

        canvas.draw()
        buffer = np.asarray(canvas.buffer_rgba())
        image = Image.fromarray(buffer[:, :, :3].copy())
        if image.size != (width, height):
            image = image.resize((width, height), Image.LANCZOS)
        _logger.info(
            "Backdrop ready: %dx%d, lat %.3f..%.3f, lon %.3f..%.3f",
            width,
            height,
            region.south,
            region.north,
            region.west,
            region.east,
        )
        return Background(image=image, projector=Projector(region=region, size=(width, height)))
