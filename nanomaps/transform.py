"""Immutable map transforms: lng/lat <-> global pixels <-> surface pixels."""

import itertools
import logging
import math
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .errors import TransformError

log = logging.getLogger(__name__)


class LatLng(NamedTuple):
    lat: float
    lng: float


class Point(NamedTuple):
    x: float
    y: float


def as_lat_lng(value: Any) -> LatLng:
    """Coerce a LatLng, a {"lat", "lng"} mapping or an object with lat/lng."""
    if isinstance(value, LatLng):
        return value
    if isinstance(value, dict):
        return LatLng(float(value.get("lat") or 0.0), float(value.get("lng") or 0.0))
    return LatLng(float(value.lat or 0.0), float(value.lng or 0.0))


@dataclass(frozen=True)
class MapTransform:
    """Snapshot of projection + resolution + anchor.

    ``anchor_lng_lat`` sits at surface (0, 0).  "Pixels" are global and
    y-up; "surface" coordinates are relative to the anchor and y-down.
    """

    projection: Any
    resolution: float
    anchor_lng_lat: tuple[float, float]
    sequence: int = 0
    anchor_pixel: Point = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        res = self.resolution
        if not isinstance(res, (int, float)) or not math.isfinite(res) or res <= 0:
            raise TransformError(f"resolution must be a positive finite number, got {res!r}")
        lng, lat = self.anchor_lng_lat
        object.__setattr__(self, "anchor_lng_lat", (float(lng), float(lat)))
        zpx = self.to_pixels(lng, lat)
        if zpx is None:
            raise TransformError(f"anchor ({lng}, {lat}) is outside the projection domain")
        object.__setattr__(self, "anchor_pixel", zpx)

    def rescale(self, resolution: float, anchor_lng_lat: tuple[float, float],
                sequence: int | None = None) -> "MapTransform":
        """Return a new transform at another scale and anchor; self is untouched."""
        if sequence is None:
            sequence = self.sequence + 1
        return MapTransform(self.projection, resolution, anchor_lng_lat, sequence)

    def to_pixels(self, lng: float, lat: float) -> Point | None:
        xy = self.projection.forward(lng, lat)
        if xy is None:
            return None
        return Point(xy[0] / self.resolution, xy[1] / self.resolution)

    def to_surface(self, lng: float, lat: float) -> Point | None:
        xy = self.to_pixels(lng, lat)
        if xy is None:
            return None
        zpx = self.anchor_pixel
        return Point(xy.x - zpx.x, zpx.y - xy.y)  # y axis inversion

    def from_pixels(self, x: float, y: float) -> tuple[float, float] | None:
        res = self.resolution
        return self.projection.inverse(x * res, y * res)

    def from_surface(self, x: float, y: float) -> tuple[float, float] | None:
        zpx = self.anchor_pixel
        return self.from_pixels(x + zpx.x, zpx.y - y)  # y axis inversion


class TransformFactory:
    """Builds transforms and stamps each with the next sequence number.

    The counter lives here rather than at module level so that every surface
    (and every test) gets its own sequence.
    """

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)

    def next_sequence(self) -> int:
        return next(self._counter)

    def create(self, projection, resolution: float | None = None,
               anchor: Any = None) -> MapTransform:
        if resolution is None:
            resolution = projection.default_resolution
        center = as_lat_lng(anchor if anchor is not None else projection.default_center)
        return MapTransform(projection, resolution, (center.lng, center.lat), self.next_sequence())

    def rescale(self, transform: MapTransform, resolution: float,
                anchor_lng_lat: tuple[float, float]) -> MapTransform:
        new = transform.rescale(resolution, anchor_lng_lat, self.next_sequence())
        log.debug("transform #%d -> #%d at %.4f m/px", transform.sequence, new.sequence, resolution)
        return new
