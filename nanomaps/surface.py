"""MapSurface: the viewport that owns the current transform and keeps elements placed."""

import logging
from collections.abc import Iterable, Iterator
from typing import Any, NamedTuple

from .delegates import DEFAULT_MAP_DELEGATE, MapDelegate
from .errors import TransformError
from .events import EventEmitter
from .projection import WebMercatorProjection
from .transform import LatLng, Point, TransformFactory, as_lat_lng

log = logging.getLogger(__name__)


class Binding(NamedTuple):
    element: Any
    delegate: MapDelegate
    managed: bool


def _as_point(value: Any) -> Point:
    if isinstance(value, dict):
        return Point(float(value["x"]), float(value["y"]))
    x, y = value
    return Point(float(x), float(y))


class MapSurface(EventEmitter):
    """A scrollable map viewport of ``width`` x ``height`` pixels.

    Managed elements live in surface coordinates and are shifted as a whole
    by ``managed_offset`` when the center moves.  A change of resolution
    replaces the transform and resets every element.

    Events: ``center`` (LatLng), ``resolution`` (float), ``resize``
    (width, height).
    """

    def __init__(self, width: int = 256, height: int = 256, projection=None,
                 resolution: float | None = None, center: Any = None,
                 elements: Iterable = ()):
        self.width = width
        self.height = height
        self.projection = projection or WebMercatorProjection()
        self._factory = TransformFactory()

        center = as_lat_lng(center if center is not None else self.projection.default_center)
        self.transform = self._factory.create(self.projection, resolution, center)

        self._unmanaged: list[Binding] = []
        self._managed: list[Binding] = []
        self.managed_offset = Point(0.0, 0.0)
        self._center: LatLng | None = None

        self.set_center(center)
        self.collect(elements)

    # -- content ---------------------------------------------------------

    def bindings(self) -> Iterator[Binding]:
        """Attached elements in notification order: unmanaged first, then managed."""
        yield from list(self._unmanaged)
        yield from list(self._managed)

    def elements(self) -> list:
        return [b.element for b in self.bindings()]

    def _find(self, element) -> Binding | None:
        for b in self.bindings():
            if b.element is element:
                return b
        return None

    def attach(self, element):
        """Attach an element (or a factory with ``create_element(surface)``) and place it.

        The delegate and the managed/unmanaged classification are fixed here.
        Returns the attached element.
        """
        if not hasattr(element, "set_position") and hasattr(element, "create_element"):
            element = element.create_element(self)

        if self._find(element) is not None:
            self.detach(element)

        delegate = getattr(element, "delegate", None) or DEFAULT_MAP_DELEGATE
        managed = not getattr(delegate, "unmanaged", False)
        binding = Binding(element, delegate, managed)
        (self._managed if managed else self._unmanaged).append(binding)
        element.parent = self

        self._notify_reset_single(binding)
        return element

    def detach(self, element) -> None:
        b = self._find(element)
        if b is None:
            return
        (self._managed if b.managed else self._unmanaged).remove(b)
        element.parent = None

    def collect(self, candidates: Iterable) -> None:
        """Attach every loose element that carries latitude and longitude attributes."""
        for child in candidates:
            if child.has_attribute("latitude") and child.has_attribute("longitude"):
                if self._find(child) is None:
                    self.attach(child)

    def update(self, element) -> None:
        b = self._find(element)
        if b is None:
            self.attach(element)
        else:
            self._notify_reset_single(b)

    # -- notifications ---------------------------------------------------

    def _notify_position(self) -> None:
        count = 0
        for b in self.bindings():
            b.delegate.onposition(self, b.element)
            count += 1
        log.debug("position notification sent to %d element(s)", count)

    def _notify_reset(self) -> None:
        count = 0
        for b in self.bindings():
            self._notify_reset_single(b)
            count += 1
        log.debug("reset notification sent to %d element(s)", count)

    def _notify_reset_single(self, binding: Binding) -> None:
        binding.delegate.onreset(self, binding.element)

    # -- geometry --------------------------------------------------------

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        if self._center is not None:
            self.set_center(self._center)
        # Overlays may be pinned to the right/bottom edge.
        for b in list(self._unmanaged):
            self._notify_reset_single(b)
        self.emit("resize", width, height)

    def set_center(self, center: Any) -> None:
        """Move the viewport center to ``center`` ({lat, lng}) and notify elements."""
        self._update_center(center)
        self._notify_position()
        self.emit("center", self._center)

    def _update_center(self, center: Any) -> None:
        # Update the managed offset without notifying elements.
        c = as_lat_lng(center)
        xy = self.transform.to_surface(c.lng, c.lat)
        if xy is None:
            raise TransformError(f"center ({c.lat}, {c.lng}) is outside the projection domain")
        self._center = c
        self.managed_offset = Point(self.width / 2 - xy.x, self.height / 2 - xy.y)

    def get_center(self) -> LatLng:
        return self._center

    def get_resolution(self) -> float:
        return self.transform.resolution

    def get_level(self) -> float:
        return self.projection.to_level(self.transform.resolution)

    def set_resolution(self, resolution: float, preserve: Any = None) -> None:
        """Replace the transform with one at ``resolution`` and reset all elements.

        With ``preserve`` (a viewport point), the geographic point under it
        stays under it after the change.
        """
        center = self._center
        delta = None
        if preserve is not None:
            p = _as_point(preserve)
            under = self.to_lat_lng(p.x, p.y)
            # A point past the world edge can't anchor a transform.
            if under is not None and self.transform.to_surface(under.lng, under.lat) is not None:
                center = under
                delta = Point(self.width / 2 - p.x, self.height / 2 - p.y)

        self.transform = self._factory.rescale(self.transform, resolution, (center.lng, center.lat))

        if delta is not None:
            # The anchor is the preserved geographic point, so surface (0, 0)
            # sits under ``preserve`` and the new center lies ``delta`` away.
            lng_lat = self.transform.from_surface(delta.x, delta.y)
            if lng_lat is not None and self.transform.to_surface(*lng_lat) is not None:
                center = LatLng(lat=lng_lat[1], lng=lng_lat[0])

        self._update_center(center)
        self._notify_reset()
        self.emit("resolution", resolution)

    def set_level(self, level: float | None, preserve: Any = None) -> None:
        if level is None:
            return
        level = self.projection.clamp_level(level)
        self.set_resolution(self.projection.from_level(level), preserve)

    def move_by(self, easting_px: float, northing_px: float) -> None:
        """Pan by a pixel distance; positive values move east and north."""
        ll = self.to_lat_lng(self.width / 2 + easting_px, self.height / 2 - northing_px)
        if ll is None or self.transform.to_surface(ll.lng, ll.lat) is None:
            log.debug("move_by(%s, %s) leaves the projection domain; ignored", easting_px, northing_px)
            return
        self.set_center(ll)

    # -- queries ---------------------------------------------------------

    def to_lat_lng(self, x: float, y: float) -> LatLng | None:
        """Geographic point under viewport pixel (x, y)."""
        lng_lat = self.transform.from_surface(x - self.managed_offset.x, y - self.managed_offset.y)
        if lng_lat is None:
            return None
        return LatLng(lat=lng_lat[1], lng=lng_lat[0])

    def to_global_pixels(self, x: float, y: float) -> Point | None:
        """Global (y-up) pixel coordinates at the current resolution of viewport pixel (x, y)."""
        sx = x - self.managed_offset.x
        sy = y - self.managed_offset.y
        if self.transform.from_surface(sx, sy) is None:
            return None
        zpx = self.transform.anchor_pixel
        return Point(sx + zpx.x, zpx.y - sy)

    def to_screen(self, element) -> Point | None:
        """Viewport position of an attached element, None if detached or hidden."""
        b = self._find(element)
        if b is None or not element.visible:
            return None
        if b.managed:
            return Point(element.left + self.managed_offset.x, element.top + self.managed_offset.y)
        return Point(element.left, element.top)

    def bounds(self) -> tuple[float, float, float, float] | None:
        """Visible (west, south, east, north), or None if a corner is off the projection."""
        nw = self.to_lat_lng(0, 0)
        se = self.to_lat_lng(self.width, self.height)
        if nw is None or se is None:
            return None
        return (nw.lng, se.lat, se.lng, nw.lat)
