"""Delegates: per-element placement callbacks invoked by the map surface."""

import math

from .elements import GeoRecord


class MapDelegate:
    """Placement capability for an element.

    ``onreset`` places the element from scratch against the current
    transform.  ``onposition`` follows a pan; the base class ignores it since
    a pan moves managed content as a whole.  Unmanaged delegates position
    their element in viewport pixels and are not offset by scrolling.
    """

    unmanaged = False

    def onreset(self, surface, element) -> None:
        pass

    def onposition(self, surface, element) -> None:
        pass


def _to_number(raw) -> float:
    if raw is None or raw == "":
        return math.nan
    try:
        return float(raw)
    except (TypeError, ValueError):
        return math.nan


def extract_default_position(element) -> GeoRecord | None:
    """Return the element's GeoRecord, or one parsed from its attributes.

    None when latitude or longitude is missing or not a number.  Bad offsets
    count as zero.
    """
    geo = getattr(element, "geo", None)
    if geo is not None:
        return geo

    lat = _to_number(element.get_attribute("latitude"))
    lng = _to_number(element.get_attribute("longitude"))
    if math.isnan(lat) or math.isnan(lng):
        return None
    xoff = _to_number(element.get_attribute("xoffset"))
    yoff = _to_number(element.get_attribute("yoffset"))
    return GeoRecord(
        latitude=lat,
        longitude=lng,
        xoffset=0.0 if math.isnan(xoff) else xoff,
        yoffset=0.0 if math.isnan(yoff) else yoff,
    )


class DefaultMapDelegate(MapDelegate):
    """Places an element at its geographic position plus pixel offset."""

    def onreset(self, surface, element):
        geo = extract_default_position(element)
        if geo is not None:
            xy = surface.transform.to_surface(geo.longitude, geo.latitude)
            if xy is not None:
                element.set_position(xy.x + float(geo.xoffset or 0),
                                     xy.y + float(geo.yoffset or 0))
                element.show()
                return

        # No usable position.
        element.hide()


DEFAULT_MAP_DELEGATE = DefaultMapDelegate()


class ViewportDelegate(MapDelegate):
    """Pins an element at a fixed viewport position (e.g. an attribution label).

    Negative coordinates count from the right/bottom edge.
    """

    unmanaged = True

    def __init__(self, x: float, y: float):
        self.x = x
        self.y = y

    def onreset(self, surface, element):
        x = self.x if self.x >= 0 else surface.width + self.x
        y = self.y if self.y >= 0 else surface.height + self.y
        element.set_position(x, y)
        element.show()
