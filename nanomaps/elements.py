"""Headless visual nodes placed on a map surface."""

from dataclasses import dataclass
from typing import Any

from PIL import Image, ImageDraw

POSITION_ATTRIBUTES = ("latitude", "longitude", "xoffset", "yoffset")

DEFAULT_MARKER_STYLE = {
    "fill": (220, 40, 40),
    "outline": (255, 255, 255),
    "radius": 5,
}


@dataclass
class GeoRecord:
    latitude: float
    longitude: float
    xoffset: float = 0.0
    yoffset: float = 0.0


class MapElement:
    """A visual node with a screen position, a visibility flag and positional hints.

    Position is expressed in the coordinates of the layer the element lives
    in: surface pixels for managed elements, viewport pixels for unmanaged
    ones.  Hints come from ``geo`` or from the string ``attributes``
    (latitude, longitude, xoffset, yoffset).
    """

    def __init__(self, name: str = "", attributes: dict[str, Any] | None = None,
                 geo: GeoRecord | None = None, delegate=None,
                 size: tuple[int, int] = (0, 0), style: dict | None = None):
        self.name = name
        self.attributes: dict[str, str] = {}
        for key, value in (attributes or {}).items():
            self.set_attribute(key, value)
        self.geo = geo
        self.delegate = delegate
        self.size = size
        self.style = {**DEFAULT_MARKER_STYLE, **(style or {})}
        self.left = 0.0
        self.top = 0.0
        self.visible = True
        self.parent = None

    def __repr__(self):
        state = "visible" if self.visible else "hidden"
        return f"<{type(self).__name__} {self.name!r} ({self.left:.1f}, {self.top:.1f}) {state}>"

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = str(value)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def set_position(self, x: float, y: float) -> None:
        self.left = x
        self.top = y

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def paint(self, image: Image.Image, origin: tuple[float, float]) -> None:
        """Draw a marker dot centered on the element's position."""
        r = self.style["radius"]
        cx = origin[0] + self.left
        cy = origin[1] + self.top
        draw = ImageDraw.Draw(image)
        draw.ellipse([cx - r, cy - r, cx + r, cy + r],
                     fill=self.style["fill"], outline=self.style["outline"])


def marker(latitude: float, longitude: float, name: str = "",
           xoffset: float = 0.0, yoffset: float = 0.0, **kwargs) -> MapElement:
    """Shortcut for an element positioned by a GeoRecord."""
    return MapElement(name=name, geo=GeoRecord(latitude, longitude, xoffset, yoffset), **kwargs)
