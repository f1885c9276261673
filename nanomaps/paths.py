"""Geographic polylines and polygons, projected and clipped to the viewport."""

from PIL import ImageDraw
from shapely.geometry import LineString, Polygon, box

from .delegates import MapDelegate
from .elements import MapElement

# Extra pixels kept around the viewport so strokes don't end at the edge.
CLIP_MARGIN = 16

DEFAULT_PATH_STYLE = {
    "stroke": (30, 90, 200),
    "width": 3,
    "fill": None,
}


def _clip_line(pts: list[tuple[float, float]], clip_box) -> list[list[tuple[float, float]]]:
    """Clip an open polyline to the box. Returns a list of line segments."""
    clipped = LineString(pts).intersection(clip_box)
    if clipped.is_empty:
        return []
    parts = getattr(clipped, "geoms", [clipped])
    result = []
    for part in parts:
        if isinstance(part, LineString):
            coords = list(part.coords)
            if len(coords) >= 2:
                result.append(coords)
    return result


def _clip_polygon(pts: list[tuple[float, float]], clip_box) -> list[list[tuple[float, float]]]:
    """Clip a closed polygon to the box. Returns a list of exterior rings."""
    poly = Polygon(pts)
    if not poly.is_valid:
        poly = poly.buffer(0)
    clipped = poly.intersection(clip_box)
    if clipped.is_empty:
        return []
    parts = getattr(clipped, "geoms", [clipped])
    return [list(p.exterior.coords) for p in parts if isinstance(p, Polygon)]


class PathDelegate(MapDelegate):
    """Projects a GeoPath to surface pixels and keeps the visible pieces."""

    def onreset(self, surface, element):
        transform = surface.transform
        pts = []
        for lat, lng in element.coords:
            xy = transform.to_surface(lng, lat)
            if xy is not None:
                pts.append((xy.x, xy.y))

        element.segments = []
        if len(pts) >= (3 if element.closed else 2):
            off = surface.managed_offset
            clip_box = box(-off.x - CLIP_MARGIN, -off.y - CLIP_MARGIN,
                           surface.width - off.x + CLIP_MARGIN,
                           surface.height - off.y + CLIP_MARGIN)
            if element.closed:
                element.segments = _clip_polygon(pts, clip_box)
            else:
                element.segments = _clip_line(pts, clip_box)

        element.set_position(0.0, 0.0)
        if element.segments:
            element.show()
        else:
            element.hide()

    def onposition(self, surface, element):
        # The clip window moved with the pan.
        self.onreset(surface, element)


class GeoPath(MapElement):
    """A polyline (or polygon when ``closed``) through (lat, lng) coordinates."""

    def __init__(self, coords: list[tuple[float, float]], closed: bool = False,
                 name: str = "", style: dict | None = None):
        super().__init__(name=name, delegate=PathDelegate())
        self.style = {**DEFAULT_PATH_STYLE, **(style or {})}
        self.coords = [(float(lat), float(lng)) for lat, lng in coords]
        self.closed = closed
        self.segments: list[list[tuple[float, float]]] = []

    def paint(self, image, origin):
        ox = origin[0] + self.left
        oy = origin[1] + self.top
        draw = ImageDraw.Draw(image)
        for seg in self.segments:
            xy = [(x + ox, y + oy) for x, y in seg]
            if self.closed:
                draw.polygon(xy, fill=self.style["fill"], outline=self.style["stroke"])
            else:
                draw.line(xy, fill=self.style["stroke"], width=self.style["width"])
