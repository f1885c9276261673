"""Flask application with /api/view and /api/render endpoints."""

import io
import logging

from flask import Flask, jsonify, request, send_file

from . import config
from .elements import marker
from .paths import GeoPath
from .render import render_png
from .surface import MapSurface
from .tiles import TILE_SOURCES, TileFetcher, TileLayer

log = logging.getLogger(__name__)

app = Flask(__name__)

# One fetcher per imagery source so the tile cache survives between requests.
_FETCHERS: dict[str, TileFetcher] = {}


def _fetcher(source: str) -> TileFetcher:
    if source not in _FETCHERS:
        _FETCHERS[source] = TileFetcher(source)
    return _FETCHERS[source]


def _build_surface(data: dict, imagery: str = "none") -> MapSurface:
    """Build a surface from request JSON.  Raises ValueError/KeyError/TypeError on bad input."""
    width = int(data.get("width", 512))
    height = int(data.get("height", 512))
    if not (1 <= width <= config.MAX_VIEW_PX and 1 <= height <= config.MAX_VIEW_PX):
        raise ValueError(f"width and height must be between 1 and {config.MAX_VIEW_PX}")

    center = data.get("center")
    if center is not None:
        center = {"lat": float(center["lat"]), "lng": float(center["lng"])}

    surface = MapSurface(width, height, center=center)
    if data.get("level") is not None:
        surface.set_level(float(data["level"]))
    if data.get("zoom_to") is not None:
        surface.set_level(float(data["zoom_to"]), preserve=data.get("preserve"))

    if imagery != "none":
        surface.attach(TileLayer(fetcher=_fetcher(imagery)))

    for p in data.get("paths", []):
        coords = [(float(lat), float(lng)) for lat, lng in p["coords"]]
        surface.attach(GeoPath(coords, closed=bool(p.get("closed", False)),
                               name=str(p.get("name", ""))))

    for m in data.get("markers", []):
        surface.attach(marker(
            float(m["latitude"]), float(m["longitude"]),
            name=str(m.get("name", "")),
            xoffset=float(m.get("xoffset", 0)),
            yoffset=float(m.get("yoffset", 0)),
        ))
    return surface


def _view_json(surface: MapSurface, points: list) -> dict:
    center = surface.get_center()
    bounds = surface.bounds()
    placements = []
    for b in surface.bindings():
        el = b.element
        if getattr(el, "geo", None) is None:
            continue
        xy = surface.to_screen(el)
        placements.append({
            "name": el.name,
            "x": None if xy is None else xy.x,
            "y": None if xy is None else xy.y,
        })

    resolved = []
    for pt in points:
        x, y = float(pt["x"]), float(pt["y"])
        ll = surface.to_lat_lng(x, y)
        resolved.append({
            "x": x,
            "y": y,
            "lat": None if ll is None else ll.lat,
            "lng": None if ll is None else ll.lng,
        })

    return {
        "center": {"lat": center.lat, "lng": center.lng},
        "resolution": surface.get_resolution(),
        "level": surface.get_level(),
        "bounds": None if bounds is None else dict(zip(("west", "south", "east", "north"), bounds)),
        "markers": placements,
        "points": resolved,
    }


def _request_data() -> dict | None:
    """The request's JSON object ({} for an empty body), None if it isn't an object."""
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _bad_body():
    return jsonify({"error": "Request body must be a JSON object"}), 400


@app.route("/api/health")
def health():
    return jsonify({"ok": True})


@app.route("/api/view", methods=["POST"])
def view():
    data = _request_data()
    if data is None:
        return _bad_body()
    try:
        surface = _build_surface(data)
        payload = _view_json(surface, data.get("points", []))
    except (KeyError, TypeError, ValueError) as exc:
        return jsonify({"error": f"Invalid parameters: {exc}"}), 400
    return jsonify(payload)


@app.route("/api/render", methods=["POST"])
def render():
    data = _request_data()
    if data is None:
        return _bad_body()
    imagery = data.get("imagery", "none")
    if imagery not in ("none", *TILE_SOURCES):
        return jsonify({"error": f"imagery must be 'none' or one of {list(TILE_SOURCES)}"}), 400

    try:
        surface = _build_surface(data, imagery)
    except (KeyError, TypeError, ValueError) as exc:
        return jsonify({"error": f"Invalid parameters: {exc}"}), 400

    png = render_png(surface)
    log.info("Rendered %dx%d map at level %.2f (imagery=%s)",
             surface.width, surface.height, surface.get_level(), imagery)
    return send_file(io.BytesIO(png), mimetype="image/png", download_name="map.png")
