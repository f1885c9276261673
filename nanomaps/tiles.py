"""Web Mercator map tiles: tile math, HTTP fetching and a tile layer element."""

import io
import logging
import math
from collections import OrderedDict
from dataclasses import dataclass

import requests
from PIL import Image

from . import config
from .delegates import MapDelegate
from .elements import MapElement
from .errors import ConfigError, TileFetchError
from .projection import EARTH_RADIUS, WebMercatorProjection

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileSource:
    url: str          # template with {z}, {x}, {y}
    max_zoom: int


TILE_SOURCES = {
    "osm": TileSource(
        url="https://tile.openstreetmap.org/{z}/{x}/{y}.png",
        max_zoom=19,
    ),
    "esri_satellite": TileSource(
        url="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        max_zoom=18,
    ),
}

# Width of the Web Mercator world in meters.
WORLD_METERS = 2 * math.pi * EARTH_RADIUS


class TileFetcher:
    """Downloads tiles from one source and keeps the most recent ones in memory."""

    def __init__(self, source: str | None = None, timeout: float | None = None,
                 cache_size: int | None = None, session: requests.Session | None = None):
        source = source or config.TILE_SOURCE
        if source not in TILE_SOURCES:
            raise ConfigError(f"Unknown tile source {source!r}; expected one of {list(TILE_SOURCES)}")
        self.source = source
        self.url_template = TILE_SOURCES[source].url
        self.max_zoom = TILE_SOURCES[source].max_zoom
        self.timeout = config.TILE_TIMEOUT if timeout is None else timeout
        self.cache_size = config.TILE_CACHE_SIZE if cache_size is None else cache_size
        self._cache: OrderedDict[tuple[int, int, int], Image.Image] = OrderedDict()

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": config.USER_AGENT})

    def fetch_strict(self, z: int, x: int, y: int) -> Image.Image:
        """Return tile (z, x, y) as an RGB image or raise TileFetchError."""
        key = (z, x, y)
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        url = self.url_template.format(z=z, x=x, y=y)
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
            tile = Image.open(io.BytesIO(resp.content)).convert("RGB")
        except (requests.RequestException, OSError) as exc:
            raise TileFetchError(f"tile {z}/{x}/{y} from {self.source}: {exc}") from exc

        self._cache[key] = tile
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return tile

    def fetch(self, z: int, x: int, y: int) -> Image.Image | None:
        """Like ``fetch_strict`` but logs failures and returns None."""
        try:
            return self.fetch_strict(z, x, y)
        except TileFetchError as exc:
            log.warning("Tile fetch failed: %s", exc)
            return None


@dataclass(frozen=True)
class PlacedTile:
    z: int
    x: int
    y: int
    left: float   # surface pixels
    top: float
    size: float   # on-screen edge length in pixels


def visible_tiles(surface, max_zoom: int) -> list[PlacedTile]:
    """Tiles covering the surface's viewport at the zoom nearest its level."""
    transform = surface.transform
    zoom = max(0, min(max_zoom, int(round(surface.get_level()))))
    n = 2 ** zoom
    world_px = WORLD_METERS / transform.resolution
    half = world_px / 2
    tile_px = world_px / n

    zpx = transform.anchor_pixel
    off = surface.managed_offset
    # Viewport edges in global (y-up) pixels.
    gx0 = -off.x + zpx.x
    gx1 = surface.width - off.x + zpx.x
    gy_top = zpx.y + off.y
    gy_bottom = zpx.y - (surface.height - off.y)

    tx0 = max(0, math.floor((gx0 + half) / tile_px))
    tx1 = min(n - 1, math.floor((gx1 + half) / tile_px))
    ty0 = max(0, math.floor((half - gy_top) / tile_px))
    ty1 = min(n - 1, math.floor((half - gy_bottom) / tile_px))

    tiles = []
    for ty in range(ty0, ty1 + 1):
        for tx in range(tx0, tx1 + 1):
            left = tx * tile_px - half - zpx.x
            top = zpx.y - (half - ty * tile_px)
            tiles.append(PlacedTile(zoom, tx, ty, left, top, tile_px))
    return tiles


class TileLayerDelegate(MapDelegate):
    """Recomputes the visible tile grid on every reset and pan."""

    def onreset(self, surface, element):
        if not isinstance(surface.projection, WebMercatorProjection):
            element.tiles = []
            element.hide()
            return
        element.tiles = visible_tiles(surface, element.fetcher.max_zoom)
        element.set_position(0.0, 0.0)
        if element.tiles:
            element.show()
        else:
            element.hide()

    def onposition(self, surface, element):
        self.onreset(surface, element)


class TileLayerElement(MapElement):
    """Background imagery; ``tiles`` holds the current grid in surface pixels."""

    def __init__(self, fetcher: TileFetcher, name: str = "tiles"):
        super().__init__(name=name, delegate=TileLayerDelegate())
        self.fetcher = fetcher
        self.tiles: list[PlacedTile] = []

    def paint(self, image, origin):
        for t in self.tiles:
            tile = self.fetcher.fetch(t.z, t.x, t.y)
            if tile is None:
                continue  # leave background for missing tiles
            edge = max(1, int(round(t.size)))
            if tile.size != (edge, edge):
                tile = tile.resize((edge, edge))
            image.paste(tile, (int(round(origin[0] + self.left + t.left)),
                               int(round(origin[1] + self.top + t.top))))


class TileLayer:
    """Factory attaching a tile layer to a surface."""

    def __init__(self, source: str | None = None, fetcher: TileFetcher | None = None):
        self.fetcher = fetcher or TileFetcher(source)

    def create_element(self, surface) -> TileLayerElement:
        return TileLayerElement(self.fetcher)
