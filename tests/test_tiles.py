import io
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

from nanomaps.errors import ConfigError, TileFetchError
from nanomaps.projection import EquirectangularProjection
from nanomaps.surface import MapSurface
from nanomaps.tiles import TileFetcher, TileLayer, visible_tiles


def _png_bytes(color=(1, 2, 3)):
    buf = io.BytesIO()
    Image.new("RGB", (256, 256), color).save(buf, format="PNG")
    return buf.getvalue()


def _session(content=None, exc=None):
    session = MagicMock()
    session.headers = {}
    resp = MagicMock()
    resp.content = content
    if exc is not None:
        session.get.side_effect = exc
    else:
        session.get.return_value = resp
    return session


def test_whole_world_at_level_one(projection):
    s = MapSurface(512, 512, projection=projection, resolution=projection.from_level(1),
                   center={"lat": 0, "lng": 0})
    tiles = visible_tiles(s, max_zoom=19)
    assert {(t.z, t.x, t.y) for t in tiles} == {(1, 0, 0), (1, 1, 0), (1, 0, 1), (1, 1, 1)}
    off = s.managed_offset
    placed = {(t.x, t.y): (t.left + off.x, t.top + off.y) for t in tiles}
    assert placed[(0, 0)] == pytest.approx((0.0, 0.0), abs=1e-3)
    assert placed[(1, 1)] == pytest.approx((256.0, 256.0), abs=1e-3)


def test_unknown_source_rejected():
    with pytest.raises(ConfigError):
        TileFetcher("nope", session=_session())


def test_fetch_downloads_and_caches():
    session = _session(_png_bytes())
    f = TileFetcher("osm", session=session, timeout=3)
    a = f.fetch(3, 1, 2)
    b = f.fetch(3, 1, 2)
    assert a is b
    assert a.size == (256, 256)
    session.get.assert_called_once_with("https://tile.openstreetmap.org/3/1/2.png", timeout=3)
    assert "User-Agent" in session.headers


def test_cache_is_bounded():
    session = _session(_png_bytes())
    f = TileFetcher("osm", session=session, cache_size=2)
    f.fetch(1, 0, 0)
    f.fetch(1, 1, 0)
    f.fetch(1, 0, 0)   # refresh
    f.fetch(1, 1, 1)   # evicts (1, 1, 0)
    f.fetch(1, 0, 0)
    assert session.get.call_count == 3


def test_network_failure_is_lenient_and_strict():
    f = TileFetcher("esri_satellite", session=_session(exc=requests.ConnectionError("down")))
    assert f.fetch(1, 0, 0) is None
    with pytest.raises(TileFetchError):
        f.fetch_strict(1, 0, 0)


def test_garbage_payload_is_a_fetch_error():
    f = TileFetcher("osm", session=_session(b"not an image"))
    with pytest.raises(TileFetchError):
        f.fetch_strict(1, 0, 0)


def test_visible_tiles_cover_viewport(surface):
    surface.set_level(10)
    tiles = visible_tiles(surface, max_zoom=19)
    assert tiles
    assert {t.z for t in tiles} == {10}
    assert all(t.size == pytest.approx(256.0) for t in tiles)

    off = surface.managed_offset
    left = min(t.left for t in tiles) + off.x
    top = min(t.top for t in tiles) + off.y
    right = max(t.left + t.size for t in tiles) + off.x
    bottom = max(t.top + t.size for t in tiles) + off.y
    assert left <= 0 and top <= 0
    assert right >= surface.width and bottom >= surface.height

    # Denver sits in tile (213, 388) at zoom 10
    center_tile = next(t for t in tiles if (t.x, t.y) == (213, 388))
    assert center_tile.left + off.x <= surface.width / 2 <= center_tile.left + off.x + 256
    assert center_tile.top + off.y <= surface.height / 2 <= center_tile.top + off.y + 256


def test_visible_tiles_respect_max_zoom(surface):
    surface.set_level(18)
    tiles = visible_tiles(surface, max_zoom=16)
    assert {t.z for t in tiles} == {16}
    assert tiles[0].size == pytest.approx(1024.0)


def test_tile_layer_tracks_pans(surface, fake_fetcher):
    el = surface.attach(TileLayer(fetcher=fake_fetcher))
    assert el.visible
    before = set((t.x, t.y) for t in el.tiles)
    for _ in range(4):
        surface.move_by(300, 0)
    after = set((t.x, t.y) for t in el.tiles)
    assert after != before


def test_tile_layer_near_pole_and_non_mercator(projection, fake_fetcher):
    s = MapSurface(100, 100, projection=projection, resolution=projection.from_level(18),
                   center={"lat": 85.0, "lng": 0})
    el = s.attach(TileLayer(fetcher=fake_fetcher))
    assert el.visible
    other = MapSurface(100, 100, projection=EquirectangularProjection(), resolution=1000.0,
                       center={"lat": 0, "lng": 0})
    el2 = other.attach(TileLayer(fetcher=fake_fetcher))
    assert not el2.visible and el2.tiles == []


def test_tile_layer_paint_skips_missing(surface, fetcher_cls):
    surface.set_level(3)
    # (1, 3) is the tile under the default center at zoom 3
    fetcher = fetcher_cls(missing={(3, 1, 3)})
    el = surface.attach(TileLayer(fetcher=fetcher))
    canvas = Image.new("RGB", (surface.width, surface.height), (0, 0, 0))
    off = surface.managed_offset
    el.paint(canvas, (off.x, off.y))
    assert len(fetcher.calls) == len(el.tiles)
    assert canvas.getpixel((200, 150)) == (0, 0, 0)
    assert canvas.getpixel((300, 150)) == (10, 120, 10)
