"""Shared fixtures for nanomaps tests."""

import pytest
from PIL import Image

from nanomaps.delegates import MapDelegate
from nanomaps.elements import MapElement
from nanomaps.projection import WebMercatorProjection
from nanomaps.surface import MapSurface


class RecordingDelegate(MapDelegate):
    """Counts calls; optionally unmanaged."""

    def __init__(self, unmanaged=False):
        self.unmanaged = unmanaged
        self.resets = []
        self.positions = []

    def onreset(self, surface, element):
        self.resets.append(element)

    def onposition(self, surface, element):
        self.positions.append(element)


class FakeFetcher:
    """Stands in for TileFetcher: solid-color tiles, no network."""

    def __init__(self, max_zoom=19, color=(10, 120, 10), missing=()):
        self.max_zoom = max_zoom
        self.color = color
        self.missing = set(missing)
        self.calls = []

    def fetch(self, z, x, y):
        self.calls.append((z, x, y))
        if (z, x, y) in self.missing:
            return None
        return Image.new("RGB", (256, 256), self.color)


@pytest.fixture
def projection():
    return WebMercatorProjection()


@pytest.fixture
def surface(projection):
    return MapSurface(400, 300, projection=projection)


@pytest.fixture
def recording():
    return RecordingDelegate


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def denver_element():
    return MapElement(name="denver", attributes={"latitude": 39.7406, "longitude": -104.985441})


@pytest.fixture
def fetcher_cls():
    return FakeFetcher
