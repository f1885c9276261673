"""Map projections: WGS84 lng/lat <-> planar world meters, plus the zoom ladder."""

import math

from .transform import LatLng

EARTH_RADIUS = 6378137.0
METERS_PER_DEGREE_LAT = 111_319.49  # at the equator

# Resolution (m/px) of zoom level 1 on a 256px tile pyramid.
HIGHEST_RES = 78271.5170

# Latitude at which a square Mercator world ends.
MERCATOR_MAX_LAT = 85.0511287798066

DEFAULT_CENTER = LatLng(lat=39.7406, lng=-104.985441)
DEFAULT_RESOLUTION = 611.4962


def _finite(*values: float) -> bool:
    return all(isinstance(v, (int, float)) and math.isfinite(v) for v in values)


class Projection:
    """Base projection.

    Subclasses provide ``forward`` and ``inverse``.  The zoom ladder is shared:
    resolution halves with every level increment.
    """

    default_center: LatLng = DEFAULT_CENTER
    default_resolution: float = DEFAULT_RESOLUTION

    def __init__(self, min_level: int = 1, max_level: int = 18):
        if min_level > max_level:
            raise ValueError(f"min_level {min_level} exceeds max_level {max_level}")
        self.min_level = min_level
        self.max_level = max_level

    def forward(self, lng: float, lat: float) -> tuple[float, float] | None:
        raise NotImplementedError

    def inverse(self, x: float, y: float) -> tuple[float, float] | None:
        raise NotImplementedError

    def from_level(self, level: float) -> float:
        """Return the resolution (m/px) for a (possibly fractional) zoom level."""
        return HIGHEST_RES / math.pow(2, level - 1)

    def to_level(self, resolution: float) -> float:
        return math.log2(HIGHEST_RES / resolution) + 1

    def clamp_level(self, level: float) -> float:
        return max(self.min_level, min(self.max_level, level))


class WebMercatorProjection(Projection):
    """Spherical "Web Mercator" as used by OSM, Google, Esri et al.

    X = east, Y = north, both in meters from (0, 0).  Latitudes beyond
    ``MERCATOR_MAX_LAT`` are outside the domain.
    """

    def forward(self, lng, lat):
        if not _finite(lng, lat) or abs(lat) > MERCATOR_MAX_LAT:
            return None
        x = math.radians(lng) * EARTH_RADIUS
        y = math.log(math.tan(math.pi / 4 + math.radians(lat) / 2)) * EARTH_RADIUS
        return (x, y)

    def inverse(self, x, y):
        if not _finite(x, y):
            return None
        lng = math.degrees(x / EARTH_RADIUS)
        lat = math.degrees(math.pi / 2 - 2.0 * math.atan(math.exp(-y / EARTH_RADIUS)))
        return (lng, lat)


class EquirectangularProjection(Projection):
    """Equirectangular projection to meters, scaled for a reference latitude.

    Origin is (0, 0) lng/lat.  X = east, Y = north.
    """

    def __init__(self, ref_lat: float = 0.0, min_level: int = 1, max_level: int = 18):
        super().__init__(min_level, max_level)
        if not -90.0 < ref_lat < 90.0:
            raise ValueError(f"ref_lat must be strictly between -90 and 90, got {ref_lat}")
        self.ref_lat = ref_lat
        self.cos_lat = math.cos(math.radians(ref_lat))

    def forward(self, lng, lat):
        if not _finite(lng, lat) or abs(lat) > 90.0 or abs(lng) > 180.0:
            return None
        x = lng * METERS_PER_DEGREE_LAT * self.cos_lat
        y = lat * METERS_PER_DEGREE_LAT
        return (x, y)

    def inverse(self, x, y):
        if not _finite(x, y):
            return None
        return (x / (METERS_PER_DEGREE_LAT * self.cos_lat), y / METERS_PER_DEGREE_LAT)
