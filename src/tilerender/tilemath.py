"""Spherical Mercator tile math.

Pure functions converting XYZ tile addresses into projected (EPSG:3857)
and geographic (EPSG:4326) envelopes. The formulas follow the classic
GoogleMapsTileMath / gdal2tiles conventions so that adjacent tiles share
bit-identical edges.
"""
import math
from dataclasses import dataclass
from typing import Tuple

import mercantile
from shapely.geometry import Polygon, box

from .errors import InvalidTileError

EARTH_RADIUS = 6378137
TILE_SIZE = 256

# 20037508.342789244
ORIGIN_SHIFT = 2 * math.pi * EARTH_RADIUS / 2.0

# 156543.03392804062 for 256 pixel tiles
INITIAL_RESOLUTION = 2 * math.pi * EARTH_RADIUS / TILE_SIZE


@dataclass(frozen=True)
class Envelope:
    """Axis-aligned bounding box, either in lng/lat or in meters."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_corners(cls, a: Tuple[float, float], b: Tuple[float, float]) -> "Envelope":
        """Build an envelope from two opposite corners in any order."""
        return cls(min(a[0], b[0]), min(a[1], b[1]),
                   max(a[0], b[0]), max(a[1], b[1]))

    @classmethod
    def from_bounds(cls, bounds: Tuple[float, float, float, float]) -> "Envelope":
        """Build an envelope from a shapely style (minx, miny, maxx, maxy) tuple."""
        return cls(*(float(v) for v in bounds))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def expand_by(self, dx: float, dy: float) -> "Envelope":
        """Return a copy grown by ``dx`` on the left and right, ``dy`` on top and bottom."""
        return Envelope(self.min_x - dx, self.min_y - dy,
                        self.max_x + dx, self.max_y + dy)

    def to_polygon(self) -> Polygon:
        return box(self.min_x, self.min_y, self.max_x, self.max_y)


def _tile_index(value, name: str) -> int:
    try:
        index = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidTileError(f"Tile {name} must be an integer, got {value!r}") from e
    if index != value:
        raise InvalidTileError(f"Tile {name} must be an integer, got {value!r}")
    return index


@dataclass(frozen=True)
class TileAddress:
    """XYZ tile coordinates."""

    zoom: int
    x: int
    y: int

    @classmethod
    def checked(cls, zoom: int, x: int, y: int) -> "TileAddress":
        """Create a tile address, rejecting coordinates outside the pyramid.

        Raises
        ------
        InvalidTileError
            If a value is not integral, ``zoom`` is negative or ``x``/``y``
            lie outside ``[0, 2**zoom)``.
        """
        zoom, x, y = _tile_index(zoom, "zoom"), _tile_index(x, "x"), _tile_index(y, "y")
        if zoom < 0:
            raise InvalidTileError(f"Invalid zoom level {zoom}")
        size = matrix_size(zoom)
        if not (0 <= x < size and 0 <= y < size):
            raise InvalidTileError(
                f"Tile {zoom}/{x}/{y} is outside the valid range [0, {size}) for zoom {zoom}")
        return cls(zoom, x, y)

    @property
    def bounds_lnglat(self) -> Envelope:
        return tile_bbox_lnglat(self.x, self.y, self.zoom)

    @property
    def bounds_meters(self) -> Envelope:
        return tile_bbox_meters(self.x, self.y, self.zoom)

    def __str__(self) -> str:
        return f"{self.zoom}/{self.x}/{self.y}"


def matrix_size(zoom: int) -> int:
    """Number of tiles along one axis at ``zoom``."""
    return 1 << zoom


def resolution(zoom: int) -> float:
    """Resolution (meters/pixel) for given zoom level, measured at the Equator.

    Parameters
    ----------
    zoom : int
        Zoom level.

    Returns
    -------
    float
        Meters per pixel.
    """
    return INITIAL_RESOLUTION / matrix_size(zoom)


def pixels_to_meters(px: float, py: float, zoom: int) -> Tuple[float, float]:
    """Convert pixel coordinates of the zoom level pyramid to EPSG:3857.

    The pixel Y axis grows downwards, the meter Y axis upwards.
    """
    res = resolution(zoom)
    mx = px * res - ORIGIN_SHIFT
    my = -py * res + ORIGIN_SHIFT
    return mx, my


def tile_top_left_meters(tx: int, ty: int, zoom: int) -> Tuple[float, float]:
    """Return the EPSG:3857 coordinate of the top-left corner of a tile."""
    px = tx * TILE_SIZE
    py = ty * TILE_SIZE
    return pixels_to_meters(float(px), float(py), zoom)


def meters_to_lnglat(mx: float, my: float) -> Tuple[float, float]:
    """Convert a Spherical Mercator (EPSG:3857) point to lng/lat (EPSG:4326).

    Parameters
    ----------
    mx : float
        X coordinate in meters.
    my : float
        Y coordinate in meters.

    Returns
    -------
    tuple of float
        (longitude, latitude) in degrees.
    """
    lon = mx / ORIGIN_SHIFT * 180.0
    lat = my / ORIGIN_SHIFT * 180.0
    lat = 180 / math.pi * (2 * math.atan(math.exp(lat * math.pi / 180.0)) - math.pi / 2.0)
    return lon, lat


def tile_bbox_meters(tx: int, ty: int, zoom: int) -> Envelope:
    """Return the EPSG:3857 bounding box of a tile."""
    return Envelope.from_corners(tile_top_left_meters(tx, ty, zoom),
                                 tile_top_left_meters(tx + 1, ty + 1, zoom))


def tile_bbox_lnglat(tx: int, ty: int, zoom: int) -> Envelope:
    """Return the EPSG:4326 bounding box of a tile.

    The box spans from the top-left corner of ``(tx, ty)`` to the top-left
    corner of ``(tx + 1, ty + 1)``.
    """
    top_left = meters_to_lnglat(*tile_top_left_meters(tx, ty, zoom))
    lower_right = meters_to_lnglat(*tile_top_left_meters(tx + 1, ty + 1, zoom))
    return Envelope.from_corners(top_left, lower_right)


def lnglat_to_tile(lng: float, lat: float, zoom: int) -> TileAddress:
    """Return the tile containing a lng/lat point at ``zoom``."""
    tile = mercantile.tile(lng, lat, zoom)
    return TileAddress(tile.z, tile.x, tile.y)
