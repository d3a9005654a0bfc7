"""Projection of WGS84 geometry into tile pixel space.

Geometry is first transformed to Web Mercator (EPSG:3857) and then mapped
linearly onto the tile raster using the tile's projected envelope as the
reference frame.
"""
import numpy as np
from pyproj import Transformer
from shapely.ops import transform

from .tilemath import Envelope, TILE_SIZE

# Web Mercator transformer (lon/lat to x/y meters)
_transformer_to_webmerc = Transformer.from_crs(
    "EPSG:4326", "EPSG:3857", always_xy=True
)


def lonlat_to_webmercator(lons, lats):
    """Transform longitude/latitude values to Web Mercator coordinates.

    Parameters
    ----------
    lons : float or numpy.ndarray
        Longitude values in degrees.
    lats : float or numpy.ndarray
        Latitude values in degrees.

    Returns
    -------
    tuple
        (x, y) coordinates in Web Mercator meters.
    """
    return _transformer_to_webmerc.transform(lons, lats)


def to_mercator(geometry):
    """Return a copy of a WGS84 shapely geometry in Web Mercator meters."""
    return transform(lonlat_to_webmercator, geometry)


def envelope_to_mercator(envelope: Envelope) -> Envelope:
    """Project a lng/lat envelope and return the bounds of the result."""
    return Envelope.from_bounds(to_mercator(envelope.to_polygon()).bounds)


class PixelTransform:
    """Affine mapping from projected meters to tile pixels.

    The pixel origin is the top-left corner of the tile, so the Y axis is
    flipped relative to the projected coordinates. Coordinates are kept as
    floats to preserve subpixel accuracy.

    Parameters
    ----------
    envelope : Envelope
        Projected envelope of the tile.
    width : int, optional
        Tile width in pixels, by default 256.
    height : int, optional
        Tile height in pixels, by default 256.
    """

    def __init__(self, envelope: Envelope, width: int = TILE_SIZE, height: int = TILE_SIZE):
        if envelope.width <= 0 or envelope.height <= 0:
            raise ValueError(f"Degenerate tile envelope {envelope.bounds}")
        self.envelope = envelope
        self.width = width
        self.height = height

    def __call__(self, x, y, z=None):
        env = self.envelope
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        px = (x - env.min_x) / env.width * self.width
        py = self.height - (y - env.min_y) / env.height * self.height
        if px.ndim == 0:
            return float(px), float(py)
        return px, py

    def apply(self, geometry):
        """Return ``geometry`` (in meters) expressed in tile pixels."""
        return transform(self, geometry)
