"""Raster map tiles from vector geometry.

This package renders WGS84 geometries into 256x256 PNG tiles addressed by
the XYZ scheme, with per-object styling, decorated strokes and an
in-memory tile cache.
"""

from .errors import TileRenderError, InvalidTileError
from .tilemath import Envelope, TileAddress, tile_bbox_lnglat
from .objects import BasicGeometryObject, GeometryObject, ObjectProvider, StaticObjectProvider
from .strokes import DecoratedStroke, Stroke
from .styles import (CustomRenderer, CustomStyle, EmptyStyle, FixedStyleStyler,
                     HatchPaint, ObjectStyle, ObjectStyler, OutlineCustomFillStyle,
                     OutlineFillStyle, OutlineStyle, SolidPaint, ZoomBasedStyler)
from .cache import TileCache
from .render import BLANK_TILE, TileRenderPipeline
from .service import TileService
