"""Tile render pipeline.

Projects the objects of one tile into pixel space, resolves their styles
and paints them with matplotlib's antialiased Agg rasterizer. The result
is encoded as an RGBA PNG with Pillow.
"""
import io
import logging
import time
from typing import Sequence

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import PathPatch
from matplotlib.path import Path
from PIL import Image
from shapely.errors import GEOSException

from .projection import PixelTransform, envelope_to_mercator, to_mercator
from .shapes import geometry_to_path
from .styles import ObjectStyler
from .tilemath import Envelope, TILE_SIZE

logger = logging.getLogger(__name__)

DPI = 100


def encode_png(img: Image.Image) -> bytes:
    """Encode a Pillow image as PNG bytes."""
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def blank_tile(size: int = TILE_SIZE) -> bytes:
    """Return the PNG bytes of a fully transparent tile."""
    return encode_png(Image.new("RGBA", (size, size), (0, 0, 0, 0)))


BLANK_TILE = blank_tile(TILE_SIZE)


class PaintSurface:
    """Transparent raster a tile is painted on.

    Coordinates are tile pixels with the origin in the top-left corner.
    Widths are given in pixels. The underlying matplotlib axes is
    available as ``axes`` for custom renderers that need more than the
    helpers below.

    Parameters
    ----------
    size : int, optional
        Tile size in pixels, by default 256.
    """

    def __init__(self, size: int = TILE_SIZE):
        self.size = size
        self.figure = Figure(figsize=(size / DPI, size / DPI), dpi=DPI)
        self.figure.patch.set_alpha(0.0)
        self.canvas = FigureCanvasAgg(self.figure)
        self.axes = self.figure.add_axes([0, 0, 1, 1])
        self.axes.set_xlim(0, size)
        self.axes.set_ylim(size, 0)
        self.axes.axis("off")
        self.axes.patch.set_alpha(0.0)

    @staticmethod
    def points(pixels: float) -> float:
        """Convert a length in pixels to matplotlib points."""
        return pixels * 72.0 / DPI

    def add_patch(self, patch):
        patch.set_antialiased(True)
        patch.set_snap(False)
        self.axes.add_patch(patch)
        return patch

    def stroke_path(self, path: Path, color, width: float = 2.0,
                    cap: str = "projecting", join: str = "miter"):
        """Draw the outline of ``path``."""
        return self.add_patch(PathPatch(
            path, fill=False, edgecolor=color, linewidth=self.points(width),
            capstyle=cap, joinstyle=join))

    def fill_path(self, path: Path, color):
        """Fill the interior of ``path``."""
        return self.add_patch(PathPatch(
            path, facecolor=color, edgecolor="none", linewidth=0))

    def hatch_path(self, path: Path, hatch: str, color):
        """Cover the interior of ``path`` with a hatch pattern."""
        return self.add_patch(PathPatch(
            path, facecolor="none", edgecolor=color, hatch=hatch, linewidth=0))

    def to_image(self) -> Image.Image:
        self.canvas.draw()
        rgba = np.asarray(self.canvas.buffer_rgba())
        img = Image.fromarray(rgba)
        if img.size != (self.size, self.size):
            img = img.resize((self.size, self.size), Image.LANCZOS)
        return img

    def to_png(self) -> bytes:
        return encode_png(self.to_image())

    def close(self):
        self.figure.clear()


class TileRenderPipeline:
    """Paints WGS84 objects onto one tile.

    Parameters
    ----------
    styler : ObjectStyler
        Chooses the style of each object.
    crop_geometries : bool, optional
        Crop geometries to a box slightly larger than the tile before
        painting. Very large geometries are otherwise processed in full even
        though only a small part is visible.
    padding_share : float, optional
        Share of the tile width and height added on each side of the crop
        box. Styles with thick lines or large decorations need enough
        padding to keep the cut edges out of the tile.
    tile_size : int, optional
        Tile size in pixels, by default 256.
    """

    def __init__(self, styler: ObjectStyler, crop_geometries: bool = False,
                 padding_share: float = 0.0, tile_size: int = TILE_SIZE):
        if not 0.0 <= padding_share < 1.0:
            raise ValueError(f"padding_share must be in [0, 1), got {padding_share}")
        self.styler = styler
        self.crop_geometries = crop_geometries
        self.padding_share = padding_share
        self.tile_size = tile_size
        self.blank_tile = BLANK_TILE if tile_size == TILE_SIZE else blank_tile(tile_size)

    def crop_box(self, projected_envelope: Envelope):
        return projected_envelope.expand_by(
            projected_envelope.width * self.padding_share,
            projected_envelope.height * self.padding_share,
        ).to_polygon()

    @staticmethod
    def _crop(geometry, crop_box):
        try:
            return geometry.intersection(crop_box)
        except (GEOSException, ValueError) as e:
            logger.debug(f"Cropping failed, using the whole geometry: {e}")
            return geometry

    def render(self, envelope: Envelope, objects: Sequence, zoom: int) -> bytes:
        """Render ``objects`` on the tile covering ``envelope``.

        Parameters
        ----------
        envelope : Envelope
            Tile bounds in WGS84.
        objects : sequence
            Objects with a WGS84 ``geometry``, painted in the given order.
        zoom : int
            Zoom level passed on to the styler.

        Returns
        -------
        bytes
            PNG encoded tile. The blank tile when nothing was painted.
        """
        if not objects:
            return self.blank_tile

        render_start = time.perf_counter()
        projected_envelope = envelope_to_mercator(envelope)
        to_pixels = PixelTransform(projected_envelope, self.tile_size, self.tile_size)
        crop_box = self.crop_box(projected_envelope) if self.crop_geometries else None

        surface = PaintSurface(self.tile_size)
        painted = 0
        try:
            for obj in objects:
                geometry = to_mercator(obj.geometry)
                if crop_box is not None:
                    geometry = self._crop(geometry, crop_box)
                if geometry.is_empty:
                    continue
                shape = geometry_to_path(to_pixels.apply(geometry))
                style = self.styler.style_object(obj, zoom)
                style.paint(surface, shape)
                painted += 1
            if not painted:
                return self.blank_tile
            data = surface.to_png()
        finally:
            surface.close()

        logger.debug(f"Rendered {painted} objects in "
                     f"{(time.perf_counter() - render_start) * 1000:.1f}ms")
        return data
