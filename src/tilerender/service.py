"""Tile service facade.

:class:`TileService` turns ``(zoom, x, y, extra_key)`` requests into PNG
bytes by querying the object provider, running the render pipeline and,
when enabled, caching the result.
"""
import logging
import time
from typing import Hashable, Optional

from . import config
from .cache import TileCache
from .objects import ObjectProvider
from .render import TileRenderPipeline
from .styles import ObjectStyler
from .tilemath import TileAddress, TILE_SIZE

logger = logging.getLogger(__name__)


class TileService:
    """Renders XYZ tiles from a geometry source and a styling function.

    Geometry coordinates are expected in WGS84.

    Parameters
    ----------
    provider : ObjectProvider
        Source of objects for rendering.
    styler : ObjectStyler
        Defines the style of each object returned by ``provider``.
    cache_enabled : bool, optional
        Keep generated tiles in an in-memory cache. Faster for repeated
        requests but consumes memory.
    crop_geometries : bool, optional
        Crop geometries to a padded tile envelope before rendering.
    padding_share : float, optional
        Crop envelope padding as a share of the tile width and height,
        e.g. 0.1 adds 10 % on every side.
    tile_size : int, optional
        Tile size in pixels, by default 256.
    cache : TileCache, optional
        Cache instance to use. Overrides ``cache_enabled``.

    Raises
    ------
    ValueError
        If ``padding_share`` is outside ``[0, 1)``.
    """

    def __init__(self, provider: ObjectProvider, styler: ObjectStyler,
                 cache_enabled: bool = False, crop_geometries: bool = False,
                 padding_share: float = 0.0, tile_size: int = TILE_SIZE,
                 cache: Optional[TileCache] = None):
        self.provider = provider
        self.pipeline = TileRenderPipeline(styler, crop_geometries=crop_geometries,
                                           padding_share=padding_share,
                                           tile_size=tile_size)
        if cache is None and cache_enabled:
            cache = TileCache(max_entries=config.DEFAULTS["cache_max_entries"],
                              max_bytes=config.DEFAULTS["cache_max_bytes"])
        self.cache = cache

    @classmethod
    def from_settings(cls, provider: ObjectProvider, styler: ObjectStyler, source=None):
        """Create a service configured from the Dynaconf settings.

        Parameters
        ----------
        provider : ObjectProvider
            Source of objects for rendering.
        styler : ObjectStyler
            Styling function.
        source : Dynaconf or dict, optional
            Settings to read. Defaults to ``tilerender.config.settings``.
        """
        options = config.renderer_options(source)
        cache = None
        if options["cache_enabled"]:
            cache = TileCache(max_entries=options["cache_max_entries"],
                              max_bytes=options["cache_max_bytes"])
        return cls(provider, styler,
                   crop_geometries=options["crop_geometries"],
                   padding_share=options["padding_share"],
                   tile_size=options["tile_size"],
                   cache=cache)

    @property
    def blank_tile(self) -> bytes:
        return self.pipeline.blank_tile

    def _generate(self, tile: TileAddress, extra_key: Hashable) -> bytes:
        logger.debug(f"Generating tile {tile}")
        start = time.perf_counter()

        envelope = tile.bounds_lnglat
        query_start = time.perf_counter()
        objects = self.provider.get_objects(tile.zoom, envelope.to_polygon(), extra_key)
        objects = list(objects) if objects is not None else []
        logger.debug(f"Collected objects in {(time.perf_counter() - query_start) * 1000:.1f}ms")

        if not objects:
            logger.debug("Tile is empty")
            return self.pipeline.blank_tile

        data = self.pipeline.render(envelope, objects, tile.zoom)
        logger.debug(f"Tile {tile} generated in {(time.perf_counter() - start) * 1000:.1f}ms "
                     f"with {len(objects)} objects")
        return data

    def get_tile(self, zoom: int, x: int, y: int, extra_key: Hashable = None) -> bytes:
        """Render an XYZ tile.

        Parameters
        ----------
        zoom, x, y : int
            Tile address.
        extra_key : hashable, optional
            Passed to the provider and part of the cache key.

        Returns
        -------
        bytes
            PNG encoded tile. A transparent tile when there is nothing to
            draw.

        Raises
        ------
        InvalidTileError
            If the address is outside the tile pyramid.
        """
        tile = TileAddress.checked(zoom, x, y)
        if self.cache is None:
            return self._generate(tile, extra_key)
        key = (extra_key, tile.zoom, tile.x, tile.y)
        return self.cache.get(key, lambda: self._generate(tile, extra_key))

    def close(self):
        """Release the cache."""
        if self.cache is not None:
            self.cache.clear()
            self.cache = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
