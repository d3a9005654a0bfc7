"""Tests for the tilerender.service module."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from conftest import decode
from tilerender.cache import TileCache
from tilerender.errors import InvalidTileError, TileRenderError
from tilerender.objects import StaticObjectProvider
from tilerender.render import BLANK_TILE
from tilerender.service import TileService
from tilerender.styles import FixedStyleStyler, ObjectStyle
from tilerender.tilemath import tile_bbox_lnglat

RED_STYLER = FixedStyleStyler(ObjectStyle.border_and_fill("red", "red", 2))


class TestTileServiceRendering:
    """Tests for rendering through the service."""

    def test_empty_provider_returns_blank_tile(self, mock_provider):
        service = TileService(mock_provider, MagicMock())
        assert service.get_tile(10, 511, 340) == BLANK_TILE
        assert service.blank_tile == BLANK_TILE

    def test_provider_receives_tile_envelope(self, mock_provider):
        service = TileService(mock_provider, MagicMock())
        service.get_tile(10, 511, 340, extra_key="night")
        zoom, envelope, extra_key = mock_provider.get_objects.call_args[0]
        assert zoom == 10
        assert extra_key == "night"
        expected = tile_bbox_lnglat(511, 340, 10)
        assert envelope.bounds == pytest.approx(expected.bounds)

    def test_example_tile_is_red_in_the_middle(self, example_tile, tile_polygon_object):
        service = TileService(StaticObjectProvider([tile_polygon_object]), RED_STYLER)
        data = service.get_tile(*example_tile)
        assert len(data) > 0
        r, g, b, a = decode(data).getpixel((128, 128))
        assert r > 200 and g < 60 and b < 60 and a > 200

    def test_neighbouring_tile_is_blank(self, example_tile, tile_polygon_object):
        zoom, x, y = example_tile
        service = TileService(StaticObjectProvider([tile_polygon_object]), RED_STYLER)
        img = decode(service.get_tile(zoom, x + 5, y))
        assert img.getchannel("A").getbbox() is None

    @pytest.mark.parametrize("address", [(-1, 0, 0), (3, 8, 0), (3, 0, -1), (0, 1, 0), (3, 1.5, 0)])
    def test_invalid_address(self, mock_provider, address):
        service = TileService(mock_provider, MagicMock())
        with pytest.raises(InvalidTileError):
            service.get_tile(*address)
        with pytest.raises(TileRenderError):
            service.get_tile(*address)
        mock_provider.get_objects.assert_not_called()

    def test_provider_errors_propagate(self, mock_provider):
        mock_provider.get_objects.side_effect = IOError("database down")
        service = TileService(mock_provider, MagicMock(), cache_enabled=True)
        with pytest.raises(IOError):
            service.get_tile(1, 0, 0)
        assert len(service.cache) == 0

    def test_invalid_padding(self, mock_provider):
        with pytest.raises(ValueError):
            TileService(mock_provider, MagicMock(), padding_share=1.5)


class TestTileServiceCache:
    """Tests for the cached service."""

    def test_disabled_by_default(self, mock_provider):
        service = TileService(mock_provider, MagicMock())
        service.get_tile(1, 0, 0)
        service.get_tile(1, 0, 0)
        assert service.cache is None
        assert mock_provider.get_objects.call_count == 2

    def test_second_request_is_served_from_cache(self, example_tile, tile_polygon_object):
        provider = MagicMock(wraps=StaticObjectProvider([tile_polygon_object]))
        service = TileService(provider, RED_STYLER, cache_enabled=True)
        first = service.get_tile(*example_tile)
        second = service.get_tile(*example_tile)
        assert first == second
        provider.get_objects.assert_called_once()

    def test_extra_key_is_part_of_the_cache_key(self, mock_provider):
        service = TileService(mock_provider, MagicMock(), cache_enabled=True)
        service.get_tile(2, 1, 1, extra_key="a")
        service.get_tile(2, 1, 1, extra_key="b")
        service.get_tile(2, 1, 1, extra_key="a")
        assert mock_provider.get_objects.call_count == 2
        assert ("a", 2, 1, 1) in service.cache
        assert ("b", 2, 1, 1) in service.cache

    def test_default_cache_limits(self, mock_provider):
        service = TileService(mock_provider, MagicMock(), cache_enabled=True)
        assert service.cache.max_entries == 4096
        assert service.cache.max_bytes == 256 * 1024 * 1024

    def test_explicit_cache(self, mock_provider):
        cache = TileCache(max_entries=1)
        service = TileService(mock_provider, MagicMock(), cache=cache)
        service.get_tile(1, 0, 0)
        service.get_tile(1, 1, 0)
        assert len(cache) == 1

    def test_concurrent_requests_render_once(self, example_tile, tile_polygon_object):
        release = threading.Event()
        calls = []

        class SlowProvider(StaticObjectProvider):
            def get_objects(self, zoom, envelope, extra_key=None):
                calls.append(zoom)
                release.wait(5)
                return super().get_objects(zoom, envelope, extra_key)

        service = TileService(SlowProvider([tile_polygon_object]), RED_STYLER, cache_enabled=True)
        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [pool.submit(service.get_tile, *example_tile) for _ in range(4)]
            time.sleep(0.1)
            release.set()
            results = [f.result(30) for f in futures]

        assert len(calls) == 1
        assert len(set(results)) == 1

    def test_close_releases_cache(self, mock_provider):
        with TileService(mock_provider, MagicMock(), cache_enabled=True) as service:
            service.get_tile(1, 0, 0)
        assert service.cache is None


class TestTileServiceFromSettings:
    """Tests for building a service from settings."""

    def test_defaults(self, mock_provider):
        service = TileService.from_settings(mock_provider, MagicMock(), source={})
        assert service.cache is None
        assert service.pipeline.crop_geometries is False
        assert service.pipeline.tile_size == 256

    def test_values_from_source(self, mock_provider):
        source = {
            "cache_enabled": True,
            "cache_max_entries": 5,
            "crop_geometries": True,
            "padding_share": "0.2",
            "tile_size": 512,
        }
        service = TileService.from_settings(mock_provider, MagicMock(), source=source)
        assert service.cache.max_entries == 5
        assert service.pipeline.crop_geometries is True
        assert service.pipeline.padding_share == pytest.approx(0.2)
        assert decode(service.get_tile(1, 0, 0)).size == (512, 512)
