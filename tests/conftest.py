"""Shared pytest fixtures for tilerender tests."""

import io
import json
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from PIL import Image

from tilerender.objects import BasicGeometryObject
from tilerender.tilemath import tile_bbox_lnglat


def decode(data):
    """Decode PNG bytes into an RGBA Pillow image."""
    return Image.open(io.BytesIO(data)).convert("RGBA")


def full_tile_polygon(zoom, x, y, margin=0.0):
    """Polygon covering the whole tile, optionally grown by ``margin`` degrees."""
    return tile_bbox_lnglat(x, y, zoom).expand_by(margin, margin).to_polygon()


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def example_tile():
    """Tile used by the rendering scenarios, as (zoom, x, y)."""
    return (10, 511, 340)


@pytest.fixture
def tile_polygon_object(example_tile):
    """Object whose polygon covers the whole example tile."""
    return BasicGeometryObject(full_tile_polygon(*example_tile), {"kind": "park"})


@pytest.fixture
def mock_provider():
    """Provide a mock object provider returning no objects."""
    provider = MagicMock()
    provider.get_objects.return_value = []
    return provider


@pytest.fixture
def surface():
    """Provide a mock paint surface recording drawing calls."""
    return MagicMock()


@pytest.fixture
def sample_geojson(temp_dir, example_tile):
    """Write a FeatureCollection with a polygon covering the example tile."""
    polygon = full_tile_polygon(*example_tile, margin=0.01)
    data = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "block"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [list(map(list, polygon.exterior.coords))],
                },
            },
            {
                "type": "Feature",
                "properties": {"name": "far away"},
                "geometry": {"type": "Point", "coordinates": [120.0, -40.0]},
            },
        ],
    }
    path = temp_dir / "features.geojson"
    path.write_text(json.dumps(data))
    return path
