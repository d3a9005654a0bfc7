"""Renderable objects and the providers that supply them."""
import json
import logging
import pathlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Sequence

from shapely import STRtree
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

logger = logging.getLogger(__name__)


class GeometryObject:
    """Object with a WGS84 geometry that can be rendered on a tile.

    Any object exposing a ``geometry`` attribute is accepted by the
    renderer; subclassing is optional.
    """

    geometry: BaseGeometry


@dataclass(eq=False)
class BasicGeometryObject(GeometryObject):
    """Wrapper for cases when all you have is a geometry and its attributes."""

    geometry: BaseGeometry
    properties: Dict[str, Any] = field(default_factory=dict)


class ObjectProvider(ABC):
    """Source of the objects to draw on a tile."""

    @abstractmethod
    def get_objects(self, zoom: int, envelope: BaseGeometry,
                    extra_key: Hashable) -> Sequence[GeometryObject]:
        """Return the objects that fall into ``envelope``.

        Parameters
        ----------
        zoom : int
            Current zoom level. Can be used to drop objects too small to be
            visible.
        envelope : shapely.geometry.Polygon
            Boundary of the tile in WGS84.
        extra_key : hashable
            Arbitrary value passed to ``TileService.get_tile`` for extra
            filtering.

        Returns
        -------
        sequence
            Objects in paint order.
        """


class StaticObjectProvider(ObjectProvider):
    """Provider over a fixed, in-memory list of objects.

    Objects are filtered with an STR-tree and returned in their original
    order. ``extra_key`` is ignored.
    """

    def __init__(self, objects: Sequence[GeometryObject]):
        self.objects = list(objects)
        self._tree = STRtree([obj.geometry for obj in self.objects])

    def get_objects(self, zoom, envelope, extra_key=None) -> List[GeometryObject]:
        if not self.objects:
            return []
        indices = self._tree.query(envelope, predicate="intersects")
        return [self.objects[i] for i in sorted(indices)]

    @classmethod
    def from_geojson(cls, filename) -> "StaticObjectProvider":
        """Load the features of a GeoJSON file.

        Parameters
        ----------
        filename : str or pathlib.Path
            FeatureCollection, single Feature or bare geometry in WGS84.
        """
        with open(pathlib.Path(filename)) as fh:
            data = json.load(fh)
        if data.get("type") == "FeatureCollection":
            features = data.get("features", [])
        elif data.get("type") == "Feature":
            features = [data]
        else:
            features = [{"geometry": data, "properties": {}}]
        objects = [
            BasicGeometryObject(shape(feature["geometry"]), feature.get("properties") or {})
            for feature in features if feature.get("geometry")
        ]
        logger.debug(f"Loaded {len(objects)} objects from {filename}")
        return cls(objects)
