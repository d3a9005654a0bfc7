"""Conversion between shapely geometries and matplotlib paths.

Geometries in pixel space are turned into :class:`matplotlib.path.Path`
objects for painting, and paths are turned back into shapely lines when a
stroke outline has to be computed geometrically.
"""
from typing import List, Tuple

import numpy as np
from matplotlib.path import Path
from shapely.geometry import LinearRing, LineString
from shapely.geometry.polygon import orient

# Side length in pixels of the square drawn for point geometries
POINT_SIZE = 3.0

EMPTY_PATH = Path(np.empty((0, 2)), [])


def _ring_path(coords):
    # The closing edge is an explicit line so that decorations cover it
    coords = np.asarray(coords, dtype=float)[:, :2]
    coords = np.vstack([coords, coords[:1]])
    codes = [Path.MOVETO] + [Path.LINETO] * (len(coords) - 2) + [Path.CLOSEPOLY]
    return Path(coords, codes)


def _line_path(coords):
    coords = np.asarray(coords, dtype=float)[:, :2]
    codes = [Path.MOVETO] + [Path.LINETO] * (len(coords) - 1)
    return Path(coords, codes)


def _point_path(x, y, size=POINT_SIZE):
    half = size / 2.0
    return _ring_path([(x - half, y - half), (x + half, y - half),
                       (x + half, y + half), (x - half, y + half),
                       (x - half, y - half)])


def _parts(geometry) -> List[Path]:
    if geometry.is_empty:
        return []
    kind = geometry.geom_type
    if kind == "Point":
        return [_point_path(geometry.x, geometry.y)]
    if kind in ("LineString", "LinearRing"):
        if len(geometry.coords) < 2:
            return []
        return [_line_path(geometry.coords)]
    if kind == "Polygon":
        # Opposite ring orientation keeps holes empty under non-zero winding
        polygon = orient(geometry, 1.0)
        return [_ring_path(polygon.exterior.coords)] + [
            _ring_path(ring.coords) for ring in polygon.interiors]
    paths = []
    for part in geometry.geoms:
        paths.extend(_parts(part))
    return paths


def geometry_to_path(geometry) -> Path:
    """Convert a shapely geometry to a single compound matplotlib path.

    Points become small squares, lines open subpaths and polygon rings
    closed subpaths. Empty geometries give an empty path.
    """
    parts = _parts(geometry)
    if not parts:
        return EMPTY_PATH
    if len(parts) == 1:
        return parts[0]
    return Path.make_compound_path(*parts)


def path_to_polylines(path: Path) -> List[Tuple[np.ndarray, bool]]:
    """Flatten a path into polylines.

    Curves are approximated by line segments.

    Returns
    -------
    list of (numpy.ndarray, bool)
        Vertices of each subpath and whether it was explicitly closed.
    """
    polylines = []
    current = []
    closed = False
    for vertices, code in path.iter_segments(curves=False, simplify=False):
        if code == Path.MOVETO:
            if len(current) > 1:
                polylines.append((np.array(current), closed))
            current = [tuple(vertices[-2:])]
            closed = False
        elif code == Path.LINETO:
            current.append(tuple(vertices[-2:]))
        elif code == Path.CLOSEPOLY:
            if current and current[-1] != current[0]:
                current.append(current[0])
            closed = True
    if len(current) > 1:
        polylines.append((np.array(current), closed))
    return polylines


def path_to_lines(path: Path) -> list:
    """Return the subpaths of ``path`` as shapely lines.

    Closed subpaths become :class:`LinearRing` so that stroking them does not
    add end caps. Degenerate subpaths are dropped.
    """
    lines = []
    for coords, closed in path_to_polylines(path):
        distinct = np.unique(coords, axis=0)
        if len(distinct) < 2:
            continue
        if closed and len(distinct) >= 3:
            lines.append(LinearRing(coords))
        else:
            lines.append(LineString(coords))
    return lines
