"""Strokes used to outline shapes on a tile.

:class:`Stroke` is a plain line stroke. :class:`DecoratedStroke` combines a
main stroke with copies of a small template shape placed every ``step``
pixels along the path and rotated to follow it, which is how ornaments such
as railway hatching or fence ticks are drawn from a single style value.

Strokes work on :class:`matplotlib.path.Path` objects in pixel coordinates.
Outlines are computed with shapely so that they can be combined with set
operations.
"""
import math
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from matplotlib.path import Path
from matplotlib.transforms import Affine2D
from shapely.geometry import GeometryCollection
from shapely.ops import substring, unary_union

from .shapes import geometry_to_path, path_to_lines

# matplotlib style names to shapely buffer styles
_CAP_STYLES = {"butt": "flat", "round": "round", "projecting": "square"}
_JOIN_STYLES = {"miter": "mitre", "round": "round", "bevel": "bevel"}


@dataclass(frozen=True)
class Stroke:
    """Plain line stroke.

    Parameters
    ----------
    width : float, optional
        Line width in pixels, by default 2.
    dashes : tuple of float, optional
        Alternating on/off lengths in pixels. ``None`` draws a solid line.
    cap : str, optional
        End cap: ``"butt"``, ``"round"`` or ``"projecting"``.
    join : str, optional
        Line join: ``"miter"``, ``"round"`` or ``"bevel"``.
    miter_limit : float, optional
        Limit on the miter length relative to the half width.
    """

    width: float = 2.0
    dashes: Optional[Tuple[float, ...]] = None
    cap: str = "projecting"
    join: str = "miter"
    miter_limit: float = 10.0

    def __post_init__(self):
        if self.width <= 0:
            raise ValueError(f"Stroke width must be positive, got {self.width}")
        if self.cap not in _CAP_STYLES:
            raise ValueError(f"Unknown cap style {self.cap!r}")
        if self.join not in _JOIN_STYLES:
            raise ValueError(f"Unknown join style {self.join!r}")
        if self.dashes is not None:
            dashes = tuple(float(d) for d in self.dashes)
            if not dashes or any(d < 0 for d in dashes) or sum(dashes) <= 0:
                raise ValueError(f"Invalid dash pattern {self.dashes!r}")
            object.__setattr__(self, "dashes", dashes)

    def _dashed(self, line) -> list:
        pattern = self.dashes
        if len(pattern) % 2:
            pattern = pattern * 2
        pieces = []
        position, index = 0.0, 0
        while position < line.length:
            length = pattern[index % len(pattern)]
            if index % 2 == 0 and length > 0:
                pieces.append(substring(line, position, min(position + length, line.length)))
            position += length
            index += 1
        return pieces

    def stroked_shape(self, path: Path):
        """Return the area covered by stroking ``path`` as a shapely geometry."""
        lines = path_to_lines(path)
        if self.dashes is not None:
            lines = [piece for line in lines for piece in self._dashed(line)]
        outlines = [
            line.buffer(self.width / 2.0,
                        cap_style=_CAP_STYLES[self.cap],
                        join_style=_JOIN_STYLES[self.join],
                        mitre_limit=self.miter_limit)
            for line in lines if line.length > 0
        ]
        if not outlines:
            return GeometryCollection()
        return unary_union(outlines)

    def draw(self, surface, path: Path, color):
        """Stroke ``path`` on ``surface`` with ``color``."""
        if self.dashes is None:
            surface.stroke_path(path, color, width=self.width,
                                cap=self.cap, join=self.join)
        else:
            surface.fill_path(geometry_to_path(self.stroked_shape(path)), color)


@dataclass(frozen=True)
class Placement:
    """Position and orientation (radians) of one decoration copy."""

    x: float
    y: float
    angle: float


def straight_segments(path: Path) -> Iterator[Tuple[Tuple[float, float], Tuple[float, float]]]:
    """Yield ``(start, end)`` for every straight segment of ``path``.

    Curves advance the current point without producing a segment. The
    implicit segment created by a close command is not reported either.
    """
    current = None
    subpath_start = None
    for vertices, code in path.iter_segments(curves=True, simplify=False):
        end = (float(vertices[-2]), float(vertices[-1]))
        if code == Path.MOVETO:
            current = subpath_start = end
        elif code == Path.LINETO:
            if current is not None:
                yield current, end
            current = end
        elif code in (Path.CURVE3, Path.CURVE4):
            current = end
        elif code == Path.CLOSEPOLY:
            current = subpath_start


def _decorate_segment(start, end, pixels: float, step: float) -> Tuple[float, List[Placement]]:
    """Place decorations on one segment.

    Parameters
    ----------
    start, end : tuple of float
        Segment end points.
    pixels : float
        Distance travelled since the last decoration, carried over from the
        previous segments.
    step : float
        Distance between decorations.

    Returns
    -------
    tuple
        The updated distance and the placements found on this segment.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.hypot(dx, dy)
    if length == 0 or pixels + length < step:
        return pixels + length, []

    angle = math.atan2(dy, dx)
    placements = []
    offset = max(0.0, step - pixels)
    while offset <= length:
        fraction = offset / length
        placements.append(Placement(start[0] + dx * fraction,
                                    start[1] + dy * fraction,
                                    angle))
        offset += step
    return length - (offset - step), placements


def place_decorations(path: Path, step: float) -> List[Placement]:
    """Compute where decorations go along ``path``.

    The distance accumulator runs over the whole path, so decorations stay
    evenly spaced across vertices. A decoration falling exactly on the end
    of a segment is placed there and the accumulator restarts at zero.
    """
    if step <= 0:
        raise ValueError(f"Decoration step must be positive, got {step}")
    pixels = 0.0
    placements = []
    for start, end in straight_segments(path):
        pixels, found = _decorate_segment(start, end, pixels, step)
        placements.extend(found)
    return placements


@dataclass(frozen=True, eq=False)
class DecoratedStroke:
    """Stroke that places a shape along the main line every ``step`` pixels.

    The template shape is oriented towards the positive X axis and is
    rotated by the local direction of the line before being moved to its
    position. A short tick perpendicular to the line, 10 px long, is
    ``Path([(0, 5), (0, -5)])``.

    Parameters
    ----------
    step : float
        Distance between shapes in pixels.
    main_stroke : Stroke
        Stroke used to draw the line itself.
    shape : matplotlib.path.Path
        Shape placed along the line.
    shape_width : float, optional
        Width of the stroke used to outline each placed shape, by default 2.
    """

    step: float
    main_stroke: Stroke
    shape: Path
    shape_width: float = 2.0

    def __post_init__(self):
        if self.step <= 0:
            raise ValueError(f"Decoration step must be positive, got {self.step}")
        if self.shape_width <= 0:
            raise ValueError(f"Shape width must be positive, got {self.shape_width}")

    @property
    def width(self) -> float:
        return self.main_stroke.width

    def decorations(self, path: Path) -> Optional[Path]:
        """Return all placed copies of the shape as one compound path."""
        copies = [
            self.shape.transformed(Affine2D().rotate(p.angle).translate(p.x, p.y))
            for p in place_decorations(path, self.step)
        ]
        if not copies:
            return None
        return Path.make_compound_path(*copies)

    def create_stroked_shape(self, path: Path):
        """Return the union of the stroked line and the stroked decorations."""
        outline = self.main_stroke.stroked_shape(path)
        decorations = self.decorations(path)
        if decorations is None:
            return outline
        side_stroke = Stroke(width=self.shape_width)
        return unary_union([outline, side_stroke.stroked_shape(decorations)])

    # Same name as on Stroke so both can be used interchangeably
    stroked_shape = create_stroked_shape

    def draw(self, surface, path: Path, color):
        surface.fill_path(geometry_to_path(self.create_stroked_shape(path)), color)
