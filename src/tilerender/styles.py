"""Object styles and stylers.

A style describes how one object is painted. Exactly one of the style
variants applies to an object:

* :class:`OutlineStyle` draws the outline only.
* :class:`OutlineFillStyle` draws the outline, fills with a color and
  optionally overlays a pattern.
* :class:`OutlineCustomFillStyle` draws the outline and fills with a
  :class:`Paint`.
* :class:`CustomStyle` hands the shape to a :class:`CustomRenderer` and
  nothing else is painted.
* :class:`EmptyStyle` paints nothing.

Stylers choose a style for an object at a zoom level.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from matplotlib.path import Path

from .strokes import Stroke

DEFAULT_BORDER_STROKE = Stroke(2.0)


class CustomRenderer(ABC):
    """Paints a shape when the standard outline/fill process is not enough."""

    @abstractmethod
    def render_shape(self, surface, shape: Path):
        """Paint ``shape`` on ``surface``.

        The shape is already in pixel coordinates, so it can be passed
        directly to the surface drawing methods or to ``surface.axes``.
        """


class Paint(ABC):
    """Custom fill for a shape."""

    @abstractmethod
    def fill(self, surface, shape: Path):
        """Fill ``shape`` on ``surface``."""


@dataclass(frozen=True)
class SolidPaint(Paint):
    """Fill with a single color."""

    color: Any

    def fill(self, surface, shape):
        surface.fill_path(shape, self.color)


@dataclass(frozen=True)
class HatchPaint(Paint):
    """Fill with a matplotlib hatch pattern such as ``"//"`` or ``"x"``.

    The pattern is drawn in ``color`` over an optional ``background``.
    """

    hatch: str
    color: Any = "black"
    background: Any = None

    def fill(self, surface, shape):
        if self.background is not None:
            surface.fill_path(shape, self.background)
        surface.hatch_path(shape, self.hatch, self.color)


class ObjectStyle(ABC):
    """Base class of the style variants."""

    @abstractmethod
    def paint(self, surface, shape: Path):
        """Paint ``shape`` on ``surface`` according to this style."""

    @staticmethod
    def empty() -> "EmptyStyle":
        return EmptyStyle()

    @staticmethod
    def border_only(border_color, border=2.0) -> "OutlineStyle":
        """Outline with a color and either a width or a stroke."""
        stroke = border if hasattr(border, "draw") else Stroke(float(border))
        return OutlineStyle(border_color, stroke)

    @staticmethod
    def border_and_fill(border_color, fill_color, border_width: float = 2.0) -> "OutlineFillStyle":
        return OutlineFillStyle(border_color, fill_color, Stroke(float(border_width)))

    @staticmethod
    def border_and_custom_fill(border_color, border_width: float, fill_paint: Paint) -> "OutlineCustomFillStyle":
        return OutlineCustomFillStyle(border_color, fill_paint, Stroke(float(border_width)))

    @staticmethod
    def custom(renderer: CustomRenderer) -> "CustomStyle":
        return CustomStyle(renderer)


def _draw_outline(surface, shape, color, stroke):
    if color is not None:
        (stroke or DEFAULT_BORDER_STROKE).draw(surface, shape, color)


@dataclass(frozen=True)
class EmptyStyle(ObjectStyle):

    def paint(self, surface, shape):
        pass


@dataclass(frozen=True)
class OutlineStyle(ObjectStyle):
    """Outline only. Without a stroke a solid 2 px line is used."""

    color: Any
    stroke: Optional[Any] = None

    def paint(self, surface, shape):
        _draw_outline(surface, shape, self.color, self.stroke)


@dataclass(frozen=True)
class OutlineFillStyle(ObjectStyle):
    """Outline, then a plain fill, then an optional pattern on top."""

    color: Any
    fill_color: Any
    stroke: Optional[Any] = None
    pattern: Optional[Paint] = None

    def paint(self, surface, shape):
        _draw_outline(surface, shape, self.color, self.stroke)
        if self.fill_color is not None:
            surface.fill_path(shape, self.fill_color)
        if self.pattern is not None:
            self.pattern.fill(surface, shape)


@dataclass(frozen=True)
class OutlineCustomFillStyle(ObjectStyle):
    """Outline, then a fill with a custom paint."""

    color: Any
    paint_fill: Paint
    stroke: Optional[Any] = None

    def paint(self, surface, shape):
        _draw_outline(surface, shape, self.color, self.stroke)
        self.paint_fill.fill(surface, shape)


@dataclass(frozen=True)
class CustomStyle(ObjectStyle):
    """Delegate all painting to ``renderer``."""

    renderer: CustomRenderer

    def paint(self, surface, shape):
        self.renderer.render_shape(surface, shape)


def make_style(color=None, fill_color=None, stroke=None, paint=None,
               custom_renderer=None) -> ObjectStyle:
    """Build a style from loose optional fields.

    A custom renderer wins over everything else. Otherwise a paint selects
    :class:`OutlineCustomFillStyle` and a fill color
    :class:`OutlineFillStyle`; the outline is drawn whenever ``color`` is
    set.
    """
    if custom_renderer is not None:
        return CustomStyle(custom_renderer)
    if paint is not None and fill_color is not None:
        return OutlineFillStyle(color, fill_color, stroke, pattern=paint)
    if paint is not None:
        return OutlineCustomFillStyle(color, paint, stroke)
    if fill_color is not None:
        return OutlineFillStyle(color, fill_color, stroke)
    if color is not None:
        return OutlineStyle(color, stroke)
    return EmptyStyle()


class ObjectStyler(ABC):
    """Chooses the style of each object.

    Implementations must be deterministic and free of side effects: the
    same object at the same zoom always gets the same style, and the
    styler may be called from several threads at once.
    """

    @abstractmethod
    def style_object(self, obj, zoom: int) -> ObjectStyle:
        """Return the style for ``obj`` at ``zoom``."""


class FixedStyleStyler(ObjectStyler):
    """Styler that uses a fixed style for all objects."""

    def __init__(self, style: ObjectStyle):
        self.style = style

    def style_object(self, obj, zoom):
        return self.style


class ZoomBasedStyler(ObjectStyler):
    """Styler that picks the style from the current zoom level only."""

    def __init__(self, zoom_to_style: Callable[[int], ObjectStyle]):
        self.zoom_to_style = zoom_to_style

    def style_object(self, obj, zoom):
        return self.zoom_to_style(zoom)

    @classmethod
    def from_bands(cls, bands: Mapping[int, ObjectStyle]) -> "ZoomBasedStyler":
        """Build a styler from ``{min_zoom: style}`` bands.

        Each style applies from its minimum zoom up to the next band. Zooms
        below the lowest band get an :class:`EmptyStyle`, which suppresses
        the feature.
        """
        ordered = sorted(bands.items())

        def zoom_to_style(zoom):
            style = EmptyStyle()
            for min_zoom, band_style in ordered:
                if zoom < min_zoom:
                    break
                style = band_style
            return style

        return cls(zoom_to_style)


class AttributeStyler(ObjectStyler):
    """Styler that looks an object attribute up in a table.

    The attribute is read from the object's ``properties`` mapping when it
    has one, otherwise from the object itself.

    Parameters
    ----------
    attribute : str
        Name of the classification attribute.
    styles : Mapping
        Attribute value to style.
    default : ObjectStyle, optional
        Style for values missing from ``styles``. Defaults to an empty style.
    """

    def __init__(self, attribute: str, styles: Mapping[Any, ObjectStyle],
                 default: Optional[ObjectStyle] = None):
        self.attribute = attribute
        self.styles = dict(styles)
        self.default = default if default is not None else EmptyStyle()

    def style_object(self, obj, zoom):
        properties = getattr(obj, "properties", None)
        if isinstance(properties, Mapping):
            value = properties.get(self.attribute)
        else:
            value = getattr(obj, self.attribute, None)
        return self.styles.get(value, self.default)
