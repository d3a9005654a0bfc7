"""Tests for the tilerender.styles module."""

from unittest.mock import MagicMock, call

import pytest
from matplotlib.path import Path

from tilerender.objects import BasicGeometryObject
from tilerender.strokes import Stroke
from tilerender.styles import (DEFAULT_BORDER_STROKE, AttributeStyler, CustomRenderer, CustomStyle,
                               EmptyStyle, FixedStyleStyler, HatchPaint, ObjectStyle,
                               OutlineCustomFillStyle, OutlineFillStyle, OutlineStyle,
                               SolidPaint, ZoomBasedStyler, make_style)

SHAPE = Path([(0, 0), (10, 0), (10, 10), (0, 0)],
             [Path.MOVETO, Path.LINETO, Path.LINETO, Path.CLOSEPOLY])


class TestPaintPrecedence:
    """Tests for how each style variant paints a shape."""

    def test_custom_renderer_only(self, surface):
        """A custom renderer should be the only thing that paints."""
        renderer = MagicMock(spec=CustomRenderer)
        style = make_style(color="red", fill_color="blue", stroke=Stroke(3.0),
                           custom_renderer=renderer)
        assert isinstance(style, CustomStyle)

        style.paint(surface, SHAPE)

        renderer.render_shape.assert_called_once_with(surface, SHAPE)
        assert surface.mock_calls == []

    def test_outline_uses_default_stroke(self, surface):
        OutlineStyle("red").paint(surface, SHAPE)
        surface.stroke_path.assert_called_once_with(
            SHAPE, "red", width=DEFAULT_BORDER_STROKE.width,
            cap=DEFAULT_BORDER_STROKE.cap, join=DEFAULT_BORDER_STROKE.join)
        surface.fill_path.assert_not_called()

    def test_outline_with_stroke(self, surface):
        OutlineStyle("red", Stroke(5.0, cap="round")).paint(surface, SHAPE)
        assert surface.stroke_path.call_args.kwargs["width"] == 5.0

    def test_outline_then_fill_then_pattern(self, surface):
        """Fill should follow the outline and the pattern should come last."""
        style = OutlineFillStyle("red", "blue", Stroke(2.0), pattern=HatchPaint("//", "black"))
        style.paint(surface, SHAPE)
        names = [c[0] for c in surface.mock_calls]
        assert names == ["stroke_path", "fill_path", "hatch_path"]
        surface.fill_path.assert_called_once_with(SHAPE, "blue")
        surface.hatch_path.assert_called_once_with(SHAPE, "//", "black")

    def test_fill_without_outline(self, surface):
        OutlineFillStyle(None, "green").paint(surface, SHAPE)
        surface.stroke_path.assert_not_called()
        surface.fill_path.assert_called_once_with(SHAPE, "green")

    def test_custom_fill_paint(self, surface):
        paint = MagicMock()
        OutlineCustomFillStyle("red", paint).paint(surface, SHAPE)
        surface.stroke_path.assert_called_once()
        paint.fill.assert_called_once_with(surface, SHAPE)

    def test_empty_style_paints_nothing(self, surface):
        EmptyStyle().paint(surface, SHAPE)
        assert surface.mock_calls == []


class TestPaints:
    """Tests for the fill paints."""

    def test_solid_paint(self, surface):
        SolidPaint("orange").fill(surface, SHAPE)
        surface.fill_path.assert_called_once_with(SHAPE, "orange")

    def test_hatch_with_background(self, surface):
        HatchPaint("x", "black", background="white").fill(surface, SHAPE)
        assert surface.mock_calls == [
            call.fill_path(SHAPE, "white"),
            call.hatch_path(SHAPE, "x", "black"),
        ]


class TestFactories:
    """Tests for the ObjectStyle helper constructors and make_style."""

    def test_border_only_width(self):
        style = ObjectStyle.border_only("red", 3)
        assert style == OutlineStyle("red", Stroke(3.0))

    def test_border_only_stroke(self):
        stroke = Stroke(1.0, dashes=(2, 2))
        assert ObjectStyle.border_only("red", stroke).stroke is stroke

    def test_border_and_fill(self):
        style = ObjectStyle.border_and_fill("red", "blue", 2)
        assert style == OutlineFillStyle("red", "blue", Stroke(2.0))

    def test_border_and_custom_fill(self):
        paint = SolidPaint("blue")
        style = ObjectStyle.border_and_custom_fill("red", 1.5, paint)
        assert style == OutlineCustomFillStyle("red", paint, Stroke(1.5))

    def test_custom_and_empty(self):
        renderer = MagicMock(spec=CustomRenderer)
        assert ObjectStyle.custom(renderer).renderer is renderer
        assert isinstance(ObjectStyle.empty(), EmptyStyle)

    def test_make_style_variants(self):
        paint = SolidPaint("blue")
        assert make_style() == EmptyStyle()
        assert make_style(color="red") == OutlineStyle("red")
        assert make_style(color="red", fill_color="blue") == OutlineFillStyle("red", "blue")
        assert make_style(color="red", paint=paint) == OutlineCustomFillStyle("red", paint)
        assert make_style(fill_color="blue", paint=paint) == OutlineFillStyle(None, "blue", pattern=paint)

    def test_styles_are_immutable(self):
        style = OutlineStyle("red")
        with pytest.raises(AttributeError):
            style.color = "blue"


class TestStylers:
    """Tests for the reference stylers."""

    def test_fixed_styler(self):
        style = OutlineStyle("red")
        styler = FixedStyleStyler(style)
        assert styler.style_object(object(), 3) is style
        assert styler.style_object(object(), 17) is style

    def test_zoom_based_styler(self):
        styler = ZoomBasedStyler(lambda zoom: OutlineStyle("red", Stroke(zoom / 2 + 1)))
        assert styler.style_object(None, 2).stroke.width == 2.0
        assert styler.style_object(None, 10).stroke.width == 6.0

    def test_zoom_bands(self):
        thin = OutlineStyle("red", Stroke(1.0))
        thick = OutlineStyle("red", Stroke(4.0))
        styler = ZoomBasedStyler.from_bands({14: thick, 8: thin})
        assert isinstance(styler.style_object(None, 5), EmptyStyle)
        assert styler.style_object(None, 8) is thin
        assert styler.style_object(None, 13) is thin
        assert styler.style_object(None, 14) is thick
        assert styler.style_object(None, 20) is thick

    def test_attribute_styler_properties(self):
        water = OutlineFillStyle("blue", "lightblue")
        styler = AttributeStyler("kind", {"water": water})
        obj = BasicGeometryObject(None, {"kind": "water"})
        assert styler.style_object(obj, 10) is water
        other = BasicGeometryObject(None, {"kind": "road"})
        assert isinstance(styler.style_object(other, 10), EmptyStyle)

    def test_attribute_styler_plain_attribute(self):
        style = OutlineStyle("black")
        fallback = OutlineStyle("grey")
        obj = MagicMock(spec=["geometry", "code"])
        obj.code = 3
        styler = AttributeStyler("code", {3: style}, default=fallback)
        assert styler.style_object(obj, 0) is style
        obj.code = 4
        assert styler.style_object(obj, 0) is fallback
