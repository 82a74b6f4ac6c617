"""
Unit Tests for single-crop and composite rendering.
"""

import pytest
from PIL import Image, ImageColor

from focal_crop import render
from focal_crop.config import CompositeStyle, LayoutSettings
from focal_crop.errors import RenderTargetExhausted, SourceUnavailable
from focal_crop.image_io import RasterSource
from focal_crop.layout import layout_composite
from focal_crop.models import CompositeLayout, CropRect, FocalPoint, PanelPlacement
from focal_crop.ratios import Ratio
from focal_crop.render import dimension_text, load_font, new_canvas, render_composite, render_crop


class TestRenderCrop:
    """Tests for render_crop."""

    def test_render_when_left_crop_then_left_pixels(self, wide_source):
        """A 100×100 crop at x=0 contains the left half of the gradient."""
        out = render_crop(wide_source, CropRect(0, 0, 100, 100))
        assert out.size == (100, 100)
        assert out.getpixel((0, 0)) == wide_source.image.getpixel((0, 0))
        assert out.getpixel((99, 99)) == wide_source.image.getpixel((99, 99))

    def test_render_when_right_crop_then_right_pixels(self, wide_source):
        """A crop at x=100 starts at source column 100."""
        out = render_crop(wide_source, CropRect(100, 0, 100, 100))
        assert out.getpixel((0, 50)) == wide_source.image.getpixel((100, 50))

    def test_render_rounds_fractional_crop(self, wide_source):
        """Fractional crop sizes are rounded to whole pixels."""
        out = render_crop(wide_source, CropRect(10.3, 0, 66.6, 100))
        assert out.size == (67, 100)

    def test_render_when_pixels_unreadable_then_source_unavailable(self, monkeypatch, wide_source):
        """Pillow read errors surface as SourceUnavailable naming the source."""
        def broken_crop(self, box=None):
            raise OSError("image file is truncated")

        monkeypatch.setattr(Image.Image, "crop", broken_crop)
        with pytest.raises(SourceUnavailable, match="wide.png") as excinfo:
            render_crop(wide_source, CropRect(0, 0, 100, 100))
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_render_keeps_source_mode(self):
        """RGBA sources produce RGBA crops."""
        source = RasterSource(Image.new("RGBA", (20, 10), (255, 0, 0, 128)))
        out = render_crop(source, CropRect(0, 0, 10, 10))
        assert out.mode == "RGBA"
        assert out.getpixel((5, 5)) == (255, 0, 0, 128)


class TestNewCanvas:
    """Tests for canvas allocation limits."""

    def test_canvas_when_side_too_long_then_raises(self):
        """Sides beyond the limit are refused before allocating."""
        with pytest.raises(RenderTargetExhausted):
            new_canvas((render.MAX_CANVAS_SIDE + 1, 1))

    def test_canvas_when_too_many_pixels_then_raises(self, monkeypatch):
        """The pixel budget applies independently of the side limit."""
        monkeypatch.setattr(render, "MAX_CANVAS_PIXELS", 99)
        with pytest.raises(RenderTargetExhausted):
            new_canvas((10, 10))

    def test_canvas_fill(self):
        """The requested color fills the canvas."""
        assert new_canvas((2, 2), "RGB", "#ff0000").getpixel((1, 1)) == (255, 0, 0)


class TestDimensionText:
    """Tests for dimension_text."""

    def test_dimension_text_uses_rounded_size(self):
        """Native sizes are shown rounded, with a multiplication sign."""
        assert dimension_text(CropRect(0, 0, 562.5, 1000)) == "562 × 1000px"


class TestLoadFont:
    """Tests for load_font."""

    def test_load_font_always_returns_a_font(self):
        """Either a TrueType candidate or Pillow's default is returned."""
        font = load_font(16)
        assert font.getbbox("1:1")[2] > 0


class TestRenderComposite:
    """Tests for render_composite."""

    def _layout(self, source, ratios):
        return layout_composite(source.dimensions, [Ratio(r) for r in ratios], FocalPoint())

    def test_composite_canvas_matches_layout(self, wide_source):
        """The canvas is exactly the layout's rounded total size."""
        layout = self._layout(wide_source, [1.0, 2 / 3])
        img = render_composite(wide_source, layout)
        assert img.size == layout.canvas_size
        assert img.mode == "RGB"

    def test_composite_background_in_corner(self, wide_source):
        """Padding areas keep the background color."""
        layout = self._layout(wide_source, [1.0])
        img = render_composite(wide_source, layout)
        background = ImageColor.getrgb(CompositeStyle().background)
        assert img.getpixel((0, 0)) == background
        assert img.getpixel((img.width - 1, img.height - 1)) == background

    def test_composite_panel_pixels_come_from_crop(self, wide_source):
        """The middle of a panel shows the source pixels of its crop."""
        layout = self._layout(wide_source, [1.0])
        (panel,) = layout.panels
        img = render_composite(wide_source, layout)
        # centered 100×100 crop of the 200×100 source starts at x=50
        x = round(panel.offset_x) + 50
        y = round(layout.top_padding) + 50
        expected = wide_source.image.getpixel((100, 50))
        assert all(abs(a - b) <= 3 for a, b in zip(img.getpixel((x, y)), expected))

    def test_composite_border_drawn(self, wide_source):
        """The panel edge carries the border color."""
        layout = self._layout(wide_source, [1.0])
        (panel,) = layout.panels
        img = render_composite(wide_source, layout)
        border = ImageColor.getrgb(CompositeStyle().border_color)
        assert img.getpixel((round(panel.offset_x), round(layout.top_padding) + 50)) == border

    def test_composite_without_border(self, wide_source):
        """A zero border width leaves panel pixels untouched at the edge."""
        layout = self._layout(wide_source, [1.0])
        (panel,) = layout.panels
        style = CompositeStyle(border_width=0)
        img = render_composite(wide_source, layout, style)
        border = ImageColor.getrgb(style.border_color)
        assert img.getpixel((round(panel.offset_x), round(layout.top_padding) + 50)) != border

    def test_composite_from_panel_images(self, wide_source):
        """Pre-cropped panels are scaled into their boxes."""
        layout = self._layout(wide_source, [1.0])
        (panel,) = layout.panels
        red = Image.new("RGB", (10, 10), (255, 0, 0))
        img = render_composite(wide_source, layout, panel_images=[red])
        assert img.getpixel((round(panel.offset_x) + 50, round(layout.top_padding) + 50)) == (255, 0, 0)

    def test_composite_alpha_panel_over_backdrop(self, wide_source):
        """Transparent panel pixels show the white backdrop."""
        layout = self._layout(wide_source, [1.0])
        (panel,) = layout.panels
        clear = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
        img = render_composite(wide_source, layout, panel_images=[clear])
        assert img.getpixel((round(panel.offset_x) + 50, round(layout.top_padding) + 50)) == (255, 255, 255)

    def test_composite_when_panel_count_mismatch_then_raises(self, wide_source):
        """panel_images must match the layout one-to-one."""
        layout = self._layout(wide_source, [1.0, 2.0])
        with pytest.raises(ValueError):
            render_composite(wide_source, layout, panel_images=[Image.new("RGB", (1, 1))])

    def test_composite_when_too_large_then_raises(self, wide_source):
        """An oversized layout fails with RenderTargetExhausted."""
        panel = PanelPlacement(
            offset_x=40, scaled_width=40_000, scaled_height=100,
            crop=CropRect(0, 0, 100, 100), label="huge",
        )
        layout = CompositeLayout(total_width=40_080, total_height=220, top_padding=80, panels=(panel,))
        with pytest.raises(RenderTargetExhausted):
            render_composite(wide_source, layout)

    def test_composite_custom_settings(self, wide_source):
        """Layout settings flow through to the canvas size."""
        settings = LayoutSettings(padding=5, top_padding=10, bottom_padding=5, max_display_height=50)
        layout = layout_composite(wide_source.dimensions, [Ratio(1.0)], FocalPoint(), settings)
        img = render_composite(wide_source, layout)
        assert img.size == (60, 65)
