"""
Raster rendering for single crops and composites (Qt-free).

``render_crop`` copies one crop at native resolution.  ``render_composite``
paints a ``CompositeLayout``: background, then for each panel its label,
its native pixel size, a white backdrop, the scaled crop and a border.
"""

import functools
import logging
from collections.abc import Sequence

from PIL import Image, ImageDraw, ImageFont

from focal_crop.config import (
    BOLD_FONT_CANDIDATES, MAX_CANVAS_PIXELS, MAX_CANVAS_SIDE, REGULAR_FONT_CANDIDATES,
    CompositeStyle,
)
from focal_crop.errors import RenderTargetExhausted
from focal_crop.image_io import RasterSource
from focal_crop.models import CompositeLayout, CropRect, PanelPlacement

logger = logging.getLogger(__name__)


# =============================================================================
# Fonts
# =============================================================================
@functools.lru_cache(maxsize=16)
def load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont:
    """Load the first available TrueType font, falling back to Pillow's default."""
    candidates = BOLD_FONT_CANDIDATES if bold else REGULAR_FONT_CANDIDATES
    for font_name in candidates:
        try:
            return ImageFont.truetype(font_name, size)
        except (IOError, OSError):
            continue

    logger.warning("Could not load TrueType font, using default")
    return ImageFont.load_default(size=size)


def dimension_text(crop: CropRect) -> str:
    """Native crop size as shown under each panel label."""
    w, h = crop.size
    return f"{w} × {h}px"


# =============================================================================
# Canvas allocation
# =============================================================================
def new_canvas(size: tuple[int, int], mode: str = "RGB", color=None) -> Image.Image:
    """Allocate an output raster, raising RenderTargetExhausted if it is too large."""
    width, height = size
    if width > MAX_CANVAS_SIDE or height > MAX_CANVAS_SIDE or width * height > MAX_CANVAS_PIXELS:
        raise RenderTargetExhausted(
            f"Output of {width}×{height}px exceeds the maximum canvas size"
        )
    try:
        return Image.new(mode, (width, height), color)
    except (MemoryError, ValueError) as exc:
        raise RenderTargetExhausted(f"Could not allocate {width}×{height}px canvas: {exc}") from exc


# =============================================================================
# Single crop
# =============================================================================
def render_crop(source: RasterSource, crop: CropRect) -> Image.Image:
    """The pixels of *source* inside *crop*, unscaled, rounded to whole pixels."""
    size = crop.size
    out = new_canvas(size, source.image.mode)
    source.draw_region(out, crop, (0, 0, *size))
    return out


# =============================================================================
# Composite
# =============================================================================
def panel_box(panel: PanelPlacement, top: float) -> tuple[int, int, int, int]:
    """Integer destination box of a panel on the composite canvas."""
    left = round(panel.offset_x)
    top = round(top)
    return (
        left,
        top,
        left + max(1, round(panel.scaled_width)),
        top + max(1, round(panel.scaled_height)),
    )


def render_composite(
    source: RasterSource,
    layout: CompositeLayout,
    style: CompositeStyle | None = None,
    panel_images: Sequence[Image.Image] | None = None,
) -> Image.Image:
    """
    Paint *layout* into a new RGB raster.

    *panel_images*, when given, are the already-cropped rasters for each
    panel (same order as ``layout.panels``) and are scaled into place;
    otherwise each panel is sampled straight from *source*.
    """
    style = style or CompositeStyle()
    if panel_images is not None and len(panel_images) != len(layout.panels):
        raise ValueError(
            f"expected {len(layout.panels)} panel images, got {len(panel_images)}"
        )

    canvas = new_canvas(layout.canvas_size, "RGB", style.background)
    draw = ImageDraw.Draw(canvas)
    label_font = load_font(style.label_font_size, bold=True)
    dimension_font = load_font(style.dimension_font_size)
    half = style.border_width // 2

    for i, panel in enumerate(layout.panels):
        center_x = panel.offset_x + panel.scaled_width / 2
        draw.text(
            (center_x, style.label_baseline), panel.label,
            fill=style.label_color, font=label_font, anchor="ms",
        )
        draw.text(
            (center_x, style.dimension_baseline), dimension_text(panel.crop),
            fill=style.dimension_color, font=dimension_font, anchor="ms",
        )

        box = panel_box(panel, layout.top_padding)
        left, top, right, bottom = box
        draw.rectangle((left, top, right - 1, bottom - 1), fill=style.backdrop)

        if panel_images is None:
            source.draw_region(canvas, panel.crop, box)
        else:
            scaled = panel_images[i].resize((right - left, bottom - top), Image.Resampling.LANCZOS)
            canvas.paste(scaled, (left, top), scaled if scaled.mode == "RGBA" else None)

        if style.border_width > 0:
            draw.rectangle(
                (left - half, top - half, right - 1 + half, bottom - 1 + half),
                outline=style.border_color, width=style.border_width,
            )

    logger.debug(
        "Rendered composite %d×%d with %d panel(s)",
        canvas.width, canvas.height, len(layout.panels),
    )
    return canvas
