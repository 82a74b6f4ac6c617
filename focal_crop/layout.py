"""
Composite ("contact sheet") layout.

Pure geometry: one crop per requested ratio, scaled down to a shared
display height and laid out left to right with uniform padding.  The
result is a ``CompositeLayout`` that any renderer can paint.
"""

import logging
from collections.abc import Sequence

from focal_crop.config import LayoutSettings
from focal_crop.errors import EmptyRequestSet
from focal_crop.models import (
    CompositeLayout, FocalPoint, PanelPlacement, RasterDimensions, compute_crop,
)
from focal_crop.ratios import Ratio

logger = logging.getLogger(__name__)


def panel_scale(crop_height: float, max_display_height: float) -> float:
    """Scale factor that caps a panel at *max_display_height* without enlarging it."""
    return min(1.0, max_display_height / crop_height)


def layout_composite(
    source: RasterDimensions,
    requests: Sequence[Ratio],
    focal_point: FocalPoint,
    settings: LayoutSettings | None = None,
) -> CompositeLayout:
    """
    Plan a composite for *requests* (in order) over a *source* image.

    Panel ``i`` starts at ``padding * (i + 1)`` plus the widths of the
    panels before it; the canvas adds one trailing padding after the last
    panel and the label band above the tallest panel.

    Raises EmptyRequestSet when *requests* is empty.
    """
    if not requests:
        raise EmptyRequestSet("Select at least one aspect ratio to export a composite")

    settings = settings or LayoutSettings()
    padding = settings.padding

    panels: list[PanelPlacement] = []
    widths_so_far = 0.0
    for i, ratio in enumerate(requests):
        crop = compute_crop(source.width, source.height, ratio.value, focal_point)
        scale = panel_scale(crop.height, settings.max_display_height)
        offset_x = padding + widths_so_far + padding * i
        placement = PanelPlacement(
            offset_x=offset_x,
            scaled_width=crop.width * scale,
            scaled_height=crop.height * scale,
            crop=crop,
            label=ratio.display,
        )
        logger.debug(
            "Panel %r: crop %.1f×%.1f at (%.1f, %.1f), scale %.4f, x=%.1f",
            placement.label, crop.width, crop.height, crop.x, crop.y, scale, offset_x,
        )
        panels.append(placement)
        widths_so_far += placement.scaled_width

    total_width = sum(p.scaled_width for p in panels) + padding * (len(panels) + 1)
    total_height = (
        settings.top_padding
        + max(p.scaled_height for p in panels)
        + settings.bottom_padding
    )
    return CompositeLayout(
        total_width=total_width,
        total_height=total_height,
        top_padding=settings.top_padding,
        panels=tuple(panels),
    )
