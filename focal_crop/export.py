"""
Export pipeline: crop or composite a decoded source and encode it as PNG.

The blocking Pillow work runs in worker threads via ``asyncio.to_thread``
so a caller's event loop stays responsive.  Composite panels are cropped
concurrently and the layout is painted only after every panel is ready;
one failed panel fails the whole export.

Every ``CropToolError`` is caught here and returned as an unsuccessful
``ExportResult``; nothing is retried.  Nothing is written to disk until
the caller hands a successful result to ``save_export``.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from focal_crop.config import CompositeStyle, LayoutSettings
from focal_crop.errors import CropToolError
from focal_crop.image_io import RasterSource, encode_png_async
from focal_crop.layout import layout_composite
from focal_crop.models import FocalPoint, compute_crop
from focal_crop.naming import composite_filename, export_filename, unique_path
from focal_crop.ratios import Ratio
from focal_crop.render import render_composite, render_crop

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Outcome of one export request."""
    success: bool
    filename: str
    data: bytes = b""
    size: tuple[int, int] = (0, 0)
    error: str = ""


async def export_single(
    source: RasterSource,
    ratio: Ratio,
    focal_point: FocalPoint,
    original_name: str | None = None,
) -> ExportResult:
    """Crop *source* to *ratio* around *focal_point* and encode it."""
    # Snapshot so a caller moving the focal point mid-export has no effect
    focal = FocalPoint(focal_point.x, focal_point.y)
    filename = export_filename(original_name or source.name, ratio.display)
    try:
        crop = compute_crop(source.width, source.height, ratio.value, focal)
        img = await asyncio.to_thread(render_crop, source, crop)
        data = await encode_png_async(img)
    except CropToolError as exc:
        logger.error("Export of %s failed: %s", filename, exc)
        return ExportResult(False, filename, error=str(exc))

    logger.info("Exported %s (%d×%d, %d bytes)", filename, img.width, img.height, len(data))
    return ExportResult(True, filename, data=data, size=img.size)


async def export_composite(
    source: RasterSource,
    ratios: Sequence[Ratio],
    focal_point: FocalPoint,
    original_name: str | None = None,
    settings: LayoutSettings | None = None,
    style: CompositeStyle | None = None,
) -> ExportResult:
    """Render every ratio side by side with labels and encode the sheet."""
    focal = FocalPoint(focal_point.x, focal_point.y)
    filename = composite_filename(original_name or source.name)
    try:
        layout = layout_composite(source.dimensions, ratios, focal, settings)
        panel_images = await asyncio.gather(*(
            asyncio.to_thread(render_crop, source, panel.crop) for panel in layout.panels
        ))
        img = await asyncio.to_thread(render_composite, source, layout, style, panel_images)
        data = await encode_png_async(img)
    except CropToolError as exc:
        logger.error("Composite export %s failed: %s", filename, exc)
        return ExportResult(False, filename, error=str(exc))

    logger.info(
        "Exported composite %s with %d panel(s) (%d×%d, %d bytes)",
        filename, len(layout.panels), img.width, img.height, len(data),
    )
    return ExportResult(True, filename, data=data, size=img.size)


async def export_each(
    source: RasterSource,
    ratios: Sequence[Ratio],
    focal_point: FocalPoint,
    original_name: str | None = None,
) -> list[ExportResult]:
    """One single-crop export per ratio, run concurrently, results in ratio order."""
    return list(await asyncio.gather(*(
        export_single(source, ratio, focal_point, original_name) for ratio in ratios
    )))


def save_export(result: ExportResult, directory: Path) -> Path:
    """
    Write a successful export into *directory* under a unique name.

    Raises ValueError for failed results and OSError if writing fails.
    """
    if not result.success:
        raise ValueError(f"Cannot save failed export {result.filename}: {result.error}")
    directory.mkdir(parents=True, exist_ok=True)
    out_path = unique_path(directory / result.filename)
    out_path.write_bytes(result.data)
    logger.info("Saved %s", out_path)
    return out_path
