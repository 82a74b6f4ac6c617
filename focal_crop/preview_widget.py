"""
Focal-point preview widget and Qt background threads.

This module contains everything that touches both Qt **and** the crop
core: ``pil_to_qpixmap``, the background ``SourceLoaderThread`` and
``ExportThread``, and the ``FocalPreviewWidget`` that draws the image with
the crop outline of every selected ratio and lets the user drag the focal
point.
"""

import asyncio
import logging
from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QPainter, QPixmap, QColor, QPen, QBrush, QImage, QMouseEvent, QPaintEvent, QResizeEvent,
)

from focal_crop.errors import CropToolError
from focal_crop.export import ExportResult, export_composite, export_each
from focal_crop.image_io import RasterSource, decode_path, decode_url
from focal_crop.models import FocalPoint, compute_crop
from focal_crop.naming import composite_filename
from focal_crop.ratios import Ratio

logger = logging.getLogger(__name__)

# Outline colors cycled across selected ratios
_OUTLINE_COLORS = [
    QColor(255, 255, 255),
    QColor(90, 200, 250),
    QColor(255, 204, 0),
    QColor(255, 105, 97),
    QColor(120, 220, 120),
    QColor(200, 150, 255),
]
_MARKER_RADIUS = 8


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg.copy())


# =============================================================================
# Background threads
# =============================================================================

class SourceLoaderThread(QThread):
    """Decode a file path or URL off the UI thread."""
    loaded = pyqtSignal(object)  # RasterSource
    error = pyqtSignal(str)

    def __init__(self, path: Path | None = None, url: str | None = None, parent=None):
        super().__init__(parent)
        self._path = path
        self._url = url

    def run(self):
        try:
            if self._url is not None:
                source = asyncio.run(decode_url(self._url))
            else:
                source = asyncio.run(decode_path(self._path))
        except CropToolError as e:
            self.error.emit(str(e))
        except Exception as e:
            logger.exception("Unexpected error while loading image")
            self.error.emit(f"Unexpected error: {e}")
        else:
            self.loaded.emit(source)


class ExportThread(QThread):
    """Run an export coroutine off the UI thread and emit its results."""
    finished_exports = pyqtSignal(list)  # list[ExportResult]

    def __init__(self, source: RasterSource, ratios: list[Ratio], focal: FocalPoint,
                 composite: bool, parent=None):
        super().__init__(parent)
        self._source = source
        self._ratios = ratios
        self._focal = FocalPoint(focal.x, focal.y)
        self._composite = composite

    def run(self):
        try:
            if self._composite:
                results = [asyncio.run(export_composite(self._source, self._ratios, self._focal))]
            else:
                results = asyncio.run(export_each(self._source, self._ratios, self._focal))
        except Exception as e:
            logger.exception("Export thread failed")
            name = composite_filename(self._source.name) if self._composite else self._source.name
            results = [ExportResult(False, name, error=f"Unexpected error: {e}")]
        self.finished_exports.emit(results)


def wait_for_threads(threads) -> None:
    """Block until every running thread has finished; ``None`` entries are skipped."""
    for thread in threads:
        if thread is not None and thread.isRunning():
            thread.wait()


# =============================================================================
# Focal preview widget
# =============================================================================

class FocalPreviewWidget(QWidget):
    """Displays the source image, the crop of each selected ratio and the focal point."""

    focal_changed = pyqtSignal(float, float)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._pixmap: QPixmap | None = None
        self._img_w = 0
        self._img_h = 0
        self._ratios: list[Ratio] = []
        self._focal = FocalPoint()
        self._loading = False
        self._dragging = False

        # Display mapping
        self._scale = 1.0
        self._offset_x = 0.0
        self._offset_y = 0.0

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def set_source(self, source: RasterSource):
        self._loading = False
        self._pixmap = pil_to_qpixmap(source.image)
        self._img_w = source.width
        self._img_h = source.height
        self._update_display_mapping()
        self.update()

    def set_ratios(self, ratios: list[Ratio]):
        self._ratios = list(ratios)
        self.update()

    def set_focal_point(self, focal: FocalPoint):
        self._focal = FocalPoint(focal.x, focal.y)
        self.update()

    def clear(self):
        self._pixmap = None
        self.update()

    # --- Coordinate mapping ---

    def _update_display_mapping(self):
        if not self._pixmap or self._img_w == 0:
            return
        margin = 20
        avail_w = self.width() - 2 * margin
        avail_h = self.height() - 2 * margin
        self._scale = min(avail_w / self._img_w, avail_h / self._img_h)
        self._offset_x = margin + (avail_w - self._img_w * self._scale) / 2
        self._offset_y = margin + (avail_h - self._img_h * self._scale) / 2

    def _img_to_display(self, ix: float, iy: float) -> QPointF:
        return QPointF(ix * self._scale + self._offset_x, iy * self._scale + self._offset_y)

    def _display_to_percent(self, pos: QPointF) -> tuple[float, float]:
        ix = (pos.x() - self._offset_x) / self._scale
        iy = (pos.y() - self._offset_y) / self._scale
        px = min(100.0, max(0.0, ix / self._img_w * 100))
        py = min(100.0, max(0.0, iy / self._img_h * 100))
        return round(px, 1), round(py, 1)

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if not self._pixmap:
            painter.setPen(QColor(128, 128, 128))
            msg = "Loading image…" if self._loading else "Open or drop an image"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        tl = self._img_to_display(0, 0)
        br = self._img_to_display(self._img_w, self._img_h)
        dest = QRectF(tl, br)
        painter.drawPixmap(dest.toRect(), self._pixmap)

        # One outline per selected ratio, labelled inside its top-left corner
        for i, ratio in enumerate(self._ratios):
            crop = compute_crop(self._img_w, self._img_h, ratio.value, self._focal)
            rect = QRectF(
                self._img_to_display(crop.x, crop.y),
                self._img_to_display(crop.x + crop.width, crop.y + crop.height),
            )
            color = _OUTLINE_COLORS[i % len(_OUTLINE_COLORS)]
            painter.setPen(QPen(color, 2))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRect(rect)
            painter.drawText(
                rect.adjusted(6, 4 + i * 16, 0, 0),
                Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop,
                ratio.display,
            )

        # Focal point marker
        center = self._img_to_display(
            self._focal.x / 100 * self._img_w, self._focal.y / 100 * self._img_h,
        )
        painter.setPen(QPen(QColor(0, 0, 0), 2))
        painter.setBrush(QBrush(QColor(255, 255, 255, 200)))
        painter.drawEllipse(center, _MARKER_RADIUS, _MARKER_RADIUS)
        painter.drawLine(center - QPointF(_MARKER_RADIUS * 2, 0), center + QPointF(_MARKER_RADIUS * 2, 0))
        painter.drawLine(center - QPointF(0, _MARKER_RADIUS * 2), center + QPointF(0, _MARKER_RADIUS * 2))

        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        self._update_display_mapping()
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if not self._pixmap or event.button() != Qt.MouseButton.LeftButton:
            return
        self._dragging = True
        self._move_focal(event.position())

    def mouseMoveEvent(self, event: QMouseEvent):
        if self._dragging:
            self._move_focal(event.position())

    def mouseReleaseEvent(self, event: QMouseEvent):
        self._dragging = False

    def _move_focal(self, pos: QPointF):
        x, y = self._display_to_percent(pos)
        self._focal = FocalPoint(x, y)
        self.update()
        self.focal_changed.emit(x, y)
