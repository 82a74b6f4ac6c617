"""
Data models and crop-geometry utilities.

CropRect and CompositeLayout are the core data structures shared by the
layout engine, the renderers and the UI.  All geometry is kept in float
source-pixel coordinates; rounding to the integer pixel grid only happens
in ``CropRect.box()`` / ``CropRect.size`` at the render boundary.

``compute_crop`` is the focal-point crop policy: the largest rectangle of
the target ratio, cropped along exactly one axis and slid along that axis
by the focal-point percentage.
"""

from dataclasses import dataclass, field

from focal_crop.config import DEFAULT_FOCAL_X, DEFAULT_FOCAL_Y


def _check_percent(name: str, value: float) -> None:
    if not 0 <= value <= 100:
        raise ValueError(f"focal point {name} must be within 0-100, got {value!r}")


# =============================================================================
# Data classes
# =============================================================================
@dataclass
class FocalPoint:
    """Focal point as percentages of image width (x) and height (y)."""
    x: float = DEFAULT_FOCAL_X
    y: float = DEFAULT_FOCAL_Y

    def __post_init__(self):
        _check_percent("x", self.x)
        _check_percent("y", self.y)

    def set_x(self, value: float) -> None:
        _check_percent("x", value)
        self.x = value

    def set_y(self, value: float) -> None:
        _check_percent("y", value)
        self.y = value

    def reset(self) -> None:
        self.x = DEFAULT_FOCAL_X
        self.y = DEFAULT_FOCAL_Y


@dataclass(frozen=True)
class RasterDimensions:
    """Pixel size of a decoded source image."""
    width: float
    height: float

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image dimensions must be positive, got {self.width}×{self.height}")

    @property
    def ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in source-image coordinates (unrounded)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def size(self) -> tuple[int, int]:
        """Integer output size of this crop, never smaller than 1×1."""
        return max(1, round(self.width)), max(1, round(self.height))

    def box(self, bounds: RasterDimensions | None = None) -> tuple[int, int, int, int]:
        """
        Integer ``(left, top, right, bottom)`` box for Pillow.

        With *bounds*, the box is shifted back inside the image when
        independent rounding of offset and size would overshoot an edge.
        """
        w, h = self.size
        left, top = round(self.x), round(self.y)
        if bounds is not None:
            left = max(0, min(left, int(bounds.width) - w))
            top = max(0, min(top, int(bounds.height) - h))
        return left, top, left + w, top + h


@dataclass(frozen=True)
class PanelPlacement:
    """Where one crop lands inside a composite."""
    offset_x: float
    scaled_width: float
    scaled_height: float
    crop: CropRect
    label: str


@dataclass(frozen=True)
class CompositeLayout:
    """Canvas size plus ordered panel placements for a composite."""
    total_width: float
    total_height: float
    top_padding: float
    panels: tuple[PanelPlacement, ...] = field(default_factory=tuple)

    @property
    def canvas_size(self) -> tuple[int, int]:
        return max(1, round(self.total_width)), max(1, round(self.total_height))


# =============================================================================
# Crop math
# =============================================================================
def compute_crop(
    original_width: float,
    original_height: float,
    target_ratio: float,
    focal_point: FocalPoint,
) -> CropRect:
    """
    Largest *target_ratio* crop inside the image, positioned by *focal_point*.

    Wider images keep their full height and slide the crop horizontally;
    everything else (including an exact ratio match) keeps the full width
    and slides vertically.  No rounding is done here.
    """
    if original_width <= 0 or original_height <= 0:
        raise ValueError(f"image dimensions must be positive, got {original_width}×{original_height}")
    if target_ratio <= 0:
        raise ValueError(f"target ratio must be positive, got {target_ratio!r}")
    _check_percent("x", focal_point.x)
    _check_percent("y", focal_point.y)

    image_ratio = original_width / original_height

    if image_ratio > target_ratio:
        # Image is wider: full height, crop width
        crop_h = original_height
        crop_w = original_height * target_ratio
        max_offset = original_width - crop_w
        return CropRect((focal_point.x / 100) * max_offset, 0, crop_w, crop_h)

    # Image is taller or equal: full width, crop height
    crop_w = original_width
    crop_h = original_width / target_ratio
    max_offset = original_height - crop_h
    return CropRect(0, (focal_point.y / 100) * max_offset, crop_w, crop_h)
