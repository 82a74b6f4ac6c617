"""
Application constants and configuration.

PRESET_RATIOS provides the built-in ratios offered in the ratio panel.
Custom ratios are persisted separately via the ratios module.  All other
constants control ratio math, composite layout and painting, upload
validation and PNG export.

``LayoutSettings`` and ``CompositeStyle`` bundle the layout and paint
constants so callers can override them with ``dataclasses.replace``
instead of editing module globals.

The ``config_dir()`` helper returns the platform-appropriate config
directory used by the ratios persistence module.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "focal-crop-tool"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory


# =============================================================================
# RATIO MATH
# =============================================================================
# Two ratios closer than this are the same ratio (dedupe, lookup, labels)
RATIO_TOLERANCE = 1e-3

# Largest denominator tried when rendering a ratio as "n:d"
MAX_DENOMINATOR = 100

# =============================================================================
# PRESET RATIOS (always offered, never persisted)
# =============================================================================
PRESET_RATIOS = [
    {"label": "1:1 (Square)", "value": 1.0},
    {"label": "2:3 (Photo)", "value": 2 / 3},
    {"label": "3:4 (Photo)", "value": 3 / 4},
    {"label": "4:5 (Photo)", "value": 4 / 5},
    {"label": "16:9 (Display)", "value": 16 / 9},
]

# Focal point (percent of width, percent of height)
DEFAULT_FOCAL_X = 50.0
DEFAULT_FOCAL_Y = 50.0

# =============================================================================
# COMPOSITE LAYOUT & PAINT
# =============================================================================
COMPOSITE_PADDING = 40         # Gap before each panel and after the last one
COMPOSITE_TOP_PADDING = 80     # Label band above the panels
COMPOSITE_BOTTOM_PADDING = 40
MAX_DISPLAY_HEIGHT = 800       # Taller crops are scaled down, never up

BACKGROUND_COLOR = "#f7fafc"
LABEL_COLOR = "#2d3748"
DIMENSION_COLOR = "#718096"
BACKDROP_COLOR = "#ffffff"
BORDER_COLOR = "#e2e8f0"
BORDER_WIDTH = 2

LABEL_FONT_SIZE = 20
LABEL_BASELINE = 35
DIMENSION_FONT_SIZE = 16
DIMENSION_BASELINE = 60

# Font candidates tried in order; Pillow's built-in font is the last resort
BOLD_FONT_CANDIDATES = [
    "arialbd.ttf",
    "Arial Bold.ttf",
    "DejaVuSans-Bold.ttf",
    "LiberationSans-Bold.ttf",
]
REGULAR_FONT_CANDIDATES = [
    "arial.ttf",
    "Arial.ttf",
    "DejaVuSans.ttf",
    "LiberationSans-Regular.ttf",
]

# Largest canvas the renderer will try to allocate
MAX_CANVAS_SIDE = 32_767
MAX_CANVAS_PIXELS = 268_435_456  # 16384 × 16384


@dataclass(frozen=True)
class LayoutSettings:
    """Spacing and scaling constants for the composite layout."""
    padding: float = COMPOSITE_PADDING
    top_padding: float = COMPOSITE_TOP_PADDING
    bottom_padding: float = COMPOSITE_BOTTOM_PADDING
    max_display_height: float = MAX_DISPLAY_HEIGHT


@dataclass(frozen=True)
class CompositeStyle:
    """Colors, fonts and text placement used when painting a composite."""
    background: str = BACKGROUND_COLOR
    label_color: str = LABEL_COLOR
    dimension_color: str = DIMENSION_COLOR
    backdrop: str = BACKDROP_COLOR
    border_color: str = BORDER_COLOR
    border_width: int = BORDER_WIDTH
    label_font_size: int = LABEL_FONT_SIZE
    label_baseline: int = LABEL_BASELINE
    dimension_font_size: int = DIMENSION_FONT_SIZE
    dimension_baseline: int = DIMENSION_BASELINE


# =============================================================================
# SOURCE IMAGES
# =============================================================================
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB

# Pillow format names accepted after decoding
ALLOWED_FORMATS = {"JPEG", "MPO", "PNG", "WEBP", "PSD"}

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".psd"}

# Seconds before a remote image download is abandoned
URL_TIMEOUT = 30

# =============================================================================
# EXPORT
# =============================================================================
# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9
