"""
Qt-free image I/O.

``RasterSource`` wraps a decoded Pillow image and exposes the one
primitive the renderers need, ``draw_region``.  Sources are produced by
the async ``decode_*`` helpers, which run the blocking Pillow/psd-tools
work in a worker thread so callers can await them.  Also provides upload
validation, PNG encoding and small file helpers.
"""

import asyncio
import io
import logging
from pathlib import Path
from urllib import request
from urllib.error import URLError
from urllib.parse import unquote, urlparse

from PIL import Image, UnidentifiedImageError
from psd_tools import PSDImage

from focal_crop.config import (
    ALLOWED_FORMATS, IMAGE_EXTENSIONS, MAX_FILE_SIZE, PNG_COMPRESS_LEVEL, URL_TIMEOUT,
)
from focal_crop.errors import DecodeError, EncodeFailure, SourceUnavailable
from focal_crop.models import CropRect, RasterDimensions

logger = logging.getLogger(__name__)

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

_PSD_SIGNATURE = b"8BPS"


# =============================================================================
# Raster source
# =============================================================================
class RasterSource:
    """A decoded source image with known pixel dimensions."""

    def __init__(self, image: Image.Image, name: str = "image", size_bytes: int | None = None):
        self._image = image
        self.name = name
        self.size_bytes = size_bytes

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def dimensions(self) -> RasterDimensions:
        return RasterDimensions(self.width, self.height)

    def draw_region(
        self,
        target: Image.Image,
        source_rect: CropRect,
        dest_box: tuple[int, int, int, int],
    ) -> None:
        """
        Copy *source_rect* of this image into *dest_box* of *target*.

        The region is resampled (Lanczos) when the destination size differs
        from the rounded source size.  Raises SourceUnavailable when the
        pixels cannot be read.
        """
        left, top, right, bottom = dest_box
        dest_size = (max(1, right - left), max(1, bottom - top))
        try:
            region = self._image.crop(source_rect.box(self.dimensions))
            if region.size != dest_size:
                region = region.resize(dest_size, Image.Resampling.LANCZOS)
        except (OSError, ValueError) as exc:
            raise SourceUnavailable(f"Failed to read pixels from {self.name}: {exc}") from exc
        # Alpha composites over whatever is already on a non-alpha target
        mask = region if region.mode == "RGBA" and target.mode != "RGBA" else None
        target.paste(region, (left, top), mask)


def _normalize_mode(img: Image.Image) -> Image.Image:
    """Flatten palette/CMYK/grayscale images to RGB(A) for drawing."""
    if img.mode in ("RGB", "RGBA"):
        return img
    has_alpha = img.mode in ("LA", "PA", "RGBa", "La") or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def _decode_stream(stream, name: str) -> Image.Image:
    """Decode an image from a seekable binary stream, forcing a full pixel load."""
    header = stream.read(4)
    stream.seek(0)
    try:
        if header == _PSD_SIGNATURE:
            img = PSDImage.open(stream).composite()
            if img is None:
                raise DecodeError(f"{name} has no renderable layers")
        else:
            img = Image.open(stream)
            if img.format not in ALLOWED_FORMATS:
                raise DecodeError(
                    f"{name}: unsupported image type {img.format or 'unknown'} "
                    "(use JPEG, PNG, WebP or PSD)"
                )
            img.load()
    except DecodeError:
        raise
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
        raise DecodeError(f"Failed to load image {name}: {exc}") from exc
    return _normalize_mode(img)


def open_image(path: Path) -> Image.Image:
    """Open and fully decode an image file (PSD via psd-tools, the rest via Pillow)."""
    try:
        with open(path, "rb") as f:
            return _decode_stream(io.BytesIO(f.read()), path.name)
    except OSError as exc:
        raise SourceUnavailable(f"Cannot read {path}: {exc}") from exc


def get_image_size(path: Path) -> tuple[int, int]:
    """Get image dimensions without fully loading/compositing."""
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.width, psd.height
    with Image.open(path) as img:
        return img.size


# =============================================================================
# Validation
# =============================================================================
def validate_upload(path: Path) -> str | None:
    """
    Check a local file before decoding it.

    Returns an error string if the file should be rejected, or None.
    """
    if path.suffix.lower() not in IMAGE_EXTENSIONS:
        return "Please select a JPEG, PNG, WebP or PSD image"
    try:
        size = path.stat().st_size
    except OSError as exc:
        return f"Cannot read {path.name}: {exc}"
    if size > MAX_FILE_SIZE:
        return f"File size must be less than {MAX_FILE_SIZE / (1024 * 1024):.0f}MB"
    return None


def validate_url(url: str) -> str | None:
    """Return an error string unless *url* is an absolute http(s) URL."""
    parsed = urlparse((url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return "Please enter a valid URL"
    return None


def filename_from_url(url: str) -> str:
    """Last path segment of *url*, or ``"image"`` when the path has none."""
    path = unquote(urlparse(url).path)
    return path[path.rfind("/") + 1:] or "image"


def format_file_size(num_bytes: int) -> str:
    """Human-readable byte count: ``"512 B"``, ``"1.5 KB"``, ``"2.0 MB"``."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


# =============================================================================
# Async decode
# =============================================================================
def _load_path(path: Path) -> RasterSource:
    error = validate_upload(path)
    if error:
        raise SourceUnavailable(error)
    img = open_image(path)
    return RasterSource(img, name=path.name, size_bytes=path.stat().st_size)


def _load_bytes(data: bytes, name: str) -> RasterSource:
    if len(data) > MAX_FILE_SIZE:
        raise SourceUnavailable(
            f"File size must be less than {MAX_FILE_SIZE / (1024 * 1024):.0f}MB"
        )
    img = _decode_stream(io.BytesIO(data), name)
    return RasterSource(img, name=name, size_bytes=len(data))


def _fetch_url(url: str, timeout: float) -> bytes:
    try:
        with request.urlopen(url, timeout=timeout) as response:
            data = response.read(MAX_FILE_SIZE + 1)
    except (URLError, OSError, ValueError) as exc:
        raise SourceUnavailable(
            "Failed to load image from URL. Please check the URL and try again."
        ) from exc
    if len(data) > MAX_FILE_SIZE:
        raise SourceUnavailable(
            f"File size must be less than {MAX_FILE_SIZE / (1024 * 1024):.0f}MB"
        )
    return data


async def decode_path(path: Path) -> RasterSource:
    """Validate and decode a local image file."""
    source = await asyncio.to_thread(_load_path, Path(path))
    logger.info("Loaded %s (%d×%d)", source.name, source.width, source.height)
    return source


async def decode_bytes(data: bytes, name: str = "image") -> RasterSource:
    """Decode an in-memory image (e.g. dropped or pasted data)."""
    source = await asyncio.to_thread(_load_bytes, data, name)
    logger.info("Decoded %s (%d×%d)", source.name, source.width, source.height)
    return source


async def decode_url(url: str, timeout: float = URL_TIMEOUT) -> RasterSource:
    """Download and decode a remote image.  The source is named after the URL path."""
    error = validate_url(url)
    if error:
        raise SourceUnavailable(error)
    url = url.strip()
    data = await asyncio.to_thread(_fetch_url, url, timeout)
    source = await asyncio.to_thread(_load_bytes, data, filename_from_url(url))
    source.size_bytes = None
    logger.info("Loaded %s from %s (%d×%d)", source.name, url, source.width, source.height)
    return source


# =============================================================================
# Encode / save
# =============================================================================
def encode_png(img: Image.Image, compress_level: int = PNG_COMPRESS_LEVEL) -> bytes:
    """Serialize *img* to PNG bytes.  Raises EncodeFailure."""
    buf = io.BytesIO()
    try:
        img.save(buf, "PNG", compress_level=compress_level)
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"Failed to encode PNG: {exc}") from exc
    return buf.getvalue()


async def encode_png_async(img: Image.Image, compress_level: int = PNG_COMPRESS_LEVEL) -> bytes:
    return await asyncio.to_thread(encode_png, img, compress_level)


