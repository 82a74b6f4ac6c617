"""
Output filenames for exported crops and composites.

Pure string helpers plus ``unique_path`` for picking a free file name on
disk.  Exports are always PNG, whatever the source format was.
"""

import re
from pathlib import Path

_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_LABEL_STRIP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s+", re.ASCII)


def strip_extension(filename: str) -> str:
    """``"photo.jpg"`` → ``"photo"``; names without an extension are unchanged."""
    return _EXTENSION_RE.sub("", filename)


def sanitize_label(label: str) -> str:
    """
    Keep letters, digits, ``_`` and ``-``; whitespace runs become ``-``.

    Other characters act as separators, so ``"1:1 (Square)"`` becomes
    ``"1-1-Square"`` rather than ``"11-Square"``.
    """
    return _WHITESPACE_RE.sub("-", _LABEL_STRIP_RE.sub(" ", label).strip())


def export_filename(original_filename: str, ratio_label: str) -> str:
    """``("photo.jpg", "1:1 (Square)")`` → ``"photo_1-1-Square.png"``."""
    return f"{strip_extension(original_filename)}_{sanitize_label(ratio_label)}.png"


def composite_filename(original_filename: str) -> str:
    return export_filename(original_filename, "composite")


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
