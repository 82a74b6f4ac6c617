"""
Unit Tests for export filename helpers.
"""

import pytest

from focal_crop.naming import (
    composite_filename, export_filename, sanitize_label, strip_extension, unique_path,
)


class TestStripExtension:
    """Tests for strip_extension."""

    @pytest.mark.parametrize("name,expected", [
        ("photo.jpg", "photo"),
        ("archive.tar.gz", "archive.tar"),
        ("README", "README"),
        ("dir.d/file", "dir.d/file"),
    ])
    def test_strip_extension(self, name, expected):
        """Only the final dot-suffix is removed, never a directory part."""
        assert strip_extension(name) == expected


class TestSanitizeLabel:
    """Tests for sanitize_label."""

    def test_sanitize_when_preset_label_then_separators_become_hyphens(self):
        """Punctuation splits tokens instead of gluing them together."""
        assert sanitize_label("1:1 (Square)") == "1-1-Square"

    def test_sanitize_when_custom_label_then_hyphenated(self):
        """Custom labels keep their words."""
        assert sanitize_label("Custom 7:3") == "Custom-7-3"

    def test_sanitize_keeps_word_characters(self):
        """Letters, digits, underscore and hyphen survive unchanged."""
        assert sanitize_label("wide_16-9") == "wide_16-9"

    def test_sanitize_when_padded_then_trimmed(self):
        """Edge whitespace never turns into leading or trailing hyphens."""
        assert sanitize_label(" a ") == "a"
        assert export_filename("photo.jpg", " a ") == "photo_a.png"

    def test_sanitize_when_trailing_punctuation_then_no_trailing_hyphen(self):
        """A closing bracket at the end leaves no dangling separator."""
        assert not sanitize_label("4:5 (Photo)").endswith("-")

    def test_sanitize_when_non_ascii_then_dropped(self):
        """Non-ASCII characters are treated as separators."""
        assert sanitize_label("Carré 1:1") == "Carr-1-1"


class TestExportFilename:
    """Tests for export_filename and composite_filename."""

    def test_export_when_preset_then_png_with_label(self):
        """The documented example name."""
        assert export_filename("photo.jpg", "1:1 (Square)") == "photo_1-1-Square.png"

    def test_export_when_no_extension(self):
        """Names without an extension are used as-is for the stem."""
        assert export_filename("scan", "4:5 (Photo)") == "scan_4-5-Photo.png"

    def test_export_always_png(self):
        """Whatever the source format, exports are PNG."""
        assert export_filename("layered.psd", "16:9").endswith(".png")

    def test_composite_filename(self):
        """Composite sheets use the fixed 'composite' label."""
        assert composite_filename("photo.webp") == "photo_composite.png"


class TestUniquePath:
    """Tests for unique_path."""

    def test_unique_when_free_then_unchanged(self, tmp_path):
        """A free path is returned untouched."""
        path = tmp_path / "a.png"
        assert unique_path(path) == path

    def test_unique_when_taken_then_counter_appended(self, tmp_path):
        """Taken names get -01, -02 and so on."""
        (tmp_path / "a.png").write_bytes(b"x")
        assert unique_path(tmp_path / "a.png") == tmp_path / "a-01.png"
        (tmp_path / "a-01.png").write_bytes(b"x")
        assert unique_path(tmp_path / "a.png") == tmp_path / "a-02.png"
