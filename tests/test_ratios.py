"""
Unit Tests for ratio math, selection state and custom-ratio persistence.
"""

import json
import math

import pytest

from focal_crop.errors import DuplicateRatio, InvalidFormat
from focal_crop.ratios import (
    Ratio, RatioSelection, format_ratio, load_custom_ratios, parse_ratio, ratios_equal,
    save_custom_ratios, validate_custom_ratios,
)


class TestParseRatio:
    """Tests for parse_ratio."""

    def test_parse_when_valid_then_returns_quotient(self):
        assert parse_ratio("2:3").value == pytest.approx(2 / 3)

    def test_parse_when_whitespace_then_trimmed(self):
        assert parse_ratio("  16 : 9 ").value == pytest.approx(16 / 9)

    def test_parse_when_decimals_then_accepted(self):
        assert parse_ratio("2.39:1").value == pytest.approx(2.39)

    @pytest.mark.parametrize("text", [
        "", "   ", "abc", "16x9", "0:3", "3:0", "-1:2", "1:2:3", "a:b", "1:", ":1", "nan:1", "inf:1",
    ])
    def test_parse_when_invalid_then_raises(self, text):
        with pytest.raises(InvalidFormat):
            parse_ratio(text)

    def test_parse_when_empty_then_asks_for_ratio(self):
        with pytest.raises(InvalidFormat, match="Please enter a ratio"):
            parse_ratio("")

    def test_invalid_format_is_value_error(self):
        with pytest.raises(ValueError):
            parse_ratio("abc")


class TestRatiosEqual:
    """Tests for approximate ratio equality."""

    def test_equal_when_same_value_different_float_path(self):
        assert ratios_equal(4 / 5, 0.8)

    def test_equal_when_far_apart_then_false(self):
        assert not ratios_equal(1, 1.1)

    def test_equal_when_just_inside_tolerance(self):
        assert ratios_equal(1.0, 1.0009)
        assert not ratios_equal(1.0, 1.0011)


class TestFormatRatio:
    """Tests for format_ratio."""

    @pytest.mark.parametrize("value,expected", [
        (1.0, "1:1"),
        (2 / 3, "2:3"),
        (16 / 9, "16:9"),
        (4 / 5, "4:5"),
        (21 / 9, "7:3"),
        (1920 / 1080, "16:9"),
    ])
    def test_format_when_simple_fraction(self, value, expected):
        assert format_ratio(value) == expected

    def test_format_when_smallest_denominator_wins(self):
        # 0.3333 is within tolerance of 1/3 long before 33/99
        assert format_ratio(0.3333) == "1:3"

    def test_format_when_first_close_denominator_is_large(self):
        # 22/7 misses the tolerance; 201/64 is the first fraction inside it
        assert format_ratio(math.pi) == "201:64"

    def test_format_when_no_fraction_within_limit_then_two_decimals(self):
        # Nothing with d <= 100 lies between 1 and 101/100
        assert format_ratio(1.0049) == "1.00"

    def test_format_result_is_within_tolerance(self):
        for w, h in [(1920, 1080), (3024, 4032), (1234, 567), (7, 13)]:
            result = format_ratio(w / h)
            if ":" in result:
                n, d = (int(p) for p in result.split(":"))
                assert abs(w / h - n / d) < 1e-3
                assert 1 <= d <= 100


class TestRatio:
    """Tests for the Ratio value type."""

    def test_matches_when_within_tolerance(self):
        assert Ratio(0.8).matches(Ratio(4 / 5))
        assert Ratio(0.8).matches(0.8004)

    def test_init_when_not_positive_then_raises(self):
        with pytest.raises(ValueError):
            Ratio(0)

    def test_frozen(self):
        r = Ratio(1.0, "Square")
        with pytest.raises(AttributeError):
            r.value = 2.0  # type: ignore

    def test_display_falls_back_to_fraction(self):
        assert Ratio(16 / 9).display == "16:9"
        assert Ratio(16 / 9, "Wide").display == "Wide"


class TestRatioSelection:
    """Tests for RatioSelection."""

    def test_toggle_adds_then_removes(self):
        sel = RatioSelection()
        assert sel.toggle(1.0) is True
        assert sel.is_selected(1.0)
        assert sel.toggle(1.0004) is False
        assert sel.selected == []

    def test_toggle_preserves_selection_order(self):
        sel = RatioSelection()
        for v in (16 / 9, 1.0, 2 / 3):
            sel.toggle(v)
        assert [r.label for r in sel.requests()] == ["16:9 (Display)", "1:1 (Square)", "2:3 (Photo)"]

    def test_add_custom_when_valid_then_selected_with_label(self):
        sel = RatioSelection()
        assert sel.add_custom("21:9") is None
        assert sel.custom[0].label == "Custom 7:3"
        assert sel.is_selected(21 / 9)

    def test_add_custom_when_duplicate_of_preset_then_error(self):
        sel = RatioSelection()
        sel.toggle(1.0)
        error = sel.add_custom("8:10")
        assert error is not None and "already exists" in error
        assert sel.custom == []
        assert sel.selected == [1.0]

    def test_add_custom_ratio_when_duplicate_of_custom_then_raises(self):
        sel = RatioSelection()
        sel.add_custom_ratio("21:9")
        with pytest.raises(DuplicateRatio):
            sel.add_custom_ratio("7:3")

    def test_add_custom_when_invalid_then_error_message(self):
        sel = RatioSelection()
        assert sel.add_custom("abc") == "Invalid ratio format. Use W:H (2:3)"

    def test_remove_custom_deselects(self):
        sel = RatioSelection()
        sel.add_custom("21:9")
        sel.toggle(1.0)
        sel.remove_custom(0)
        assert sel.custom == []
        assert sel.selected == [1.0]

    def test_label_for_resolution_order(self):
        sel = RatioSelection()
        sel.add_custom("3:2")
        assert sel.label_for(0.8) == "4:5 (Photo)"
        assert sel.label_for(1.5) == "Custom 3:2"
        assert sel.label_for(2.0) == "2:1"


class TestCustomRatioPersistence:
    """Tests for ratios.json load/save."""

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "ratios.json"
        save_custom_ratios([Ratio(21 / 9, "Custom 7:3")], path)
        loaded = load_custom_ratios(path)
        assert len(loaded) == 1
        assert loaded[0].label == "Custom 7:3"
        assert loaded[0].value == pytest.approx(21 / 9)

    def test_save_writes_version_envelope(self, tmp_path):
        path = tmp_path / "ratios.json"
        save_custom_ratios([], path)
        assert json.loads(path.read_text(encoding="utf-8")) == {"version": 1, "ratios": []}

    def test_load_when_missing_then_empty(self, tmp_path):
        assert load_custom_ratios(tmp_path / "nope.json") == []

    def test_load_when_corrupt_then_empty(self, tmp_path):
        path = tmp_path / "ratios.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_custom_ratios(path) == []

    def test_load_when_no_envelope_then_empty(self, tmp_path):
        path = tmp_path / "ratios.json"
        path.write_text(json.dumps([{"label": "x", "value": 2.0}]), encoding="utf-8")
        assert load_custom_ratios(path) == []

    def test_save_when_duplicates_preset_then_raises(self, tmp_path):
        with pytest.raises(ValueError, match="duplicates a preset"):
            save_custom_ratios([Ratio(1.0, "Custom 1:1")], tmp_path / "ratios.json")

    def test_validate_reports_bad_entries(self):
        errors = validate_custom_ratios([{"label": "", "value": -1}, "x", {"label": "a", "value": True}])
        assert len(errors) == 4

    def test_default_location_uses_config_dir(self):
        save_custom_ratios([Ratio(2.0, "Custom 2:1")])
        assert load_custom_ratios()[0].label == "Custom 2:1"
