"""
Aspect-ratio math, ratio selection state, and custom-ratio persistence.

A ratio is a single positive float (width / height).  Ratios are never
compared exactly: ``ratios_equal`` with the shared ``RATIO_TOLERANCE``
decides whether two values are the same ratio everywhere in the app
(deduplication, preset/custom lookup, label resolution).

Custom ratios are stored in a JSON file in the user's config directory
(provided by ``config.config_dir()``) using a versioned envelope::

    {"version": 1, "ratios": [{"label": "Custom 21:9", "value": 2.3333}]}

Presets live in ``config.PRESET_RATIOS`` and are never written to disk.
This module is Qt-free.
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path

from focal_crop.config import MAX_DENOMINATOR, PRESET_RATIOS, RATIO_TOLERANCE, config_dir
from focal_crop.errors import DuplicateRatio, InvalidFormat

logger = logging.getLogger(__name__)

_RATIOS_FILENAME = "ratios.json"
_FORMAT_VERSION = 1

_FORMAT_HINT = "Invalid ratio format. Use W:H (2:3)"


# =============================================================================
# Ratio value type
# =============================================================================
@dataclass(frozen=True, eq=False)
class Ratio:
    """A width-to-height proportion with an optional display label."""
    value: float
    label: str = ""

    def __post_init__(self):
        if not math.isfinite(self.value) or self.value <= 0:
            raise ValueError(f"ratio must be a positive number, got {self.value!r}")

    def matches(self, other: "Ratio | float") -> bool:
        """True when *other* is the same ratio within ``RATIO_TOLERANCE``."""
        value = other.value if isinstance(other, Ratio) else other
        return ratios_equal(self.value, value)

    @property
    def display(self) -> str:
        return self.label or format_ratio(self.value)


# =============================================================================
# Ratio math
# =============================================================================
def ratios_equal(a: float, b: float, tolerance: float = RATIO_TOLERANCE) -> bool:
    """Approximate equality used for every ratio comparison."""
    return abs(a - b) < tolerance


def format_ratio(value: float) -> str:
    """
    Render *value* as the simplest ``"n:d"`` fraction.

    Denominators are tried from 1 upward, so the smallest one within
    tolerance wins (1.7778 → ``"16:9"``).  Values with no fraction up to
    ``MAX_DENOMINATOR`` fall back to two decimals (``"1.23"``).
    """
    for denom in range(1, MAX_DENOMINATOR + 1):
        numer = round(value * denom)
        if abs(value - numer / denom) < RATIO_TOLERANCE:
            return f"{numer}:{denom}"
    return f"{value:.2f}"


def parse_ratio(text: str) -> Ratio:
    """
    Parse ``"W:H"`` text into a Ratio.

    Whitespace around the numbers is ignored.  Raises InvalidFormat for
    empty input, a missing colon, anything other than two parts, parts
    that are not numbers, or parts that are not strictly positive.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        raise InvalidFormat("Please enter a ratio")
    if ":" not in trimmed:
        raise InvalidFormat(_FORMAT_HINT)

    parts = trimmed.split(":")
    if len(parts) != 2:
        raise InvalidFormat(_FORMAT_HINT)

    try:
        w, h = (float(p.strip()) for p in parts)
    except ValueError:
        raise InvalidFormat(_FORMAT_HINT) from None

    if not (math.isfinite(w) and math.isfinite(h)) or w <= 0 or h <= 0:
        raise InvalidFormat(_FORMAT_HINT)
    return Ratio(w / h)


# =============================================================================
# Selection state
# =============================================================================
class RatioSelection:
    """
    Presets, custom ratios and the ordered list of selected ratio values.

    Callers mutate it through explicit methods and then ask for
    ``requests()`` when they need the current export inputs.
    """

    def __init__(self, custom: list[Ratio] | None = None):
        self.presets = [Ratio(p["value"], p["label"]) for p in PRESET_RATIOS]
        self.custom: list[Ratio] = list(custom or [])
        self.selected: list[float] = []

    def is_selected(self, value: float) -> bool:
        return any(ratios_equal(r, value) for r in self.selected)

    def toggle(self, value: float) -> bool:
        """Select *value* or deselect it if already selected.  Returns the new state."""
        for i, r in enumerate(self.selected):
            if ratios_equal(r, value):
                del self.selected[i]
                return False
        self.selected.append(value)
        return True

    def find_existing(self, value: float) -> Ratio | None:
        for ratio in self.presets + self.custom:
            if ratio.matches(value):
                return ratio
        return None

    def add_custom(self, text: str) -> str | None:
        """
        Parse *text* and add it as a selected custom ratio.

        Returns an error string for inline display, or None on success.
        Existing ratios and the current selection are left alone on error.
        """
        try:
            ratio = self.add_custom_ratio(text)
        except (InvalidFormat, DuplicateRatio) as exc:
            return str(exc)
        logger.debug("Added custom ratio %s (%.4f)", ratio.label, ratio.value)
        return None

    def add_custom_ratio(self, text: str) -> Ratio:
        parsed = parse_ratio(text)
        existing = self.find_existing(parsed.value)
        if existing is not None:
            raise DuplicateRatio(f"This ratio already exists ({existing.display})")
        ratio = Ratio(parsed.value, f"Custom {format_ratio(parsed.value)}")
        self.custom.append(ratio)
        self.selected.append(ratio.value)
        return ratio

    def remove_custom(self, index: int) -> Ratio:
        ratio = self.custom.pop(index)
        self.selected = [r for r in self.selected if not ratio.matches(r)]
        return ratio

    def label_for(self, value: float) -> str:
        """Preset label, then custom label, then the plain fraction."""
        for ratio in self.presets:
            if ratio.matches(value):
                return ratio.label
        for ratio in self.custom:
            if ratio.matches(value):
                return ratio.label
        return format_ratio(value)

    def requests(self) -> list[Ratio]:
        """Selected ratios, in selection order, carrying their display labels."""
        return [Ratio(value, self.label_for(value)) for value in self.selected]


# =============================================================================
# Validation
# =============================================================================
def validate_custom_ratios(data: object) -> list[str]:
    """
    Validate a custom-ratio list loaded from disk.

    Returns a list of error strings (empty means valid).
    """
    errors: list[str] = []

    if not isinstance(data, list):
        errors.append("Ratios data must be a list")
        return errors

    seen: list[float] = []
    for i, entry in enumerate(data):
        prefix = f"Ratio #{i + 1}"

        if not isinstance(entry, dict):
            errors.append(f"{prefix}: must be a dict")
            continue

        label = entry.get("label")
        if not isinstance(label, str) or not label.strip():
            errors.append(f"{prefix}: label must be a non-empty string")

        value = entry.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)) \
                or not math.isfinite(value) or value <= 0:
            errors.append(f"{prefix}: value must be a positive number, got {value!r}")
            continue

        if any(ratios_equal(value, p["value"]) for p in PRESET_RATIOS):
            errors.append(f"{prefix} ('{label}'): duplicates a preset ratio")
        elif any(ratios_equal(value, s) for s in seen):
            errors.append(f"{prefix} ('{label}'): duplicates another custom ratio")
        seen.append(value)

    return errors


# =============================================================================
# Load / Save
# =============================================================================
def _ratios_path() -> Path:
    """Return the full path to ratios.json."""
    return config_dir() / _RATIOS_FILENAME


def load_custom_ratios(path: Path | None = None) -> list[Ratio]:
    """
    Load custom ratios from ratios.json.

    A missing file means no custom ratios.  A corrupt or invalid file is
    logged and ignored; it is overwritten on the next save.
    """
    path = path or _ratios_path()

    if not path.exists():
        logger.debug("No ratios.json at %s; no custom ratios", path)
        return []

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read ratios.json (%s); ignoring custom ratios", exc)
        return []

    if not isinstance(raw, dict) or raw.get("version") != _FORMAT_VERSION or "ratios" not in raw:
        logger.warning("ratios.json missing version envelope; ignoring custom ratios")
        return []

    data = raw["ratios"]
    errors = validate_custom_ratios(data)
    if errors:
        logger.warning(
            "ratios.json validation failed:\n  %s\nIgnoring custom ratios.",
            "\n  ".join(errors),
        )
        return []

    return [Ratio(float(entry["value"]), entry["label"]) for entry in data]


def save_custom_ratios(ratios: list[Ratio], path: Path | None = None) -> None:
    """
    Validate and write custom ratios to ratios.json in a versioned envelope.

    Raises ValueError if validation fails.
    Raises OSError if the file cannot be written.
    """
    data = [{"label": r.label, "value": r.value} for r in ratios]
    errors = validate_custom_ratios(data)
    if errors:
        raise ValueError("Invalid ratios data:\n  " + "\n  ".join(errors))

    path = path or _ratios_path()
    envelope = {"version": _FORMAT_VERSION, "ratios": data}
    path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved %d custom ratio(s) to %s", len(ratios), path)
