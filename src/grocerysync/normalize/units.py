"""Unit normalization, conversion and display formatting."""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any


class UnitFamily(str, Enum):
    """Measurement families; amounts are only ever summed within one family."""

    VOLUME = "volume"
    WEIGHT = "weight"
    COUNT = "count"
    OTHER = "other"


# =============================================================================
# Unit Tables
# =============================================================================

# Volume conversions (base unit: ml), keyed by canonical unit
VOLUME_UNITS: dict[str, float] = {
    "ml": 1.0,
    "cl": 10.0,
    "dl": 100.0,
    "l": 1000.0,
    "tsp": 4.929,
    "tbsp": 14.787,
    "fl oz": 29.574,
    "cup": 236.588,
    "pint": 473.176,
    "quart": 946.353,
    "gallon": 3785.41,
}

# Weight conversions (base unit: g), keyed by canonical unit
WEIGHT_UNITS: dict[str, float] = {
    "mg": 0.001,
    "g": 1.0,
    "kg": 1000.0,
    "oz": 28.3495,
    "lb": 453.592,
}

# Count units never convert into each other: 2 cloves and 1 can stay apart.
COUNT_UNITS: set[str] = {
    "pcs",
    "clove",
    "slice",
    "can",
    "jar",
    "bunch",
    "head",
    "sprig",
    "stalk",
    "package",
    "bottle",
    "bag",
    "box",
    "stick",
    "fillet",
    "loaf",
}

# Spelling variants mapped onto canonical units
UNIT_ALIASES: dict[str, str] = {
    # Volume
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "centiliter": "cl",
    "centiliters": "cl",
    "deciliter": "dl",
    "deciliters": "dl",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tsps": "tsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "tbsps": "tbsp",
    "tbs": "tbsp",
    "fluid ounce": "fl oz",
    "fluid ounces": "fl oz",
    "cups": "cup",
    "c": "cup",
    "pints": "pint",
    "pt": "pint",
    "quarts": "quart",
    "qt": "quart",
    "gallons": "gallon",
    "gal": "gallon",
    # Weight
    "milligram": "mg",
    "milligrams": "mg",
    "gram": "g",
    "grams": "g",
    "gr": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "kgs": "kg",
    "ounce": "oz",
    "ounces": "oz",
    "pound": "lb",
    "pounds": "lb",
    "lbs": "lb",
    # Count
    "": "pcs",
    "pc": "pcs",
    "piece": "pcs",
    "pieces": "pcs",
    "item": "pcs",
    "items": "pcs",
    "each": "pcs",
    "ea": "pcs",
    "whole": "pcs",
    "x": "pcs",
    "cloves": "clove",
    "slices": "slice",
    "cans": "can",
    "jars": "jar",
    "bunches": "bunch",
    "heads": "head",
    "sprigs": "sprig",
    "stalks": "stalk",
    "packages": "package",
    "pkg": "package",
    "pack": "package",
    "packs": "package",
    "bottles": "bottle",
    "bags": "bag",
    "boxes": "box",
    "sticks": "stick",
    "fillets": "fillet",
    "loaves": "loaf",
}

# Display fractions for volume amounts
FRACTIONS: tuple[tuple[float, str], ...] = (
    (1 / 8, "1/8"),
    (1 / 4, "1/4"),
    (1 / 3, "1/3"),
    (1 / 2, "1/2"),
    (2 / 3, "2/3"),
    (3 / 4, "3/4"),
)
FRACTION_TOLERANCE = 0.02

_UNICODE_FRACTIONS = {
    "½": "1/2",
    "⅓": "1/3",
    "⅔": "2/3",
    "¼": "1/4",
    "¾": "3/4",
    "⅛": "1/8",
}

_NUMBER = r"\d+(?:\.\d+)?"


# =============================================================================
# Parsing
# =============================================================================


def parse_amount(amount: Any) -> float | None:
    """
    Parse a free-form amount into a float.

    Handles formats like:
    - 2, 1.5 (already numeric)
    - "2", "1.5", "1,5"
    - "1/2", "1 1/2", "1½"
    - "2-3" or "2 to 3" (range, returns the midpoint)

    Returns None for anything that is not a quantity ("pinch", "to taste").
    """
    if amount is None or isinstance(amount, bool):
        return None

    if isinstance(amount, (int, float)):
        value = float(amount)
        return value if math.isfinite(value) else None

    text = str(amount).strip().lower()
    for glyph, fraction in _UNICODE_FRACTIONS.items():
        text = text.replace(glyph, f" {fraction}")
    text = " ".join(text.split()).replace(",", ".")

    if not text:
        return None

    range_match = re.fullmatch(rf"({_NUMBER})\s*(?:-|to)\s*({_NUMBER})", text)
    if range_match:
        low = float(range_match.group(1))
        high = float(range_match.group(2))
        return (low + high) / 2

    mixed_match = re.fullmatch(r"(\d+)\s+(\d+)/(\d+)", text)
    if mixed_match:
        whole, num, denom = (int(g) for g in mixed_match.groups())
        return whole + num / denom if denom else None

    frac_match = re.fullmatch(r"(\d+)\s*/\s*(\d+)", text)
    if frac_match:
        num, denom = (int(g) for g in frac_match.groups())
        return num / denom if denom else None

    if re.fullmatch(_NUMBER, text):
        return float(text)

    return None


def _clean_unit(unit: str | None) -> str:
    if not unit:
        return ""
    return " ".join(unit.strip().casefold().rstrip(".").split())


def canonical_unit(unit: str | None) -> str:
    """Map a unit spelling onto its canonical form; unknown units are only cleaned."""
    cleaned = _clean_unit(unit)
    return UNIT_ALIASES.get(cleaned, cleaned)


def unit_family(unit: str | None) -> UnitFamily:
    """Classify a unit into its family."""
    canonical = canonical_unit(unit)
    if canonical in VOLUME_UNITS:
        return UnitFamily.VOLUME
    if canonical in WEIGHT_UNITS:
        return UnitFamily.WEIGHT
    if canonical in COUNT_UNITS:
        return UnitFamily.COUNT
    return UnitFamily.OTHER


def conversion_key(unit: str | None) -> str:
    """
    Bucket inside which amounts can be summed.

    Volume and weight units convert freely within their family. Count and
    unrecognized units only sum with the exact same canonical unit.
    """
    family = unit_family(unit)
    if family in (UnitFamily.VOLUME, UnitFamily.WEIGHT):
        return family.value
    return canonical_unit(unit)


def unit_ratio(unit: str | None) -> float:
    """Size of one unit expressed in its family's base unit."""
    canonical = canonical_unit(unit)
    if canonical in VOLUME_UNITS:
        return VOLUME_UNITS[canonical]
    if canonical in WEIGHT_UNITS:
        return WEIGHT_UNITS[canonical]
    return 1.0


def convert(value: float, from_unit: str | None, to_unit: str | None) -> float:
    """Convert an amount between two units of the same bucket."""
    if conversion_key(from_unit) != conversion_key(to_unit):
        raise ValueError(f"Cannot convert {from_unit!r} to {to_unit!r}")
    return value * unit_ratio(from_unit) / unit_ratio(to_unit)


def can_aggregate(unit1: str | None, unit2: str | None) -> bool:
    """Check if two units can be summed together."""
    return conversion_key(unit1) == conversion_key(unit2)


@dataclass(frozen=True)
class NormalizedQuantity:
    """An amount parsed into a number (when possible) plus its canonical unit."""

    value: float | None
    text: str
    unit: str
    family: UnitFamily

    @property
    def is_numeric(self) -> bool:
        return self.value is not None


def normalize_quantity(amount: Any, unit: str | None) -> NormalizedQuantity:
    """
    Normalize an amount/unit pair.

    Non-numeric amounts keep their original text, land in the `other`
    family and are never merged with anything.
    """
    text = "" if amount is None else str(amount).strip()
    value = parse_amount(amount)

    if value is None:
        return NormalizedQuantity(
            value=None,
            text=text,
            unit=_clean_unit(unit),
            family=UnitFamily.OTHER,
        )

    canonical = canonical_unit(unit)
    return NormalizedQuantity(
        value=value,
        text=text,
        unit=canonical,
        family=unit_family(canonical),
    )


# =============================================================================
# Display Formatting
# =============================================================================


def _format_fraction(value: float) -> str:
    if value < 0:
        return f"{value:.2f}"

    whole = int(value)
    remainder = value - whole

    if remainder < FRACTION_TOLERANCE and (whole or value == 0):
        return str(whole)
    if 1 - remainder < FRACTION_TOLERANCE:
        return str(whole + 1)

    target, label = min(FRACTIONS, key=lambda fraction: abs(remainder - fraction[0]))
    if abs(remainder - target) < FRACTION_TOLERANCE:
        return f"{whole} {label}" if whole else label

    return f"{value:.2f}"


def _format_stripped(value: float) -> str:
    stripped = f"{value:.2f}".rstrip("0").rstrip(".")
    if stripped == "0" and value > 0:
        return f"{value:.2g}"
    return stripped


def format_quantity(value: float, unit: str | None) -> str:
    """
    Render an amount for display.

    Volume amounts use kitchen fractions (1 1/2 cup), weight and count
    amounts drop trailing zeros (2 kg), anything else gets two decimals.
    """
    family = unit_family(unit)
    if family == UnitFamily.VOLUME:
        return _format_fraction(value)
    if family in (UnitFamily.WEIGHT, UnitFamily.COUNT):
        return _format_stripped(value)
    return f"{value:.2f}"
