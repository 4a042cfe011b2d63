"""Normalize ingredient quantities, units and names."""

from grocerysync.normalize.names import (
    NAME_TABLE_VERSION,
    NameMatcher,
    normalize_ingredient_name,
    singularize,
)
from grocerysync.normalize.units import (
    NormalizedQuantity,
    UnitFamily,
    can_aggregate,
    canonical_unit,
    conversion_key,
    convert,
    format_quantity,
    normalize_quantity,
    parse_amount,
    unit_family,
)

__all__ = [
    "NAME_TABLE_VERSION",
    "NameMatcher",
    "NormalizedQuantity",
    "UnitFamily",
    "can_aggregate",
    "canonical_unit",
    "conversion_key",
    "convert",
    "format_quantity",
    "normalize_ingredient_name",
    "normalize_quantity",
    "parse_amount",
    "singularize",
]
