"""Merge raw ingredient entries into summed grocery quantities."""

from dataclasses import dataclass, field

from grocerysync.grocery.extractor import RawIngredientEntry
from grocerysync.logging_config import get_logger
from grocerysync.normalize.names import NameMatcher, normalize_ingredient_name
from grocerysync.normalize.units import (
    NormalizedQuantity,
    UnitFamily,
    conversion_key,
    convert,
    format_quantity,
    normalize_quantity,
    unit_ratio,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class AggregatedIngredient:
    """An ingredient with quantities summed across every recipe that uses it."""

    normalized_name: str
    total_amount: float | None
    amount_text: str | None
    unit_family: UnitFamily
    display_unit: str
    contributing_recipe_ids: tuple[str, ...]
    recipe_names: tuple[str, ...] = ()

    @property
    def is_numeric(self) -> bool:
        return self.total_amount is not None

    @property
    def display_quantity(self) -> str:
        """Get human-readable quantity string."""
        if self.total_amount is None:
            return self.amount_text or ""
        return format_quantity(self.total_amount, self.display_unit)


@dataclass
class AggregationResult:
    ingredients: list[AggregatedIngredient] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class _Member:
    entry: RawIngredientEntry
    quantity: NormalizedQuantity


def _unique(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def _group_key(name: str, quantity: NormalizedQuantity) -> tuple[str, UnitFamily, str]:
    if quantity.is_numeric:
        return name, quantity.family, conversion_key(quantity.unit)
    return name, UnitFamily.OTHER, quantity.unit


def _merge_numeric(name: str, family: UnitFamily, members: list[_Member]) -> AggregatedIngredient:
    # Sum in the largest unit any member used, so 2 tbsp + 1 cup reads in cups
    units = {member.quantity.unit for member in members}
    target_unit = max(units, key=lambda unit: (unit_ratio(unit), unit))

    total = 0.0
    for member in members:
        total += convert(member.quantity.value, member.quantity.unit, target_unit)

    return AggregatedIngredient(
        normalized_name=name,
        total_amount=round(total, 6),
        amount_text=None,
        unit_family=family,
        display_unit=target_unit,
        contributing_recipe_ids=tuple(sorted({m.entry.source_recipe_id for m in members})),
        recipe_names=_unique([m.entry.source_recipe_name for m in members]),
    )


def _keep_separate(name: str, member: _Member) -> AggregatedIngredient:
    quantity = member.quantity
    return AggregatedIngredient(
        normalized_name=name,
        total_amount=quantity.value,
        amount_text=None if quantity.is_numeric else quantity.text,
        unit_family=quantity.family,
        display_unit=quantity.unit,
        contributing_recipe_ids=(member.entry.source_recipe_id,),
        recipe_names=(member.entry.source_recipe_name,),
    )


def _sort_key(ingredient: AggregatedIngredient) -> tuple[str, str, str, float]:
    return (
        ingredient.normalized_name,
        ingredient.display_unit,
        ingredient.amount_text or "",
        ingredient.total_amount or 0.0,
    )


def aggregate_ingredients(
    entries: list[RawIngredientEntry],
    matcher: NameMatcher | None = None,
) -> AggregationResult:
    """
    Group entries by normalized name and unit family and sum each group.

    - Amounts are converted only inside one family (tbsp -> cup, g -> kg).
    - A group containing any non-numeric amount ("pinch") is not merged;
      every member comes out as its own ingredient with its original text.
    - Output is sorted by name, then unit, so unchanged input always yields
      the same ordering.

    Args:
        entries: Raw entries from the extractor.
        matcher: Optional fuzzy name matcher; exact normalized names otherwise.

    Returns:
        AggregationResult with ingredients and any per-entry warnings.
    """
    result = AggregationResult()
    normalized: list[tuple[str, _Member]] = []

    for entry in entries:
        try:
            name = normalize_ingredient_name(entry.name)
            quantity = normalize_quantity(entry.amount, entry.unit)
        except (TypeError, ValueError) as e:
            result.warnings.append(f"Could not normalize ingredient '{entry.name}': {e}")
            continue

        if not name:
            result.warnings.append(f"Ingredient '{entry.name}' has an empty name after normalization")
            continue

        normalized.append((name, _Member(entry=entry, quantity=quantity)))

    if matcher is not None and matcher.enabled:
        mapping = matcher.build_mapping([name for name, _ in normalized])
        normalized = [(mapping[name], member) for name, member in normalized]

    groups: dict[tuple[str, UnitFamily, str], list[_Member]] = {}
    for name, member in normalized:
        groups.setdefault(_group_key(name, member.quantity), []).append(member)

    for (name, family, _bucket), members in groups.items():
        if all(member.quantity.is_numeric for member in members):
            result.ingredients.append(_merge_numeric(name, family, members))
        else:
            result.ingredients.extend(_keep_separate(name, member) for member in members)

    result.ingredients.sort(key=_sort_key)

    logger.debug(
        f"Aggregated {len(entries)} entries into {len(result.ingredients)} ingredients"
    )
    return result
