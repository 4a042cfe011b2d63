"""Grocery item generation from meal plan snapshots."""

import math
from dataclasses import dataclass, field

from grocerysync.grocery.aggregator import aggregate_ingredients
from grocerysync.grocery.categorizer import CategorizedIngredient, categorize_all
from grocerysync.grocery.extractor import extract_ingredients
from grocerysync.logging_config import get_logger
from grocerysync.normalize.names import NameMatcher
from grocerysync.normalize.units import format_quantity
from grocerysync.schemas import GroceryItem, MealPlan

logger = get_logger(__name__)

MAX_NOTE_RECIPES = 3


@dataclass
class BuildResult:
    """Items generated for a plan, plus how many raw entries fed them."""

    items: list[GroceryItem] = field(default_factory=list)
    raw_count: int = 0
    warnings: list[str] = field(default_factory=list)
    failed: bool = False


def build_notes(recipe_names: tuple[str, ...] | list[str]) -> str | None:
    """Describe which recipes use an item, e.g. 'Used in: Tacos, Chili and 2 more'."""
    names = list(dict.fromkeys(recipe_names))
    if not names:
        return None

    shown = ", ".join(names[:MAX_NOTE_RECIPES])
    hidden = len(names) - MAX_NOTE_RECIPES
    if hidden > 0:
        return f"Used in: {shown} and {hidden} more"
    return f"Used in: {shown}"


def build_list_name(meal_plan: MealPlan, meal_plan_id: str | None = None) -> str:
    if meal_plan.name:
        return f"Grocery List - {meal_plan.name}"
    return f"Grocery List - Meal Plan {meal_plan.id or meal_plan_id}"


def to_grocery_item(categorized: CategorizedIngredient, round_up: bool = False) -> GroceryItem:
    ingredient = categorized.ingredient
    amount = ingredient.total_amount
    quantity = ingredient.display_quantity
    if round_up and amount is not None:
        amount = float(math.ceil(amount))
        quantity = format_quantity(amount, ingredient.display_unit)

    return GroceryItem(
        name=ingredient.normalized_name,
        category=categorized.category,
        quantity=quantity,
        amount=amount,
        unit=ingredient.display_unit,
        priority=categorized.priority,
        notes=build_notes(ingredient.recipe_names),
    )


def build_grocery_items(
    meal_plan: MealPlan, matcher: NameMatcher | None = None, round_up: bool = False
) -> BuildResult:
    """
    Run extraction, aggregation and categorization for one plan.

    Computation problems never abort generation: malformed entries and
    unexpected failures come back as warnings next to whatever items could
    be produced, and ``failed`` is set when a stage did not complete. With
    ``round_up``, numeric totals are rounded up to whole units.
    """
    result = BuildResult()

    try:
        extraction = extract_ingredients(meal_plan)
    except Exception as e:
        logger.exception(f"Extraction failed for plan {meal_plan.id}")
        result.warnings.append(f"Ingredient extraction failed: {e}")
        result.failed = True
        return result

    result.raw_count = len(extraction.entries)
    result.warnings.extend(str(warning) for warning in extraction.warnings)

    try:
        aggregation = aggregate_ingredients(extraction.entries, matcher=matcher)
    except Exception as e:
        logger.exception(f"Aggregation failed for plan {meal_plan.id}")
        result.warnings.append(f"Ingredient aggregation failed: {e}")
        result.failed = True
        return result

    result.warnings.extend(aggregation.warnings)
    result.items = [
        to_grocery_item(c, round_up=round_up) for c in categorize_all(aggregation.ingredients)
    ]

    logger.info(
        f"Built {len(result.items)} grocery items from {result.raw_count} ingredient entries "
        f"for plan {meal_plan.id}"
    )
    return result
