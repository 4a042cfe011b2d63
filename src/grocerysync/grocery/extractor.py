"""Flatten a meal plan into raw ingredient entries."""

from dataclasses import dataclass, field

from grocerysync.logging_config import get_logger
from grocerysync.schemas import MealPlan

logger = get_logger(__name__)


@dataclass(frozen=True)
class RawIngredientEntry:
    """One ingredient mention, tagged with where in the plan it came from."""

    name: str
    amount: float | str
    unit: str | None
    source_recipe_id: str
    source_recipe_name: str
    day: int
    meal_type: str


@dataclass(frozen=True)
class ExtractionWarning:
    """A malformed part of the plan that was skipped."""

    message: str
    day: int | None = None
    meal_type: str | None = None
    recipe_id: str | None = None

    def __str__(self) -> str:
        location = []
        if self.day is not None:
            location.append(f"day {self.day}")
        if self.meal_type:
            location.append(self.meal_type)
        if self.recipe_id:
            location.append(f"recipe {self.recipe_id}")
        if not location:
            return self.message
        return f"{self.message} ({', '.join(location)})"


@dataclass
class ExtractionResult:
    """Entries in day, meal, ingredient order plus anything that was skipped."""

    entries: list[RawIngredientEntry] = field(default_factory=list)
    warnings: list[ExtractionWarning] = field(default_factory=list)


def extract_ingredients(meal_plan: MealPlan) -> ExtractionResult:
    """
    Walk a meal plan's days, meals and recipe ingredients in order.

    Ingredients without a name or an amount are skipped with a warning so
    the rest of the plan still produces a list. Days without a number take
    their position in the plan; a recipe without an id is reported and its
    ingredients are credited to the recipe name.
    """
    result = ExtractionResult()

    for day_position, day in enumerate(meal_plan.days, start=1):
        day_number = day.day_number if day.day_number is not None else day_position
        for meal in day.meals:
            recipe = meal.recipe
            if recipe is None:
                result.warnings.append(
                    ExtractionWarning("Meal has no recipe", day=day_number, meal_type=meal.meal_type)
                )
                continue

            source_id = recipe.id or recipe.name
            if not recipe.id:
                message = (
                    f"Recipe '{recipe.name}' has no id" if recipe.name else "Recipe has no id or name"
                )
                result.warnings.append(
                    ExtractionWarning(message, day=day_number, meal_type=meal.meal_type)
                )
                if not source_id:
                    continue

            for position, ingredient in enumerate(recipe.ingredients, start=1):
                problem = None
                if not ingredient.name:
                    problem = f"Ingredient #{position} is missing a name"
                elif ingredient.amount is None or str(ingredient.amount).strip() == "":
                    problem = f"Ingredient '{ingredient.name}' is missing an amount"

                if problem:
                    result.warnings.append(
                        ExtractionWarning(
                            problem,
                            day=day_number,
                            meal_type=meal.meal_type,
                            recipe_id=source_id,
                        )
                    )
                    continue

                result.entries.append(
                    RawIngredientEntry(
                        name=ingredient.name,
                        amount=ingredient.amount,
                        unit=ingredient.unit,
                        source_recipe_id=source_id,
                        source_recipe_name=recipe.name or source_id,
                        day=day_number,
                        meal_type=meal.meal_type,
                    )
                )

    if result.warnings:
        logger.warning(
            f"Found {len(result.warnings)} malformed entries while extracting plan {meal_plan.id}"
        )
    logger.debug(f"Extracted {len(result.entries)} ingredient entries from plan {meal_plan.id}")

    return result
