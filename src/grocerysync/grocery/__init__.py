"""Meal plan to grocery list pipeline and lifecycle synchronizer."""

from grocerysync.grocery.aggregator import (
    AggregatedIngredient,
    AggregationResult,
    aggregate_ingredients,
)
from grocerysync.grocery.builder import (
    BuildResult,
    build_grocery_items,
    build_list_name,
    build_notes,
)
from grocerysync.grocery.categorizer import (
    CategorizedIngredient,
    categorize,
    categorize_all,
    category_for_name,
)
from grocerysync.grocery.extractor import (
    ExtractionResult,
    ExtractionWarning,
    RawIngredientEntry,
    extract_ingredients,
)
from grocerysync.grocery.repository import (
    GroceryListConflictError,
    GroceryListRepository,
    InMemoryGroceryListRepository,
    PersistenceError,
    SqlAlchemyGroceryListRepository,
)
from grocerysync.grocery.synchronizer import (
    GroceryListSynchronizer,
    PlanLockRegistry,
    create_meal_plan_event,
    merge_items,
)

__all__ = [
    "AggregatedIngredient",
    "AggregationResult",
    "BuildResult",
    "CategorizedIngredient",
    "ExtractionResult",
    "ExtractionWarning",
    "GroceryListConflictError",
    "GroceryListRepository",
    "GroceryListSynchronizer",
    "InMemoryGroceryListRepository",
    "PersistenceError",
    "PlanLockRegistry",
    "RawIngredientEntry",
    "SqlAlchemyGroceryListRepository",
    "aggregate_ingredients",
    "build_grocery_items",
    "build_list_name",
    "build_notes",
    "categorize",
    "categorize_all",
    "category_for_name",
    "create_meal_plan_event",
    "extract_ingredients",
    "merge_items",
]
