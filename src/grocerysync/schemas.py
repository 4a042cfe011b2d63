"""Pydantic schemas for meal plan snapshots, lifecycle events and grocery lists."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Meal Plan Snapshot (owned by the meal-plan collaborator)
# =============================================================================


class Ingredient(BaseModel):
    """Ingredient line of a recipe; malformed lines are reported by the extractor."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    amount: float | str | None = Field(
        default=None, validation_alias=AliasChoices("amount", "quantity")
    )
    unit: str | None = None

    @field_validator("name", "unit", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        """Treat empty strings as missing."""
        if v is None:
            return None
        v = str(v).strip()
        return v or None


def _optional_id(v: Any) -> str | None:
    if v is None:
        return None
    return str(v).strip() or None


class Recipe(BaseModel):
    """Recipe referenced by a meal."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str = ""
    ingredients: list[Ingredient] = Field(
        default_factory=list,
        validation_alias=AliasChoices("ingredients", "ingredientsJson", "ingredients_json"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str | None:
        return _optional_id(v)


class Meal(BaseModel):
    """One meal slot of a day."""

    model_config = ConfigDict(populate_by_name=True)

    meal_type: str = Field(
        default="meal", validation_alias=AliasChoices("meal_type", "mealType", "type")
    )
    recipe: Recipe | None = None


class Day(BaseModel):
    """One day of a meal plan."""

    model_config = ConfigDict(populate_by_name=True)

    day_number: int | None = Field(
        default=None, validation_alias=AliasChoices("day_number", "dayNumber", "day")
    )
    meals: list[Meal] = Field(default_factory=list)


class MealPlan(BaseModel):
    """Immutable meal plan snapshot passed into the engine with every event."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str | None = None
    customer_id: str | None = None
    name: str | None = Field(
        default=None, validation_alias=AliasChoices("name", "planName", "plan_name")
    )
    days: list[Day] = Field(default_factory=list)

    @field_validator("id", "customer_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str | None:
        return _optional_id(v)


# =============================================================================
# Lifecycle Events
# =============================================================================


class MealPlanEventType(str, Enum):
    """Meal plan lifecycle notifications."""

    ASSIGNED = "ASSIGNED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"


class MealPlanEvent(BaseModel):
    """A lifecycle event delivered by the meal-plan collaborator."""

    event_id: str
    type: MealPlanEventType
    meal_plan_id: str
    customer_id: str
    payload: MealPlan | None = None
    occurred_at: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# Grocery Lists
# =============================================================================


class GroceryCategory(str, Enum):
    """Shopping categories."""

    PRODUCE = "produce"
    MEAT = "meat"
    DAIRY = "dairy"
    PANTRY = "pantry"
    FROZEN = "frozen"
    OTHER = "other"


class GroceryPriority(str, Enum):
    """Item priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GroceryItem(BaseModel):
    """A single grocery list line."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    grocery_list_id: str | None = None
    name: str
    category: GroceryCategory = GroceryCategory.OTHER
    quantity: str = Field(description="Display quantity, e.g. '1 1/2'")
    amount: float | None = Field(default=None, description="Numeric total, None for text amounts")
    unit: str = ""
    is_checked: bool = False
    priority: GroceryPriority = GroceryPriority.MEDIUM
    notes: str | None = None


class GroceryListSnapshot(BaseModel):
    """A persisted grocery list as seen by the engine."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    customer_id: str
    linked_meal_plan_id: str | None = None
    name: str
    items: list[GroceryItem] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_linked(self) -> bool:
        return self.linked_meal_plan_id is not None


# =============================================================================
# Synchronization Results
# =============================================================================


class SyncAction(str, Enum):
    """What a lifecycle event did to the grocery list."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    SKIPPED = "skipped"


class ErrorKind(str, Enum):
    """Typed failures surfaced to the caller."""

    PERSISTENCE = "PersistenceError"


class SyncResult(BaseModel):
    """Outcome of processing one lifecycle event."""

    success: bool
    action: SyncAction
    warnings: list[str] = Field(default_factory=list)
    error: ErrorKind | None = None
    reason: str | None = None
    grocery_list: GroceryListSnapshot | None = None
    item_count: int | None = Field(default=None, description="Items on the resulting list")
    original_ingredient_count: int | None = Field(
        default=None, description="Ingredient entries extracted before consolidation"
    )
