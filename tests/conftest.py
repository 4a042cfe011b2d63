"""Pytest configuration and shared fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from grocerysync.config import FeatureConfig
from grocerysync.database import Base, create_tables
from grocerysync.grocery.repository import (
    InMemoryGroceryListRepository,
    SqlAlchemyGroceryListRepository,
)
from grocerysync.grocery.synchronizer import GroceryListSynchronizer
from grocerysync.schemas import MealPlan

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow running")


# =============================================================================
# Meal Plan Builders
# =============================================================================


def make_recipe(recipe_id: str, name: str, ingredients: list[tuple]) -> dict:
    """Recipe payload from (name, amount, unit) triples."""
    return {
        "id": recipe_id,
        "name": name,
        "ingredients": [
            {"name": ingredient_name, "amount": amount, "unit": unit}
            for ingredient_name, amount, unit in ingredients
        ],
    }


def make_plan(days: list[list[tuple[str, dict | None]]], **overrides) -> MealPlan:
    """Meal plan from a list of days, each a list of (meal_type, recipe) pairs."""
    data = {
        "id": "plan-1",
        "customer_id": "customer-1",
        "name": "Family Week",
        "days": [
            {
                "day_number": number,
                "meals": [{"meal_type": meal_type, "recipe": recipe} for meal_type, recipe in meals],
            }
            for number, meals in enumerate(days, start=1)
        ],
    }
    data.update(overrides)
    return MealPlan.model_validate(data)


PANCAKES = make_recipe(
    "r-pancakes",
    "Pancakes",
    [("Flour", 1, "cup"), ("Milk", "1/2", "cup"), ("Eggs", 2, ""), ("Butter", 2, "tbsp")],
)
TACOS = make_recipe(
    "r-tacos",
    "Tacos",
    [("Ground Beef", 500, "g"), ("Tortillas", 8, None), ("Tomatoes", 2, None), ("Salt", "pinch", None)],
)
OMELETTE = make_recipe(
    "r-omelette",
    "Omelette",
    [("eggs", 3, None), ("milk", 2, "tablespoons"), ("Cheddar Cheese", 50, "grams")],
)
CHILI = make_recipe(
    "r-chili",
    "Chili",
    [("ground beef", 0.5, "kg"), ("tomatoes", 1, "can"), ("Onion", 1, None)],
)

OATMEAL = make_recipe(
    "r-oatmeal",
    "Oatmeal",
    [
        ("Oats", "1/2", "cup"),
        ("Milk", 1, "cup"),
        ("Banana", 1, None),
        ("Honey", 1, "tbsp"),
        ("Blueberries", 50, "g"),
    ],
)
CHICKEN_SALAD = make_recipe(
    "r-salad",
    "Chicken Salad",
    [
        ("Chicken Breast", 200, "g"),
        ("Lettuce", 1, "head"),
        ("Tomatoes", 2, None),
        ("Olive Oil", 1, "tbsp"),
        ("Feta Cheese", 30, "g"),
    ],
)
BOLOGNESE = make_recipe(
    "r-bolognese",
    "Pasta Bolognese",
    [
        ("Pasta", 100, "g"),
        ("Ground Beef", 150, "g"),
        ("Tomato Sauce", "1/2", "cup"),
        ("Onion", 1, None),
        ("Garlic", 2, "cloves"),
    ],
)
STIR_FRY = make_recipe(
    "r-stir-fry",
    "Stir Fry",
    [
        ("Rice", 75, "g"),
        ("chicken breast", 150, "g"),
        ("Broccoli", 1, "head"),
        ("Soy Sauce", 2, "tbsp"),
        ("Garlic", 1, "clove"),
    ],
)


@pytest.fixture
def sample_meal_plan() -> MealPlan:
    """Two days, four recipes, with overlapping ingredients."""
    return make_plan(
        [
            [("breakfast", PANCAKES), ("dinner", TACOS)],
            [("lunch", OMELETTE), ("dinner", CHILI)],
        ]
    )


@pytest.fixture
def week_meal_plan() -> MealPlan:
    """Seven days of three meals with five ingredients each (105 entries)."""
    days = []
    for number in range(1, 8):
        dinner = BOLOGNESE if number % 2 else STIR_FRY
        days.append([("breakfast", OATMEAL), ("lunch", CHICKEN_SALAD), ("dinner", dinner)])
    return make_plan(days, name="Seven Day Plan")


@pytest.fixture
def empty_meal_plan() -> MealPlan:
    return make_plan([[("dinner", None)]])


# =============================================================================
# Repository and Synchronizer Fixtures
# =============================================================================


@pytest.fixture
def repository() -> InMemoryGroceryListRepository:
    return InMemoryGroceryListRepository()


@pytest.fixture
def features() -> FeatureConfig:
    return FeatureConfig()


@pytest.fixture
def synchronizer(repository, features) -> GroceryListSynchronizer:
    return GroceryListSynchronizer(repository, features)


@pytest.fixture(scope="function")
def sqlite_engine():
    """In-memory SQLite engine shared across threads, tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    create_tables(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def sql_repository(sqlite_engine) -> SqlAlchemyGroceryListRepository:
    return SqlAlchemyGroceryListRepository(sessionmaker(sqlite_engine, expire_on_commit=False))
