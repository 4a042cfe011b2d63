"""Assign shopping categories to aggregated ingredients."""

import re
from dataclasses import dataclass

from grocerysync.grocery.aggregator import AggregatedIngredient
from grocerysync.schemas import GroceryCategory, GroceryPriority

# Ordered (keyword, category) pairs matched as whole words against the
# normalized (singular) name. First match wins, so specific phrases such as
# "peanut butter" must come before the generic words they contain.
CATEGORY_KEYWORDS: tuple[tuple[str, GroceryCategory], ...] = (
    # Frozen
    ("frozen", GroceryCategory.FROZEN),
    ("ice cream", GroceryCategory.FROZEN),
    ("sorbet", GroceryCategory.FROZEN),
    # Pantry phrases that would otherwise hit meat, dairy or produce
    ("peanut butter", GroceryCategory.PANTRY),
    ("almond butter", GroceryCategory.PANTRY),
    ("coconut milk", GroceryCategory.PANTRY),
    ("almond milk", GroceryCategory.PANTRY),
    ("oat milk", GroceryCategory.PANTRY),
    ("soy milk", GroceryCategory.PANTRY),
    ("chicken broth", GroceryCategory.PANTRY),
    ("chicken stock", GroceryCategory.PANTRY),
    ("beef broth", GroceryCategory.PANTRY),
    ("beef stock", GroceryCategory.PANTRY),
    ("vegetable broth", GroceryCategory.PANTRY),
    ("tomato sauce", GroceryCategory.PANTRY),
    ("tomato paste", GroceryCategory.PANTRY),
    ("canned", GroceryCategory.PANTRY),
    ("garlic powder", GroceryCategory.PANTRY),
    ("onion powder", GroceryCategory.PANTRY),
    ("black pepper", GroceryCategory.PANTRY),
    ("olive oil", GroceryCategory.PANTRY),
    ("soy sauce", GroceryCategory.PANTRY),
    # Meat & seafood
    ("chicken", GroceryCategory.MEAT),
    ("beef", GroceryCategory.MEAT),
    ("steak", GroceryCategory.MEAT),
    ("pork", GroceryCategory.MEAT),
    ("bacon", GroceryCategory.MEAT),
    ("ham", GroceryCategory.MEAT),
    ("sausage", GroceryCategory.MEAT),
    ("turkey", GroceryCategory.MEAT),
    ("lamb", GroceryCategory.MEAT),
    ("veal", GroceryCategory.MEAT),
    ("salmon", GroceryCategory.MEAT),
    ("tuna", GroceryCategory.MEAT),
    ("cod", GroceryCategory.MEAT),
    ("tilapia", GroceryCategory.MEAT),
    ("shrimp", GroceryCategory.MEAT),
    ("fish", GroceryCategory.MEAT),
    # Dairy & eggs
    ("milk", GroceryCategory.DAIRY),
    ("cheese", GroceryCategory.DAIRY),
    ("cheddar", GroceryCategory.DAIRY),
    ("mozzarella", GroceryCategory.DAIRY),
    ("parmesan", GroceryCategory.DAIRY),
    ("feta", GroceryCategory.DAIRY),
    ("yogurt", GroceryCategory.DAIRY),
    ("butter", GroceryCategory.DAIRY),
    ("cream", GroceryCategory.DAIRY),
    ("egg", GroceryCategory.DAIRY),
    # Produce
    ("broccoli", GroceryCategory.PRODUCE),
    ("spinach", GroceryCategory.PRODUCE),
    ("lettuce", GroceryCategory.PRODUCE),
    ("kale", GroceryCategory.PRODUCE),
    ("cabbage", GroceryCategory.PRODUCE),
    ("cauliflower", GroceryCategory.PRODUCE),
    ("asparagus", GroceryCategory.PRODUCE),
    ("tomato", GroceryCategory.PRODUCE),
    ("onion", GroceryCategory.PRODUCE),
    ("scallion", GroceryCategory.PRODUCE),
    ("garlic", GroceryCategory.PRODUCE),
    ("ginger", GroceryCategory.PRODUCE),
    ("carrot", GroceryCategory.PRODUCE),
    ("celery", GroceryCategory.PRODUCE),
    ("potato", GroceryCategory.PRODUCE),
    ("pepper", GroceryCategory.PRODUCE),
    ("cucumber", GroceryCategory.PRODUCE),
    ("zucchini", GroceryCategory.PRODUCE),
    ("squash", GroceryCategory.PRODUCE),
    ("mushroom", GroceryCategory.PRODUCE),
    ("avocado", GroceryCategory.PRODUCE),
    ("lemon", GroceryCategory.PRODUCE),
    ("lime", GroceryCategory.PRODUCE),
    ("apple", GroceryCategory.PRODUCE),
    ("banana", GroceryCategory.PRODUCE),
    ("berry", GroceryCategory.PRODUCE),
    ("cilantro", GroceryCategory.PRODUCE),
    ("parsley", GroceryCategory.PRODUCE),
    ("basil", GroceryCategory.PRODUCE),
    ("corn", GroceryCategory.PRODUCE),
    ("green bean", GroceryCategory.PRODUCE),
    # Pantry staples
    ("rice", GroceryCategory.PANTRY),
    ("pasta", GroceryCategory.PANTRY),
    ("flour", GroceryCategory.PANTRY),
    ("sugar", GroceryCategory.PANTRY),
    ("salt", GroceryCategory.PANTRY),
    ("oil", GroceryCategory.PANTRY),
    ("vinegar", GroceryCategory.PANTRY),
    ("honey", GroceryCategory.PANTRY),
    ("oats", GroceryCategory.PANTRY),
    ("quinoa", GroceryCategory.PANTRY),
    ("bread", GroceryCategory.PANTRY),
    ("tortilla", GroceryCategory.PANTRY),
)

DEFAULT_CATEGORY = GroceryCategory.PANTRY
DEFAULT_PRIORITY = GroceryPriority.MEDIUM

# Keywords that also match as the tail of a compound word (strawberry, blueberry)
SUFFIX_KEYWORDS = frozenset({"berry"})


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    start = "" if keyword in SUFFIX_KEYWORDS else r"\b"
    return re.compile(rf"{start}{re.escape(keyword)}\b")


_KEYWORD_PATTERNS = tuple(
    (_keyword_pattern(keyword), category) for keyword, category in CATEGORY_KEYWORDS
)


@dataclass(frozen=True)
class CategorizedIngredient:
    ingredient: AggregatedIngredient
    category: GroceryCategory
    priority: GroceryPriority = DEFAULT_PRIORITY


def category_for_name(normalized_name: str) -> GroceryCategory:
    """Look up the shopping category for a normalized ingredient name."""
    for pattern, category in _KEYWORD_PATTERNS:
        if pattern.search(normalized_name):
            return category
    return DEFAULT_CATEGORY


def categorize(ingredient: AggregatedIngredient) -> CategorizedIngredient:
    return CategorizedIngredient(
        ingredient=ingredient,
        category=category_for_name(ingredient.normalized_name),
        priority=DEFAULT_PRIORITY,
    )


def categorize_all(ingredients: list[AggregatedIngredient]) -> list[CategorizedIngredient]:
    return [categorize(ingredient) for ingredient in ingredients]
