#!/usr/bin/env python
"""
Preview the grocery list a meal plan would generate.

Reads a meal plan snapshot from a JSON file, runs it through extraction,
aggregation and categorization, and prints the items grouped by category.
Nothing is written to the database.

Run with: python scripts/preview_grocery_list.py path/to/meal_plan.json

Environment Variables:
    LOG_LEVEL: Logging level (default: WARNING)
"""

import argparse
import json
import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from grocerysync.grocery.builder import build_grocery_items, build_list_name
from grocerysync.logging_config import configure_logging, get_logger
from grocerysync.normalize.names import NameMatcher
from grocerysync.schemas import GroceryCategory, GroceryItem, MealPlan

configure_logging(log_level=os.getenv("LOG_LEVEL", "WARNING"))
logger = get_logger(__name__)


def load_meal_plan(path: Path) -> MealPlan:
    with path.open(encoding="utf-8") as f:
        return MealPlan.model_validate(json.load(f))


def print_items(title: str, items: list[GroceryItem], show_notes: bool) -> None:
    print(f"\n{title}")
    print("=" * len(title))

    for category in GroceryCategory:
        in_category = [item for item in items if item.category == category]
        if not in_category:
            continue

        print(f"\n{category.value.upper()} ({len(in_category)})")
        for item in in_category:
            amount = f"{item.quantity} {item.unit}".strip()
            print(f"  [ ] {item.name}: {amount}")
            if show_notes and item.notes:
                print(f"        {item.notes}")


def main():
    parser = argparse.ArgumentParser(description="Preview the grocery list for a meal plan JSON file")
    parser.add_argument("meal_plan", type=Path, help="Path to a meal plan snapshot (JSON)")
    parser.add_argument(
        "--fuzzy-threshold",
        "-f",
        type=int,
        default=0,
        help="Fold near-identical names scoring at least this much (0-100, 0 disables)",
    )
    parser.add_argument("--notes", "-n", action="store_true", help="Show which recipes use each item")
    parser.add_argument(
        "--round-up", "-r", action="store_true", help="Round quantities up to whole units"
    )

    args = parser.parse_args()

    try:
        meal_plan = load_meal_plan(args.meal_plan)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read meal plan from {args.meal_plan}: {e}")
        sys.exit(1)

    result = build_grocery_items(
        meal_plan, matcher=NameMatcher(args.fuzzy_threshold), round_up=args.round_up
    )

    print_items(build_list_name(meal_plan), result.items, show_notes=args.notes)
    print(f"\n{len(result.items)} items from {result.raw_count} ingredient entries")

    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  - {warning}")


if __name__ == "__main__":
    main()
