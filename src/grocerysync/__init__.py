"""Grocery list generation and meal plan lifecycle synchronization."""

__version__ = "0.1.0"
