"""Celery tasks for meal plan event delivery."""

from grocerysync.tasks.events import process_meal_plan_event_task

__all__ = ["process_meal_plan_event_task"]
