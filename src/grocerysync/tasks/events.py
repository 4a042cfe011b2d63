"""Celery tasks that apply meal plan lifecycle events."""

from functools import lru_cache
from typing import Any

from grocerysync.celery_app import celery_app
from grocerysync.config import FeatureConfig, get_settings
from grocerysync.database import get_session_factory
from grocerysync.grocery.repository import PersistenceError, SqlAlchemyGroceryListRepository
from grocerysync.grocery.synchronizer import GroceryListSynchronizer
from grocerysync.logging_config import LoggingContext, configure_logging, get_logger
from grocerysync.schemas import MealPlanEvent

# Configure logging for Celery workers
configure_logging(get_settings().log_level)
logger = get_logger(__name__)


@lru_cache
def get_synchronizer() -> GroceryListSynchronizer:
    """Synchronizer shared by all tasks in this worker process."""
    settings = get_settings()
    return GroceryListSynchronizer(
        repository=SqlAlchemyGroceryListRepository(get_session_factory()),
        features=FeatureConfig.from_settings(settings),
    )


@celery_app.task(
    bind=True,
    name="grocerysync.tasks.events.process_meal_plan_event_task",
    max_retries=5,
    autoretry_for=(PersistenceError,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    acks_late=True,
    reject_on_worker_lost=True,
)
def process_meal_plan_event_task(self, event: dict[str, Any]) -> dict[str, Any]:
    """
    Apply one meal plan lifecycle event to the customer's grocery list.

    Args:
        event: MealPlanEvent serialized as JSON-compatible dict.

    Returns:
        dict with the SyncResult of the event.

    Raises:
        PersistenceError: the event was not applied; Celery retries it with backoff.
    """
    task_id = self.request.id
    meal_plan_event = MealPlanEvent.model_validate(event)

    with LoggingContext(task_id=task_id):
        logger.info(
            f"Processing {meal_plan_event.type.value} event {meal_plan_event.event_id} "
            f"for plan {meal_plan_event.meal_plan_id}"
        )

        result = get_synchronizer().handle(meal_plan_event)

        if result.error is not None:
            # Re-raise to trigger Celery retry mechanism
            raise PersistenceError(
                result.reason or f"Event {meal_plan_event.event_id} could not be applied",
                operation=result.error.value,
            )

        logger.info(f"Event {meal_plan_event.event_id} finished with action: {result.action.value}")
        return result.model_dump(mode="json")
