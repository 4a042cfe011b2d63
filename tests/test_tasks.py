"""Tests for the Celery event delivery task (invoked directly, no broker)."""

import pytest
from conftest import TACOS

from grocerysync.config import FeatureConfig
from grocerysync.grocery.repository import InMemoryGroceryListRepository, PersistenceError
from grocerysync.grocery.synchronizer import GroceryListSynchronizer, create_meal_plan_event
from grocerysync.tasks import events
from grocerysync.tasks.events import process_meal_plan_event_task


class BrokenRepository(InMemoryGroceryListRepository):
    def create_grocery_list(self, grocery_list):
        raise PersistenceError("connection refused", operation="create_grocery_list")


@pytest.fixture
def use_synchronizer(monkeypatch):
    """Swap the worker's synchronizer for one backed by the given repository."""

    def install(repository, features=None):
        sync = GroceryListSynchronizer(repository, features or FeatureConfig())
        monkeypatch.setattr(events, "get_synchronizer", lambda: sync)
        return sync

    return install


def event_payload(event_type, plan=None, meal_plan_id="plan-1"):
    event = create_meal_plan_event(event_type, meal_plan_id, "customer-1", plan)
    return event.model_dump(mode="json")


class TestProcessMealPlanEventTask:
    def test_assigned_event(self, use_synchronizer, sample_meal_plan):
        repository = InMemoryGroceryListRepository()
        use_synchronizer(repository)

        result = process_meal_plan_event_task(event_payload("ASSIGNED", sample_meal_plan))

        assert result["success"] is True
        assert result["action"] == "created"
        assert result["error"] is None
        assert result["grocery_list"]["linked_meal_plan_id"] == "plan-1"
        assert len(result["grocery_list"]["items"]) == 11
        assert repository.find_grocery_list_by_meal_plan("customer-1", "plan-1") is not None

    def test_result_is_json_ready(self, use_synchronizer, sample_meal_plan):
        use_synchronizer(InMemoryGroceryListRepository())
        result = process_meal_plan_event_task(event_payload("ASSIGNED", sample_meal_plan))

        item = result["grocery_list"]["items"][0]
        assert isinstance(item["category"], str)
        assert isinstance(result["grocery_list"]["created_at"], str)

    def test_snapshot_without_ids_is_processed(self, use_synchronizer):
        """A payload with only planName and days, one recipe lacking an id, still syncs."""
        use_synchronizer(InMemoryGroceryListRepository())
        event = {
            "event_id": "e-2",
            "type": "ASSIGNED",
            "meal_plan_id": "plan-1",
            "customer_id": "customer-1",
            "payload": {
                "planName": "Test Plan",
                "days": [
                    {
                        "meals": [
                            {
                                "mealType": "dinner",
                                "recipe": {
                                    "name": "Soup",
                                    "ingredients": [{"name": "Carrots", "amount": 2}],
                                },
                            },
                            {"mealType": "lunch", "recipe": TACOS},
                        ]
                    }
                ],
            },
        }

        result = process_meal_plan_event_task(event)

        assert result["success"] is True
        assert result["action"] == "created"
        assert result["grocery_list"]["name"] == "Grocery List - Test Plan"
        assert result["item_count"] == 5
        assert result["original_ingredient_count"] == 5
        assert result["warnings"] == ["Recipe 'Soup' has no id (day 1, dinner)"]

    def test_deleted_event(self, use_synchronizer, sample_meal_plan):
        use_synchronizer(InMemoryGroceryListRepository(), FeatureConfig(delete_orphaned_lists=True))
        process_meal_plan_event_task(event_payload("ASSIGNED", sample_meal_plan))

        result = process_meal_plan_event_task(event_payload("DELETED"))
        assert result["action"] == "deleted"

    def test_disabled_returns_skipped(self, use_synchronizer, sample_meal_plan):
        use_synchronizer(
            InMemoryGroceryListRepository(), FeatureConfig(auto_generate_grocery_lists=False)
        )
        result = process_meal_plan_event_task(event_payload("ASSIGNED", sample_meal_plan))

        assert result["action"] == "skipped"
        assert result["reason"] == "Auto-generation is disabled"

    def test_persistence_error_is_raised_for_retry(self, use_synchronizer, sample_meal_plan):
        use_synchronizer(BrokenRepository())

        with pytest.raises(PersistenceError, match="connection refused"):
            process_meal_plan_event_task(event_payload("ASSIGNED", sample_meal_plan))

    def test_invalid_payload_rejected(self, use_synchronizer):
        use_synchronizer(InMemoryGroceryListRepository())

        with pytest.raises(ValueError):
            process_meal_plan_event_task({"event_id": "e-1", "type": "ARCHIVED"})


class TestTaskRegistration:
    def test_retry_policy(self):
        assert process_meal_plan_event_task.name == (
            "grocerysync.tasks.events.process_meal_plan_event_task"
        )
        assert process_meal_plan_event_task.autoretry_for == (PersistenceError,)
        assert process_meal_plan_event_task.acks_late is True

    def test_no_beat_schedule(self):
        from grocerysync.celery_app import celery_app

        assert not celery_app.conf.beat_schedule
