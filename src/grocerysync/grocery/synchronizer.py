"""
Keep grocery lists in step with meal plan lifecycle events.

Each (customer_id, meal_plan_id) pair moves between three states:

    NONE      no grocery list exists for the plan
    ACTIVE    a list exists and is linked to the plan
    ORPHANED  the plan was deleted and the list was kept, unlinked

ASSIGNED and UPDATED (re)generate the list from the plan snapshot carried by
the event. DELETED either unlinks the list or removes it, depending on
FeatureConfig.delete_orphaned_lists.
"""

import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from grocerysync.config import FeatureConfig
from grocerysync.grocery.builder import BuildResult, build_grocery_items, build_list_name
from grocerysync.grocery.repository import (
    GroceryListConflictError,
    GroceryListRepository,
    PersistenceError,
)
from grocerysync.logging_config import LoggingContext, get_logger
from grocerysync.normalize.names import NameMatcher
from grocerysync.schemas import (
    ErrorKind,
    GroceryItem,
    GroceryListSnapshot,
    MealPlan,
    MealPlanEvent,
    MealPlanEventType,
    SyncAction,
    SyncResult,
)

logger = get_logger(__name__)

REASON_DISABLED = "Auto-generation is disabled"
REASON_UPDATES_DISABLED = "Updating existing grocery lists is disabled"
REASON_NO_INGREDIENTS = "No ingredients found in meal plan"
REASON_NO_LIST = "No grocery list linked to meal plan"
REASON_NO_PAYLOAD = "Event carries no meal plan snapshot"
REASON_BUILD_FAILED = "Grocery items could not be computed"


# =============================================================================
# Per-plan locking
# =============================================================================


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class PlanLockRegistry:
    """
    In-process mutual exclusion per (customer_id, meal_plan_id).

    Entries are reference counted and dropped when the last holder leaves, so
    the registry does not grow with the number of plans ever seen. Workers in
    other processes are kept apart by the repository's uniqueness rule instead.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[tuple[str, str], _LockEntry] = {}

    @contextmanager
    def hold(self, customer_id: str, meal_plan_id: str) -> Iterator[None]:
        key = (customer_id, meal_plan_id)
        with self._guard:
            entry = self._entries.setdefault(key, _LockEntry())
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


# =============================================================================
# Item merging
# =============================================================================


def _take_match(candidates: list[GroceryItem], computed: GroceryItem) -> GroceryItem | None:
    if not candidates:
        return None
    for index, candidate in enumerate(candidates):
        if candidate.unit == computed.unit:
            return candidates.pop(index)
    return candidates.pop(0)


def merge_items(
    existing: list[GroceryItem], computed: list[GroceryItem], additive: bool = False
) -> list[GroceryItem]:
    """
    Merge freshly computed items into a list's current items, joined on name.

    Matched items take the computed quantity but keep their id, checked state
    and notes, in their existing order. Computed items without a match are
    appended. Existing items without a match are dropped, or kept when
    ``additive`` is set. When a name occurs more than once (different units),
    the existing item with the same unit is preferred.
    """
    by_name: dict[str, list[GroceryItem]] = {}
    for item in existing:
        by_name.setdefault(item.name, []).append(item)

    replacements: dict[int, GroceryItem] = {}
    appended: list[GroceryItem] = []
    for item in computed:
        match = _take_match(by_name.get(item.name, []), item)
        if match is None:
            appended.append(item)
            continue
        replacements[id(match)] = item.model_copy(
            update={
                "id": match.id,
                "grocery_list_id": match.grocery_list_id,
                "is_checked": match.is_checked,
                "notes": match.notes,
            }
        )

    merged: list[GroceryItem] = []
    for item in existing:
        if id(item) in replacements:
            merged.append(replacements[id(item)])
        elif additive:
            merged.append(item)
    merged.extend(appended)
    return merged


# =============================================================================
# Synchronizer
# =============================================================================


def _skipped(reason: str, warnings: list[str] | None = None, **kwargs: Any) -> SyncResult:
    return SyncResult(
        success=True, action=SyncAction.SKIPPED, reason=reason, warnings=warnings or [], **kwargs
    )


class GroceryListSynchronizer:
    """Applies meal plan lifecycle events to the grocery list repository."""

    def __init__(
        self,
        repository: GroceryListRepository,
        features: FeatureConfig | None = None,
        locks: PlanLockRegistry | None = None,
    ):
        self.repository = repository
        self.features = features if features is not None else FeatureConfig()
        self.locks = locks if locks is not None else PlanLockRegistry()
        self.matcher = NameMatcher(self.features.fuzzy_match_threshold)

    def handle(self, event: MealPlanEvent) -> SyncResult:
        """Dispatch an event to the handler for its type."""
        handlers: dict[MealPlanEventType, Callable[[MealPlanEvent], SyncResult]] = {
            MealPlanEventType.ASSIGNED: self.on_meal_plan_assigned,
            MealPlanEventType.UPDATED: self.on_meal_plan_updated,
            MealPlanEventType.DELETED: self.on_meal_plan_deleted,
        }
        return handlers[event.type](event)

    def on_meal_plan_assigned(self, event: MealPlanEvent) -> SyncResult:
        return self._process(event, self._sync_from_plan)

    def on_meal_plan_updated(self, event: MealPlanEvent) -> SyncResult:
        # A plan without a list yet is treated the same as a fresh assignment
        return self._process(event, self._sync_from_plan)

    def on_meal_plan_deleted(self, event: MealPlanEvent) -> SyncResult:
        return self._process(event, self._retire)

    def _process(
        self, event: MealPlanEvent, transition: Callable[[MealPlanEvent], SyncResult]
    ) -> SyncResult:
        with LoggingContext(
            event_id=event.event_id,
            meal_plan_id=event.meal_plan_id,
            customer_id=event.customer_id,
        ):
            if not self.features.auto_generate_grocery_lists:
                logger.info(f"Ignoring {event.type.value} event: {REASON_DISABLED}")
                return _skipped(REASON_DISABLED)

            try:
                with self.locks.hold(event.customer_id, event.meal_plan_id):
                    result = transition(event)
            except PersistenceError as e:
                logger.exception(
                    f"Persistence failure while handling {event.type.value} "
                    f"(operation={e.operation})"
                )
                return SyncResult(
                    success=False,
                    action=SyncAction.SKIPPED,
                    error=ErrorKind.PERSISTENCE,
                    reason=str(e),
                )

            if result.warnings:
                logger.warning(
                    f"{event.type.value} produced {len(result.warnings)} warnings; "
                    f"first: {result.warnings[0]}"
                )
            suffix = f" ({result.reason})" if result.reason else ""
            logger.info(f"{event.type.value} -> {result.action.value}{suffix}")
            return result

    def _snapshot_warnings(self, event: MealPlanEvent, plan: MealPlan) -> list[str]:
        warnings = []
        if plan.id is not None and plan.id != event.meal_plan_id:
            warnings.append(
                f"Snapshot meal plan id {plan.id} does not match event meal plan {event.meal_plan_id}"
            )
        if plan.customer_id is not None and plan.customer_id != event.customer_id:
            warnings.append(
                f"Snapshot customer id {plan.customer_id} does not match event customer "
                f"{event.customer_id}"
            )
        return warnings

    def _sync_from_plan(self, event: MealPlanEvent) -> SyncResult:
        plan = event.payload
        if plan is None:
            return _skipped(REASON_NO_PAYLOAD, warnings=[REASON_NO_PAYLOAD])

        build = build_grocery_items(
            plan, matcher=self.matcher, round_up=self.features.round_up_quantities
        )
        build.warnings[:0] = self._snapshot_warnings(event, plan)
        if build.failed and not build.items:
            # An existing list is left as it is
            return _skipped(
                REASON_BUILD_FAILED,
                warnings=build.warnings,
                original_ingredient_count=build.raw_count,
            )

        existing = self.repository.find_grocery_list_by_meal_plan(
            event.customer_id, event.meal_plan_id
        )
        if existing is not None:
            return self._update_existing(existing, build)

        if not build.items:
            return _skipped(
                REASON_NO_INGREDIENTS,
                warnings=build.warnings,
                original_ingredient_count=build.raw_count,
            )

        new_list = GroceryListSnapshot(
            customer_id=event.customer_id,
            linked_meal_plan_id=event.meal_plan_id,
            name=build_list_name(plan, event.meal_plan_id),
            items=build.items,
        )
        try:
            created = self.repository.create_grocery_list(new_list)
        except GroceryListConflictError:
            logger.info("Grocery list was created concurrently, updating it instead")
            existing = self.repository.find_grocery_list_by_meal_plan(
                event.customer_id, event.meal_plan_id
            )
            if existing is None:
                raise PersistenceError(
                    "Conflicting grocery list could not be found after create",
                    operation="find_grocery_list_by_meal_plan",
                ) from None
            return self._update_existing(existing, build)

        logger.info(
            f"Created grocery list {created.id} with {len(created.items)} items "
            f"from {build.raw_count} ingredient entries"
        )
        return SyncResult(
            success=True,
            action=SyncAction.CREATED,
            warnings=build.warnings,
            grocery_list=created,
            item_count=len(created.items),
            original_ingredient_count=build.raw_count,
        )

    def _update_existing(self, existing: GroceryListSnapshot, build: BuildResult) -> SyncResult:
        if not self.features.update_existing_lists:
            return _skipped(
                REASON_UPDATES_DISABLED,
                warnings=build.warnings,
                grocery_list=existing,
                item_count=len(existing.items),
            )

        items = merge_items(
            existing.items, build.items, additive=self.features.additive_grocery_merge
        )
        # Stored checked state and notes win over the copy read above
        updated = self.repository.update_grocery_list_items(
            existing.id, items, keep_user_state=True
        )
        logger.info(f"Updated grocery list {updated.id}: {len(existing.items)} -> {len(items)} items")
        return SyncResult(
            success=True,
            action=SyncAction.UPDATED,
            warnings=build.warnings,
            grocery_list=updated,
            item_count=len(updated.items),
            original_ingredient_count=build.raw_count,
        )

    def _retire(self, event: MealPlanEvent) -> SyncResult:
        existing = self.repository.find_grocery_list_by_meal_plan(
            event.customer_id, event.meal_plan_id
        )
        if existing is None:
            return _skipped(REASON_NO_LIST)

        if self.features.delete_orphaned_lists:
            self.repository.delete_grocery_list(existing.id)
            logger.info(f"Deleted grocery list {existing.id}")
            return SyncResult(success=True, action=SyncAction.DELETED)

        unlinked = self.repository.unlink_grocery_list(existing.id)
        logger.info(f"Unlinked grocery list {unlinked.id}, keeping {len(unlinked.items)} items")
        return SyncResult(
            success=True,
            action=SyncAction.UPDATED,
            grocery_list=unlinked,
            item_count=len(unlinked.items),
        )


def create_meal_plan_event(
    event_type: MealPlanEventType | str,
    meal_plan_id: str,
    customer_id: str,
    payload: MealPlan | dict | None = None,
) -> MealPlanEvent:
    """Build a lifecycle event with a fresh event id."""
    return MealPlanEvent(
        event_id=str(uuid.uuid4()),
        type=MealPlanEventType(event_type),
        meal_plan_id=meal_plan_id,
        customer_id=customer_id,
        payload=payload,
    )
