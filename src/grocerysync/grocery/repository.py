"""Persistence contract for grocery lists and its implementations."""

import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from grocerysync.logging_config import get_logger
from grocerysync.models import GroceryList, GroceryListItem
from grocerysync.schemas import GroceryItem, GroceryListSnapshot

logger = get_logger(__name__)


class PersistenceError(Exception):
    """A storage operation failed; the event was not processed and may be retried."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class GroceryListConflictError(PersistenceError):
    """Raised when a second linked list is created for the same customer and meal plan."""


class GroceryListRepository(ABC):
    """Storage operations the synchronizer relies on."""

    @abstractmethod
    def find_grocery_list_by_meal_plan(
        self, customer_id: str, meal_plan_id: str
    ) -> GroceryListSnapshot | None:
        """Return the list currently linked to the meal plan, if any."""

    @abstractmethod
    def create_grocery_list(self, grocery_list: GroceryListSnapshot) -> GroceryListSnapshot:
        """Persist a new list with its items. Raises GroceryListConflictError on a duplicate link."""

    @abstractmethod
    def update_grocery_list_items(
        self, list_id: str, items: list[GroceryItem], keep_user_state: bool = False
    ) -> GroceryListSnapshot:
        """
        Replace the list's items, keeping rows whose ids are passed back.

        With ``keep_user_state``, rows that already exist keep the checked
        state and notes currently stored, read in the same write.
        """

    @abstractmethod
    def unlink_grocery_list(self, list_id: str) -> GroceryListSnapshot:
        """Detach the list from its meal plan, leaving items untouched."""

    @abstractmethod
    def delete_grocery_list(self, list_id: str) -> None:
        """Delete the list and its items."""


def _new_id() -> str:
    return str(uuid.uuid4())


def _assign_ids(
    items: list[GroceryItem], list_id: str, stored: dict[str, GroceryItem] | None = None
) -> list[GroceryItem]:
    assigned = []
    for item in items:
        update = {"id": item.id or _new_id(), "grocery_list_id": list_id}
        current = stored.get(item.id) if stored and item.id else None
        if current is not None:
            update["is_checked"] = current.is_checked
            update["notes"] = current.notes
        assigned.append(item.model_copy(update=update))
    return assigned


# =============================================================================
# In-memory implementation
# =============================================================================


class InMemoryGroceryListRepository(GroceryListRepository):
    """Thread-safe repository kept in process memory, with the same link uniqueness rule."""

    def __init__(self) -> None:
        self._lists: dict[str, GroceryListSnapshot] = {}
        self._lock = threading.RLock()

    def _get(self, list_id: str, operation: str) -> GroceryListSnapshot:
        try:
            return self._lists[list_id]
        except KeyError:
            raise PersistenceError(f"Grocery list {list_id} not found", operation=operation) from None

    def _find_linked(self, customer_id: str, meal_plan_id: str) -> GroceryListSnapshot | None:
        for grocery_list in self._lists.values():
            if (
                grocery_list.customer_id == customer_id
                and grocery_list.linked_meal_plan_id == meal_plan_id
            ):
                return grocery_list
        return None

    def find_grocery_list_by_meal_plan(
        self, customer_id: str, meal_plan_id: str
    ) -> GroceryListSnapshot | None:
        with self._lock:
            found = self._find_linked(customer_id, meal_plan_id)
            return found.model_copy(deep=True) if found else None

    def create_grocery_list(self, grocery_list: GroceryListSnapshot) -> GroceryListSnapshot:
        with self._lock:
            meal_plan_id = grocery_list.linked_meal_plan_id
            if meal_plan_id is not None and self._find_linked(
                grocery_list.customer_id, meal_plan_id
            ):
                raise GroceryListConflictError(
                    f"Meal plan {meal_plan_id} already has a linked grocery list",
                    operation="create_grocery_list",
                )

            now = datetime.utcnow()
            list_id = grocery_list.id or _new_id()
            stored = grocery_list.model_copy(
                update={
                    "id": list_id,
                    "items": _assign_ids(grocery_list.items, list_id),
                    "created_at": now,
                    "updated_at": now,
                },
                deep=True,
            )
            self._lists[list_id] = stored
            return stored.model_copy(deep=True)

    def update_grocery_list_items(
        self, list_id: str, items: list[GroceryItem], keep_user_state: bool = False
    ) -> GroceryListSnapshot:
        with self._lock:
            current = self._get(list_id, "update_grocery_list_items")
            kept = {item.id: item for item in current.items} if keep_user_state else None
            stored = current.model_copy(
                update={"items": _assign_ids(items, list_id, kept), "updated_at": datetime.utcnow()},
                deep=True,
            )
            self._lists[list_id] = stored
            return stored.model_copy(deep=True)

    def unlink_grocery_list(self, list_id: str) -> GroceryListSnapshot:
        with self._lock:
            current = self._get(list_id, "unlink_grocery_list")
            stored = current.model_copy(
                update={"linked_meal_plan_id": None, "updated_at": datetime.utcnow()}, deep=True
            )
            self._lists[list_id] = stored
            return stored.model_copy(deep=True)

    def delete_grocery_list(self, list_id: str) -> None:
        with self._lock:
            self._get(list_id, "delete_grocery_list")
            del self._lists[list_id]

    def all_lists(self) -> list[GroceryListSnapshot]:
        """Every stored list, linked or not."""
        with self._lock:
            return [grocery_list.model_copy(deep=True) for grocery_list in self._lists.values()]


# =============================================================================
# SQLAlchemy implementation
# =============================================================================


def _apply_item(
    row: GroceryListItem, item: GroceryItem, position: int, user_state: bool = True
) -> GroceryListItem:
    row.position = position
    row.name = item.name
    row.category = item.category.value
    row.quantity = item.quantity
    row.amount = item.amount
    row.unit = item.unit
    row.priority = item.priority.value
    if user_state:
        row.is_checked = item.is_checked
        row.notes = item.notes
    return row


class SqlAlchemyGroceryListRepository(GroceryListRepository):
    """
    Repository backed by the grocery_lists / grocery_list_items tables.

    Each call runs in its own transaction. The unique constraint on
    (customer_id, linked_meal_plan_id) is what stops two workers from both
    creating a linked list; the loser gets GroceryListConflictError.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str, duplicate_link: bool = False) -> Iterator[Session]:
        try:
            with self.session_factory() as session, session.begin():
                yield session
        except IntegrityError as e:
            if duplicate_link:
                raise GroceryListConflictError(
                    f"{operation} conflicts with an existing linked grocery list",
                    operation=operation,
                ) from e
            raise PersistenceError(f"{operation} failed: {e}", operation=operation) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"{operation} failed: {e}", operation=operation) from e

    @staticmethod
    def _load(
        session: Session, list_id: str, operation: str, for_update: bool = False
    ) -> GroceryList:
        row = session.get(
            GroceryList,
            list_id,
            options=[selectinload(GroceryList.items)],
            with_for_update=for_update,
        )
        if row is None:
            raise PersistenceError(f"Grocery list {list_id} not found", operation=operation)
        return row

    def find_grocery_list_by_meal_plan(
        self, customer_id: str, meal_plan_id: str
    ) -> GroceryListSnapshot | None:
        with self._transaction("find_grocery_list_by_meal_plan") as session:
            stmt = (
                select(GroceryList)
                .options(selectinload(GroceryList.items))
                .where(
                    GroceryList.customer_id == customer_id,
                    GroceryList.linked_meal_plan_id == meal_plan_id,
                )
            )
            row = session.execute(stmt).scalar_one_or_none()
            return GroceryListSnapshot.model_validate(row) if row else None

    def create_grocery_list(self, grocery_list: GroceryListSnapshot) -> GroceryListSnapshot:
        with self._transaction("create_grocery_list", duplicate_link=True) as session:
            now = datetime.utcnow()
            row = GroceryList(
                id=grocery_list.id or _new_id(),
                customer_id=grocery_list.customer_id,
                linked_meal_plan_id=grocery_list.linked_meal_plan_id,
                name=grocery_list.name,
                created_at=now,
                updated_at=now,
            )
            row.items = [
                _apply_item(GroceryListItem(id=item.id or _new_id()), item, position)
                for position, item in enumerate(grocery_list.items)
            ]
            session.add(row)
            session.flush()
            logger.debug(f"Inserted grocery list {row.id} with {len(row.items)} items")
            return GroceryListSnapshot.model_validate(row)

    def update_grocery_list_items(
        self, list_id: str, items: list[GroceryItem], keep_user_state: bool = False
    ) -> GroceryListSnapshot:
        with self._transaction("update_grocery_list_items") as session:
            row = self._load(session, list_id, "update_grocery_list_items", for_update=True)
            existing = {item_row.id: item_row for item_row in row.items}

            rows = []
            for position, item in enumerate(items):
                item_row = existing.get(item.id) if item.id else None
                if item_row is None:
                    rows.append(_apply_item(GroceryListItem(id=item.id or _new_id()), item, position))
                else:
                    rows.append(
                        _apply_item(item_row, item, position, user_state=not keep_user_state)
                    )

            # Rows left out of the new collection are removed by delete-orphan
            row.items = rows
            row.updated_at = datetime.utcnow()
            session.flush()
            return GroceryListSnapshot.model_validate(row)

    def unlink_grocery_list(self, list_id: str) -> GroceryListSnapshot:
        with self._transaction("unlink_grocery_list") as session:
            row = self._load(session, list_id, "unlink_grocery_list")
            row.linked_meal_plan_id = None
            row.updated_at = datetime.utcnow()
            session.flush()
            return GroceryListSnapshot.model_validate(row)

    def delete_grocery_list(self, list_id: str) -> None:
        with self._transaction("delete_grocery_list") as session:
            row = self._load(session, list_id, "delete_grocery_list")
            session.delete(row)
