"""SQLAlchemy database models."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grocerysync.database import Base


class GroceryList(Base):
    """Grocery list, optionally linked to the meal plan it was generated from."""

    __tablename__ = "grocery_lists"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    customer_id: Mapped[str] = mapped_column(String, nullable=False)
    # NULL once the meal plan is deleted (orphaned) or for manually created lists
    linked_meal_plan_id: Mapped[str | None] = mapped_column(String, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    items: Mapped[list["GroceryListItem"]] = relationship(
        "GroceryListItem",
        back_populates="grocery_list",
        cascade="all, delete-orphan",
        order_by="GroceryListItem.position",
    )

    __table_args__ = (
        # NULLs compare distinct, so any number of orphaned lists may coexist
        UniqueConstraint(
            "customer_id", "linked_meal_plan_id", name="uq_grocery_lists_customer_meal_plan"
        ),
        Index("idx_grocery_lists_customer_id", "customer_id"),
    )


class GroceryListItem(Base):
    """Single line of a grocery list."""

    __tablename__ = "grocery_list_items"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    grocery_list_id: Mapped[str] = mapped_column(
        String, ForeignKey("grocery_lists.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)  # produce, meat, ...
    quantity: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    is_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    grocery_list: Mapped["GroceryList"] = relationship("GroceryList", back_populates="items")

    __table_args__ = (Index("idx_grocery_list_items_list_id", "grocery_list_id"),)
