"""Composite meal accumulator."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from gluco_tracker.domain.dosing import round1
from gluco_tracker.domain.entries import (
    UNKNOWN_ITEM_NAME,
    FoodEntry,
    MealLineItem,
    entry_id_for,
)


def _new_item_id() -> str:
    return uuid4().hex


@dataclass
class MealBuilder:
    """Holds the line items of one meal until it is committed.

    Items keep their insertion order; commit turns them into a single
    FoodEntry and empties the builder.
    """

    id_factory: Callable[[], str] = _new_item_id
    _items: list[MealLineItem] = field(default_factory=list)

    @property
    def items(self) -> list[MealLineItem]:
        """Current items in insertion order."""
        return list(self._items)

    def add_item(self, name: str, carbs: float, insulin: float) -> MealLineItem | None:
        """Append an item; items without carbohydrates are ignored."""
        if carbs <= 0:
            return None
        item = MealLineItem(
            id=self.id_factory(),
            name=name.strip() or UNKNOWN_ITEM_NAME,
            carbs=carbs,
            insulin=insulin,
        )
        self._items.append(item)
        return item

    def remove_item(self, item_id: str) -> bool:
        """Drop the item with ``item_id``; unknown ids are a no-op."""
        remaining = [item for item in self._items if item.id != item_id]
        removed = len(remaining) != len(self._items)
        self._items = remaining
        return removed

    def totals(self) -> tuple[float, float]:
        """Return summed carbs and insulin of the current items."""
        carbs = sum(item.carbs for item in self._items)
        insulin = sum(item.insulin for item in self._items)
        return carbs, insulin

    def build_entry(
        self, now: datetime | None = None, current_bg: float | None = None
    ) -> FoodEntry | None:
        """Aggregate the items into one entry without consuming them."""
        if not self._items:
            return None
        timestamp = now or datetime.now(tz=UTC)
        carbs, insulin = self.totals()
        return FoodEntry(
            id=entry_id_for(timestamp),
            timestamp=timestamp,
            food_name=", ".join(item.name for item in self._items),
            carbs=round1(carbs),
            calculated_insulin=round1(insulin),
            portion_description=f"Composite meal ({len(self._items)} items)",
            current_bg=current_bg,
        )

    def clear(self) -> None:
        self._items = []

    def commit(
        self, now: datetime | None = None, current_bg: float | None = None
    ) -> FoodEntry | None:
        """Aggregate the items into one entry, or return None when empty."""
        entry = self.build_entry(now=now, current_bg=current_bg)
        if entry is not None:
            self.clear()
        return entry
