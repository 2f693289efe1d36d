"""Domain models for meal composition and the food log."""

import math
from dataclasses import dataclass
from datetime import date, datetime

UNKNOWN_ITEM_NAME = "Unknown item"


class InvalidNutritionValueError(ValueError):
    """Raised when an externally supplied nutrition figure is unusable."""


def ensure_carbs(value: float, *, source: str = "input") -> float:
    """Reject negative or non-finite carbohydrate values."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidNutritionValueError(f"{source}: carbs must be a number")
    if not math.isfinite(value) or value < 0:
        raise InvalidNutritionValueError(
            f"{source}: carbs must be a finite number >= 0, got {value!r}"
        )
    return float(value)


def ensure_finite(value: float, *, source: str) -> float:
    """Reject computed figures that overflowed."""
    if not math.isfinite(value):
        raise InvalidNutritionValueError(f"{source} is out of range, got {value!r}")
    return value


@dataclass(frozen=True)
class MealLineItem:
    """One food in an in-progress composite meal."""

    id: str
    name: str
    carbs: float
    insulin: float


@dataclass(frozen=True)
class FoodEntry:
    """Committed log entry."""

    id: str
    timestamp: datetime
    food_name: str
    carbs: float
    calculated_insulin: float
    portion_description: str
    current_bg: float | None = None


@dataclass(frozen=True)
class DailySummary:
    """Totals for one local calendar day."""

    day: date
    carbs: float
    insulin: float
    entry_count: int


def entry_id_for(timestamp: datetime) -> str:
    """Derive a sortable entry id from the commit instant."""
    return str(int(timestamp.timestamp() * 1000))
