"""Supabase repository for the food entry log."""

from dataclasses import dataclass
from datetime import UTC, datetime

from gluco_tracker.adapters.supabase_state_store import SupabaseStateStore
from gluco_tracker.domain.entries import FoodEntry
from gluco_tracker.services.food_log import FoodLogRepository

ENTRIES_KEY = "gluco_entries"


@dataclass
class SupabaseFoodLogRepository(FoodLogRepository):
    """Stores the whole log as one JSON array, most recent first."""

    store: SupabaseStateStore
    key: str = ENTRIES_KEY

    def load_entries(self) -> list[FoodEntry]:
        """Return the stored entries."""
        raw = self.store.get(self.key)
        if not isinstance(raw, list):
            return []
        return [_parse_entry(row) for row in raw if isinstance(row, dict)]

    def save_entries(self, entries: list[FoodEntry]) -> None:
        """Overwrite the stored entries."""
        self.store.put(self.key, [_entry_document(entry) for entry in entries])


def _entry_document(entry: FoodEntry) -> dict[str, object]:
    document: dict[str, object] = {
        "id": entry.id,
        "timestamp": int(entry.timestamp.timestamp() * 1000),
        "foodName": entry.food_name,
        "carbs": entry.carbs,
        "calculatedInsulin": entry.calculated_insulin,
        "portionDescription": entry.portion_description,
    }
    if entry.current_bg is not None:
        document["currentBg"] = entry.current_bg
    return document


def _parse_entry(row: dict[str, object]) -> FoodEntry:
    current_bg = row.get("currentBg")
    return FoodEntry(
        id=str(row["id"]),
        timestamp=datetime.fromtimestamp(int(row["timestamp"]) / 1000, tz=UTC),
        food_name=str(row.get("foodName", "")),
        carbs=float(row.get("carbs", 0.0)),
        calculated_insulin=float(row.get("calculatedInsulin", 0.0)),
        portion_description=str(row.get("portionDescription", "")),
        current_bg=float(current_bg) if current_bg is not None else None,
    )
