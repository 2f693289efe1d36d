"""Food entry log and date-scoped queries."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from gluco_tracker.domain.dosing import round1
from gluco_tracker.domain.entries import DailySummary, FoodEntry

_logger = logging.getLogger(__name__)


class FoodLogRepository(Protocol):
    """Persistence interface for the full entry log."""

    def load_entries(self) -> list[FoodEntry]:
        """Return the stored log, most recent first."""

    def save_entries(self, entries: list[FoodEntry]) -> None:
        """Overwrite the stored log with ``entries``."""


@dataclass
class FoodEntryLog:
    """Append-only, most-recent-first record of committed entries."""

    repository: FoodLogRepository
    _entries: list[FoodEntry] = field(default_factory=list)

    @property
    def entries(self) -> list[FoodEntry]:
        """All entries in canonical order."""
        return list(self._entries)

    def load(self) -> None:
        """Replace in-memory entries with the stored snapshot."""
        self._entries = list(self.repository.load_entries())
        _logger.info("Loaded food log: entries=%s", len(self._entries))

    def append(self, entry: FoodEntry) -> None:
        """Prepend ``entry`` and persist the whole log.

        The in-memory log only changes once the store accepted the snapshot.
        """
        updated = [entry, *self._entries]
        self.repository.save_entries(list(updated))
        self._entries = updated
        _logger.info(
            "Logged entry: id=%s carbs=%s insulin=%s",
            entry.id,
            entry.carbs,
            entry.calculated_insulin,
        )

    def filter_by_date(self, day: date | None, tz: ZoneInfo) -> list[FoodEntry]:
        """Return entries whose local calendar date in ``tz`` is ``day``."""
        if day is None:
            return self.entries
        return [entry for entry in self._entries if _local_day(entry, tz) == day]

    def daily_summary(self, day: date, tz: ZoneInfo) -> DailySummary:
        """Sum carbs and insulin for one local calendar day."""
        entries = self.filter_by_date(day, tz)
        return DailySummary(
            day=day,
            carbs=round1(sum(entry.carbs for entry in entries)),
            insulin=round1(sum(entry.calculated_insulin for entry in entries)),
            entry_count=len(entries),
        )

    def today(self, tz: ZoneInfo) -> DailySummary:
        """Return the summary for the current day in ``tz``."""
        return self.daily_summary(datetime.now(tz=tz).date(), tz)


def _local_day(entry: FoodEntry, tz: ZoneInfo) -> date:
    return entry.timestamp.astimezone(tz).date()
