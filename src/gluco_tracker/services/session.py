"""Session context owning the profile, the log and the meal in progress."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from gluco_tracker.domain.dosing import (
    DoseBreakdown,
    NutritionQuantity,
    compute_total_dose,
    dose_breakdown,
    round1,
)
from gluco_tracker.domain.entries import (
    UNKNOWN_ITEM_NAME,
    DailySummary,
    FoodEntry,
    MealLineItem,
    ensure_carbs,
    ensure_finite,
    entry_id_for,
)
from gluco_tracker.domain.estimation import FoodEstimate
from gluco_tracker.domain.profile import DosingProfile
from gluco_tracker.services.estimation import EstimationService
from gluco_tracker.services.food_log import FoodEntryLog
from gluco_tracker.services.meal_builder import MealBuilder
from gluco_tracker.services.profile import ProfileService

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortionResult:
    """Scaled carbohydrates and the carb-only dose for one portion."""

    quantity: NutritionQuantity
    carbs: float
    insulin: float


@dataclass
class _PendingEstimate:
    ticket: int
    estimate: FoodEstimate | None = None


@dataclass
class DosingSession:
    """Single-user session tying calculations to the persisted state."""

    profile_service: ProfileService
    food_log: FoodEntryLog
    estimation_service: EstimationService
    timezone: ZoneInfo = field(default_factory=lambda: ZoneInfo("UTC"))
    meal: MealBuilder = field(default_factory=MealBuilder)
    profile: DosingProfile = field(default_factory=DosingProfile)
    _pending: dict[str, _PendingEstimate] = field(default_factory=dict)
    _next_ticket: int = 0

    def start(self) -> None:
        """Load the profile and the log from the store."""
        self.profile = self.profile_service.load_profile()
        self.food_log.load()

    def update_profile(self, profile: DosingProfile) -> DosingProfile:
        """Replace the profile; invalid profiles leave the current one intact."""
        self.profile = self.profile_service.update_profile(profile)
        return self.profile

    def calculate_dose(
        self, carbs: float, current_bg: float | None = None
    ) -> DoseBreakdown:
        """Dose for ``carbs`` grams with an optional glucose correction."""
        ensure_carbs(carbs)
        dose = dose_breakdown(carbs, current_bg, self.profile)
        ensure_finite(dose.total_dose, source="dose")
        return dose

    def calculate_portion(
        self,
        carbs_per_unit: float | None,
        reference_unit: float | None,
        amount_consumed: float | None,
    ) -> PortionResult:
        """Scale a portion and compute its carb-only dose."""
        quantity = NutritionQuantity.from_input(
            carbs_per_unit, reference_unit, amount_consumed
        )
        ensure_carbs(quantity.carbs_per_unit, source="carbs_per_unit")
        ensure_carbs(quantity.amount_consumed, source="amount_consumed")
        return PortionResult(
            quantity=quantity,
            carbs=ensure_finite(quantity.total_carbs, source="carbs"),
            insulin=ensure_finite(
                round1(quantity.raw_carbs / self.profile.carb_ratio), source="dose"
            ),
        )

    def log_quick(
        self,
        name: str,
        carbs_per_unit: float | None,
        reference_unit: float | None,
        amount_consumed: float | None,
        now: datetime | None = None,
    ) -> FoodEntry | None:
        """Log one portion immediately; empty portions are ignored."""
        portion = self.calculate_portion(
            carbs_per_unit, reference_unit, amount_consumed
        )
        if portion.carbs <= 0:
            return None
        quantity = portion.quantity
        description = (
            f"{_fmt(quantity.amount_consumed)} units of "
            f"{_fmt(quantity.carbs_per_unit)}g/{_fmt(quantity.reference_unit)}g"
        )
        return self._append(
            name=name,
            carbs=portion.carbs,
            insulin=portion.insulin,
            description=description,
            current_bg=None,
            now=now,
        )

    def log_manual(  # noqa: PLR0913
        self,
        name: str,
        carbs: float,
        current_bg: float | None = None,
        description: str = "",
        now: datetime | None = None,
    ) -> FoodEntry:
        """Log a single food with known total carbohydrates."""
        carbs = ensure_carbs(carbs)
        return self._append(
            name=name,
            carbs=round1(carbs),
            insulin=compute_total_dose(carbs, current_bg, self.profile),
            description=description or "Manual entry",
            current_bg=current_bg,
            now=now,
        )

    def add_to_meal(
        self,
        name: str,
        carbs_per_unit: float | None,
        reference_unit: float | None,
        amount_consumed: float | None,
    ) -> MealLineItem | None:
        """Add a scaled portion to the meal in progress."""
        portion = self.calculate_portion(
            carbs_per_unit, reference_unit, amount_consumed
        )
        return self.meal.add_item(name, portion.carbs, portion.insulin)

    def remove_from_meal(self, item_id: str) -> bool:
        """Remove a meal item by id."""
        return self.meal.remove_item(item_id)

    def commit_meal(
        self, now: datetime | None = None, current_bg: float | None = None
    ) -> FoodEntry | None:
        """Commit the meal in progress to the log; None when it is empty."""
        entry = self.meal.build_entry(now=now, current_bg=current_bg)
        if entry is None:
            _logger.info("Meal commit skipped: no items")
            return None
        ensure_finite(entry.carbs, source="carbs")
        ensure_finite(entry.calculated_insulin, source="dose")
        self.food_log.append(entry)
        self.meal.clear()
        return entry

    def begin_estimate(self, field_name: str) -> int:
        """Register a new estimation request and return its ticket.

        An estimate already applied to ``field_name`` stays visible until the
        new request resolves.
        """
        self._next_ticket += 1
        pending = self._pending.get(field_name)
        if pending is None:
            self._pending[field_name] = _PendingEstimate(ticket=self._next_ticket)
        else:
            pending.ticket = self._next_ticket
        return self._next_ticket

    def resolve_estimate(
        self, field_name: str, ticket: int, estimate: FoodEstimate
    ) -> bool:
        """Apply ``estimate`` unless a newer request superseded ``ticket``."""
        pending = self._pending.get(field_name)
        if pending is None or pending.ticket != ticket:
            _logger.info(
                "Dropped superseded estimate: field=%s ticket=%s", field_name, ticket
            )
            return False
        ensure_carbs(estimate.carbs_grams, source="estimate")
        pending.estimate = estimate
        return True

    def pending_estimate(self, field_name: str) -> FoodEstimate | None:
        """Return the applied, not yet logged estimate for ``field_name``."""
        pending = self._pending.get(field_name)
        return pending.estimate if pending else None

    def discard_estimate(self, field_name: str) -> None:
        """Forget any pending estimate for ``field_name``."""
        self._pending.pop(field_name, None)

    async def estimate_description(
        self, field_name: str, description: str
    ) -> FoodEstimate | None:
        """Estimate a description; None when a newer request won."""
        ticket = self.begin_estimate(field_name)
        estimate = await self.estimation_service.estimate_from_description(description)
        if not self.resolve_estimate(field_name, ticket, estimate):
            return None
        return estimate

    async def estimate_image(
        self, field_name: str, image_bytes: bytes
    ) -> FoodEstimate | None:
        """Estimate a photo; None when a newer request won."""
        ticket = self.begin_estimate(field_name)
        estimate = await self.estimation_service.estimate_from_image(image_bytes)
        if not self.resolve_estimate(field_name, ticket, estimate):
            return None
        return estimate

    def confirm_estimate(
        self,
        field_name: str,
        current_bg: float | None = None,
        now: datetime | None = None,
    ) -> FoodEntry | None:
        """Log the pending estimate with a glucose-corrected dose."""
        estimate = self.pending_estimate(field_name)
        if estimate is None:
            return None
        entry = self._append(
            name=estimate.food_name,
            carbs=round1(estimate.carbs_grams),
            insulin=compute_total_dose(
                estimate.carbs_grams, current_bg, self.profile
            ),
            description=estimate.explanation,
            current_bg=current_bg,
            now=now,
        )
        self.discard_estimate(field_name)
        return entry

    def entries(self, day: date | None = None) -> list[FoodEntry]:
        """Log entries, optionally restricted to one local day."""
        return self.food_log.filter_by_date(day, self.timezone)

    def today_summary(self) -> DailySummary:
        """Totals for the current local day."""
        return self.food_log.today(self.timezone)

    def _append(  # noqa: PLR0913
        self,
        *,
        name: str,
        carbs: float,
        insulin: float,
        description: str,
        current_bg: float | None,
        now: datetime | None,
    ) -> FoodEntry:
        timestamp = now or datetime.now(tz=UTC)
        entry = FoodEntry(
            id=entry_id_for(timestamp),
            timestamp=timestamp,
            food_name=name.strip() or UNKNOWN_ITEM_NAME,
            carbs=ensure_finite(carbs, source="carbs"),
            calculated_insulin=ensure_finite(insulin, source="dose"),
            portion_description=description,
            current_bg=current_bg,
        )
        self.food_log.append(entry)
        return entry


def _fmt(value: float) -> str:
    return f"{value:g}"
