"""Insulin dose and portion arithmetic.

All functions here are pure. Doses are left unrounded until
``compute_total_dose`` so per-item rounding error does not compound.
"""

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from gluco_tracker.domain.profile import DosingProfile

DEFAULT_REFERENCE_UNIT = 1.0
# Floats at or above this magnitude carry no fractional digits.
_INTEGRAL_MAGNITUDE = 2.0**52

_logger = logging.getLogger(__name__)


def round1(value: float) -> float:
    """Round to one decimal place, halves away from zero.

    Non-finite values and values too large to hold a fraction come back
    unchanged.
    """
    if not math.isfinite(value) or abs(value) >= _INTEGRAL_MAGNITUDE:
        return value
    scaled = Decimal(repr(value * 10)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return float(scaled) / 10


def compute_carb_dose(carbs: float, profile: DosingProfile) -> float:
    """Units needed to cover ``carbs`` grams."""
    return carbs / profile.carb_ratio


def compute_correction_dose(
    current_glucose: float | None, profile: DosingProfile
) -> float:
    """Units needed to bring ``current_glucose`` down to target.

    Readings at or below target never produce a negative correction.
    """
    if current_glucose is None or current_glucose <= profile.target_glucose:
        return 0.0
    return (current_glucose - profile.target_glucose) / profile.sensitivity_factor


def compute_total_dose(
    carbs: float, current_glucose: float | None, profile: DosingProfile
) -> float:
    """Carb dose plus correction, rounded once to one decimal."""
    return round1(
        compute_carb_dose(carbs, profile)
        + compute_correction_dose(current_glucose, profile)
    )


@dataclass(frozen=True)
class NutritionQuantity:
    """Carbohydrate density and the amount actually eaten."""

    carbs_per_unit: float
    reference_unit: float
    amount_consumed: float

    @classmethod
    def from_input(
        cls,
        carbs_per_unit: float | None,
        reference_unit: float | None,
        amount_consumed: float | None,
    ) -> "NutritionQuantity":
        """Build a quantity, treating blank fields as their neutral value."""
        reference = reference_unit or DEFAULT_REFERENCE_UNIT
        if not math.isfinite(reference) or reference <= 0:
            _logger.debug(
                "Degenerate reference unit %r, using %s",
                reference_unit,
                DEFAULT_REFERENCE_UNIT,
            )
            reference = DEFAULT_REFERENCE_UNIT
        return cls(
            carbs_per_unit=carbs_per_unit or 0.0,
            reference_unit=reference,
            amount_consumed=amount_consumed or 0.0,
        )

    @property
    def raw_carbs(self) -> float:
        """Unrounded carbohydrate grams for the consumed amount."""
        return self.carbs_per_unit / self.reference_unit * self.amount_consumed

    @property
    def total_carbs(self) -> float:
        """Carbohydrate grams rounded to one decimal."""
        return round1(self.raw_carbs)


def scale_by_portion(
    carbs_per_unit: float | None,
    reference_unit: float | None,
    amount_consumed: float | None,
) -> float:
    """Scale a per-reference carbohydrate figure to the consumed amount."""
    return NutritionQuantity.from_input(
        carbs_per_unit, reference_unit, amount_consumed
    ).total_carbs


@dataclass(frozen=True)
class DoseBreakdown:
    """Components of a recommended dose."""

    carb_dose: float
    correction_dose: float
    total_dose: float


def dose_breakdown(
    carbs: float, current_glucose: float | None, profile: DosingProfile
) -> DoseBreakdown:
    """Return the carb and correction parts alongside the rounded total."""
    return DoseBreakdown(
        carb_dose=compute_carb_dose(carbs, profile),
        correction_dose=compute_correction_dose(current_glucose, profile),
        total_dose=compute_total_dose(carbs, current_glucose, profile),
    )
