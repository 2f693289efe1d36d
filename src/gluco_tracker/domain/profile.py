"""Dosing profile domain model."""

import math
from dataclasses import dataclass
from enum import StrEnum


class GlucoseUnit(StrEnum):
    """Display unit for glucose readings."""

    MG_DL = "mg/dL"
    MMOL_L = "mmol/L"


class InvalidProfileError(ValueError):
    """Raised when a dosing profile has an unusable field."""

    def __init__(
        self, field_name: str, value: object, reason: str = "must be a positive number"
    ) -> None:
        super().__init__(f"{field_name} {reason}, got {value!r}")
        self.field_name = field_name
        self.value = value


@dataclass(frozen=True)
class DosingProfile:
    """Fixed ratios used by every dose calculation.

    ``glucose_unit`` is presentational and never changes the arithmetic.
    """

    carb_ratio: float = 10.0
    sensitivity_factor: float = 50.0
    target_glucose: float = 100.0
    glucose_unit: GlucoseUnit = GlucoseUnit.MG_DL

    def validate(self) -> "DosingProfile":
        """Return the profile or raise InvalidProfileError."""
        for field_name in ("carb_ratio", "sensitivity_factor", "target_glucose"):
            value = getattr(self, field_name)
            if not _is_positive_finite(value):
                raise InvalidProfileError(field_name, value)
        return self


def _is_positive_finite(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value) and value > 0
