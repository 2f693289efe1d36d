"""Supabase repository for the dosing profile."""

from dataclasses import dataclass

from gluco_tracker.adapters.supabase_state_store import SupabaseStateStore
from gluco_tracker.domain.profile import (
    DosingProfile,
    GlucoseUnit,
    InvalidProfileError,
)
from gluco_tracker.services.profile import ProfileRepository

PROFILE_KEY = "gluco_settings"


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Stores the profile as one JSON document."""

    store: SupabaseStateStore
    key: str = PROFILE_KEY

    def load_profile(self) -> DosingProfile | None:
        """Return the stored profile, if any."""
        raw = self.store.get(self.key)
        if not isinstance(raw, dict):
            return None
        return profile_from_document(raw)

    def save_profile(self, profile: DosingProfile) -> None:
        """Overwrite the stored profile."""
        self.store.put(self.key, profile_to_document(profile))


def profile_to_document(profile: DosingProfile) -> dict[str, object]:
    return {
        "icr": profile.carb_ratio,
        "isf": profile.sensitivity_factor,
        "targetBg": profile.target_glucose,
        "unit": profile.glucose_unit.value,
    }


def profile_from_document(raw: dict[str, object]) -> DosingProfile:
    """Map a stored document, raising InvalidProfileError on malformed fields."""
    defaults = DosingProfile()
    return DosingProfile(
        carb_ratio=_number(raw, "icr", defaults.carb_ratio),
        sensitivity_factor=_number(raw, "isf", defaults.sensitivity_factor),
        target_glucose=_number(raw, "targetBg", defaults.target_glucose),
        glucose_unit=_unit(raw.get("unit", defaults.glucose_unit.value)),
    )


def _number(raw: dict[str, object], key: str, default: float) -> float:
    value = raw.get(key, default)
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidProfileError(key, value, "must be numeric") from exc


def _unit(value: object) -> GlucoseUnit:
    try:
        return GlucoseUnit(value)
    except ValueError as exc:
        raise InvalidProfileError("unit", value, "is not a known unit") from exc
