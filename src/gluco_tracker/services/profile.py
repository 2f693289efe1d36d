"""Dosing profile service."""

import logging
from dataclasses import dataclass
from typing import Protocol

from gluco_tracker.domain.profile import DosingProfile, InvalidProfileError

_logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Persistence interface for the dosing profile."""

    def load_profile(self) -> DosingProfile | None:
        """Return the stored profile, if any."""

    def save_profile(self, profile: DosingProfile) -> None:
        """Overwrite the stored profile."""


@dataclass
class ProfileService:
    """Loads, validates and persists the dosing profile."""

    repository: ProfileRepository

    def load_profile(self) -> DosingProfile:
        """Return the stored profile, or the defaults on first run."""
        try:
            stored = self.repository.load_profile()
            if stored is None:
                _logger.info("No stored profile, using defaults")
                return DosingProfile()
            return stored.validate()
        except InvalidProfileError as exc:
            _logger.warning("Stored profile rejected, using defaults: %s", exc)
            return DosingProfile()

    def update_profile(self, profile: DosingProfile) -> DosingProfile:
        """Validate and persist a replacement profile."""
        profile.validate()
        self.repository.save_profile(profile)
        _logger.info(
            "Profile updated: carb_ratio=%s sensitivity_factor=%s target=%s",
            profile.carb_ratio,
            profile.sensitivity_factor,
            profile.target_glucose,
        )
        return profile
