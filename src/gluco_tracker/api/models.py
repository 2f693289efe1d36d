"""Request and response models for the HTTP API."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from gluco_tracker.domain.dosing import DoseBreakdown
from gluco_tracker.domain.entries import DailySummary, FoodEntry, MealLineItem
from gluco_tracker.domain.profile import DosingProfile, GlucoseUnit
from gluco_tracker.services.session import PortionResult


class ProfilePayload(BaseModel):
    """Dosing profile as exchanged over HTTP."""

    carb_ratio: float
    sensitivity_factor: float
    target_glucose: float
    glucose_unit: GlucoseUnit = GlucoseUnit.MG_DL

    @classmethod
    def from_domain(cls, profile: DosingProfile) -> "ProfilePayload":
        return cls(
            carb_ratio=profile.carb_ratio,
            sensitivity_factor=profile.sensitivity_factor,
            target_glucose=profile.target_glucose,
            glucose_unit=profile.glucose_unit,
        )

    def to_domain(self) -> DosingProfile:
        return DosingProfile(
            carb_ratio=self.carb_ratio,
            sensitivity_factor=self.sensitivity_factor,
            target_glucose=self.target_glucose,
            glucose_unit=self.glucose_unit,
        )


class DoseRequest(BaseModel):
    carbs: float = Field(ge=0, allow_inf_nan=False)
    current_bg: float | None = Field(default=None, allow_inf_nan=False)


class DoseResponse(BaseModel):
    carb_dose: float
    correction_dose: float
    total_dose: float

    @classmethod
    def from_domain(cls, dose: DoseBreakdown) -> "DoseResponse":
        return cls(
            carb_dose=dose.carb_dose,
            correction_dose=dose.correction_dose,
            total_dose=dose.total_dose,
        )


class PortionRequest(BaseModel):
    """Portion fields; blank values take their neutral default."""

    name: str = ""
    carbs_per_unit: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    reference_unit: float | None = Field(default=None, allow_inf_nan=False)
    amount_consumed: float | None = Field(default=None, ge=0, allow_inf_nan=False)


class PortionResponse(BaseModel):
    carbs: float
    insulin: float
    reference_unit: float

    @classmethod
    def from_domain(cls, portion: PortionResult) -> "PortionResponse":
        return cls(
            carbs=portion.carbs,
            insulin=portion.insulin,
            reference_unit=portion.quantity.reference_unit,
        )


class ManualEntryRequest(BaseModel):
    name: str = ""
    carbs: float = Field(ge=0, allow_inf_nan=False)
    current_bg: float | None = Field(default=None, allow_inf_nan=False)
    description: str = ""


class ConfirmEstimateRequest(BaseModel):
    current_bg: float | None = Field(default=None, allow_inf_nan=False)


class CommitMealRequest(BaseModel):
    current_bg: float | None = Field(default=None, allow_inf_nan=False)


class DescriptionEstimateRequest(BaseModel):
    description: str = Field(min_length=1)


class FoodEntryResponse(BaseModel):
    id: str
    timestamp: datetime
    food_name: str
    carbs: float
    calculated_insulin: float
    current_bg: float | None
    portion_description: str

    @classmethod
    def from_domain(cls, entry: FoodEntry) -> "FoodEntryResponse":
        return cls(
            id=entry.id,
            timestamp=entry.timestamp,
            food_name=entry.food_name,
            carbs=entry.carbs,
            calculated_insulin=entry.calculated_insulin,
            current_bg=entry.current_bg,
            portion_description=entry.portion_description,
        )


class MealItemResponse(BaseModel):
    id: str
    name: str
    carbs: float
    insulin: float

    @classmethod
    def from_domain(cls, item: MealLineItem) -> "MealItemResponse":
        return cls(id=item.id, name=item.name, carbs=item.carbs, insulin=item.insulin)


class MealResponse(BaseModel):
    items: list[MealItemResponse]
    total_carbs: float
    total_insulin: float


class DailySummaryResponse(BaseModel):
    day: date
    carbs: float
    insulin: float
    entry_count: int

    @classmethod
    def from_domain(cls, summary: DailySummary) -> "DailySummaryResponse":
        return cls(
            day=summary.day,
            carbs=summary.carbs,
            insulin=summary.insulin,
            entry_count=summary.entry_count,
        )
