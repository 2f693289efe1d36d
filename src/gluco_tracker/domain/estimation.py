"""Models for nutrition estimation and product lookup results."""

from pydantic import BaseModel, Field


class FoodEstimate(BaseModel):
    """Estimated total carbohydrates for a described or photographed food."""

    food_name: str
    carbs_grams: float = Field(ge=0.0, allow_inf_nan=False)
    portion_size: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    explanation: str = ""


class ProductMatch(BaseModel):
    """Candidate product with its carbohydrate density."""

    name: str
    carbs_per_100g: float = Field(ge=0.0, allow_inf_nan=False)
    brand: str | None = None

    @property
    def display_name(self) -> str:
        """Name prefixed with the brand when one is known."""
        if self.brand:
            return f"{self.brand} {self.name}"
        return self.name
