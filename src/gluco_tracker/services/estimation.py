"""Carbohydrate estimation from food descriptions and photos."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from gluco_tracker.domain.estimation import FoodEstimate

ESTIMATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "food_name": {"type": "string"},
        "carbs_grams": {"type": "number", "minimum": 0.0},
        "portion_size": {"type": "string"},
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 1.0},
        "explanation": {"type": "string"},
    },
    "required": [
        "food_name",
        "carbs_grams",
        "portion_size",
        "confidence",
        "explanation",
    ],
    "additionalProperties": False,
}

SYSTEM_PROMPT = (
    "You are a dietitian for people with diabetes. Determine the total "
    "carbohydrate content in grams. If a nutrition label is visible, read it "
    "and combine the per 100 g values with the visible portion. Otherwise "
    "estimate from the visible portion, or from a standard portion when only "
    "a description is given. In the explanation, say whether values were "
    "read from a label or estimated."
)

_logger = logging.getLogger(__name__)


class EstimationError(RuntimeError):
    """Raised when the estimator fails or returns an unusable result."""


class EstimationClient(Protocol):
    """Interface for an LLM returning structured estimates."""

    async def estimate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        prompt: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return the raw structured estimate."""


@dataclass
class EstimationService:
    """Builds estimation prompts and validates the returned figures."""

    client: EstimationClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def estimate_from_description(self, description: str) -> FoodEstimate:
        """Estimate carbohydrates for a free-text food description."""
        cleaned = description.strip()
        if not cleaned:
            raise ValueError("Food description is empty")
        return await self._estimate(
            prompt=f"Estimate the carbohydrates for: {cleaned}",
            image_data_url=None,
        )

    async def estimate_from_image(self, image_bytes: bytes) -> FoodEstimate:
        """Estimate carbohydrates for a meal photo or nutrition label."""
        if not image_bytes:
            raise ValueError("Image is empty")
        return await self._estimate(
            prompt=(
                "Determine the carbohydrates. "
                "First check whether a nutrition label is visible."
            ),
            image_data_url=_to_data_url(image_bytes),
        )

    async def _estimate(
        self, *, prompt: str, image_data_url: str | None
    ) -> FoodEstimate:
        try:
            raw = await self.client.estimate(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                instructions=SYSTEM_PROMPT,
                prompt=prompt,
                schema=ESTIMATE_SCHEMA,
                image_data_url=image_data_url,
            )
        except EstimationError:
            raise
        except Exception as exc:
            raise EstimationError("Carbohydrate estimation failed") from exc
        try:
            estimate = FoodEstimate.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Rejected malformed estimate: %s", exc)
            raise EstimationError("Estimator returned malformed figures") from exc
        _logger.info(
            "Estimated %s: carbs=%s confidence=%s",
            estimate.food_name,
            estimate.carbs_grams,
            estimate.confidence,
        )
        return estimate


def _to_data_url(image_bytes: bytes) -> str:
    """Encode image bytes as a base64 data URL."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"
