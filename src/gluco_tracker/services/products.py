"""Product lookup backed by USDA FoodData Central."""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gluco_tracker.adapters.fdc_client import FdcClient
from gluco_tracker.domain.estimation import ProductMatch
from gluco_tracker.services.cache import SearchCache

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

CARBOHYDRATE_NUTRIENT_ID = 1005
MIN_QUERY_LENGTH = 2

_logger = logging.getLogger(__name__)


class ProductLookupError(RuntimeError):
    """Raised when the product catalog cannot be reached."""


@dataclass
class ProductCatalogService:
    """Searches products and reports carbohydrates per 100 g."""

    fdc_client: FdcClient
    cache: SearchCache
    default_limit: int = 5
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int | None = None) -> list[ProductMatch]:
        """Return up to ``limit`` products ranked by catalog relevance."""
        cleaned = query.strip()
        if len(cleaned) < MIN_QUERY_LENGTH:
            return []
        resolved_limit = limit or self.default_limit
        cached = self.cache.get(cleaned, resolved_limit)
        if cached is not None:
            return cached

        payload = await self._call_with_retry(
            lambda: self.fdc_client.search_foods(cleaned, page_size=resolved_limit),
            action="search",
        )
        matches: list[ProductMatch] = []
        for food in payload.get("foods", []):
            match = _to_match(food)
            if match is not None:
                matches.append(match)
        matches = matches[:resolved_limit]
        self.cache.put(cleaned, resolved_limit, matches)
        _logger.info("Product search: query=%s results=%s", cleaned, len(matches))
        return matches

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Product %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise ProductLookupError(f"Product {action} failed") from exc
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def _to_match(food: dict[str, object]) -> ProductMatch | None:
    """Map an FDC search hit, skipping hits without a usable carb value."""
    carbs = _carbs_per_100g(food.get("foodNutrients") or [])
    if carbs is None:
        return None
    brand = food.get("brandName") or food.get("brandOwner")
    return ProductMatch(
        name=str(food.get("description", "")),
        carbs_per_100g=carbs,
        brand=str(brand) if brand else None,
    )


def _carbs_per_100g(food_nutrients: list[dict[str, object]]) -> float | None:
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient.get("nutrientId") or nutrient_info.get("id")
        if nutrient_id != CARBOHYDRATE_NUTRIENT_ID:
            continue
        value = nutrient.get("value", nutrient.get("amount"))
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        if not math.isfinite(value) or value < 0:
            return None
        return float(value)
    return None
