"""Dose, meal, log and lookup endpoints."""

from __future__ import annotations

import logging
from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from gluco_tracker.api.models import (
    CommitMealRequest,
    ConfirmEstimateRequest,
    DailySummaryResponse,
    DescriptionEstimateRequest,
    DoseRequest,
    DoseResponse,
    FoodEntryResponse,
    ManualEntryRequest,
    MealItemResponse,
    MealResponse,
    PortionRequest,
    PortionResponse,
    ProfilePayload,
)
from gluco_tracker.domain.estimation import FoodEstimate, ProductMatch
from gluco_tracker.domain.profile import InvalidProfileError
from gluco_tracker.services.estimation import EstimationError
from gluco_tracker.services.products import ProductLookupError

if TYPE_CHECKING:
    from gluco_tracker.containers import AppContainer
    from gluco_tracker.services.session import DosingSession

_logger = logging.getLogger(__name__)


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


router = APIRouter(dependencies=[Depends(require_token)])


def _session(request: Request) -> DosingSession:
    container: AppContainer = request.app.state.container
    return container.session


def _meal_response(session: DosingSession) -> MealResponse:
    carbs, insulin = session.meal.totals()
    return MealResponse(
        items=[MealItemResponse.from_domain(item) for item in session.meal.items],
        total_carbs=carbs,
        total_insulin=insulin,
    )


def _unprocessable(exc: ValueError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
    )


@router.get("/profile")
async def get_profile(request: Request) -> ProfilePayload:
    """Return the active dosing profile."""
    return ProfilePayload.from_domain(_session(request).profile)


@router.put("/profile")
async def put_profile(payload: ProfilePayload, request: Request) -> ProfilePayload:
    """Replace the dosing profile."""
    try:
        profile = _session(request).update_profile(payload.to_domain())
    except InvalidProfileError as exc:
        raise _unprocessable(exc) from exc
    return ProfilePayload.from_domain(profile)


@router.post("/dose")
async def calculate_dose(payload: DoseRequest, request: Request) -> DoseResponse:
    """Compute a dose for known carbohydrates."""
    dose = _session(request).calculate_dose(payload.carbs, payload.current_bg)
    return DoseResponse.from_domain(dose)


@router.post("/portion")
async def calculate_portion(
    payload: PortionRequest, request: Request
) -> PortionResponse:
    """Scale a portion and compute its carb dose."""
    portion = _session(request).calculate_portion(
        payload.carbs_per_unit, payload.reference_unit, payload.amount_consumed
    )
    return PortionResponse.from_domain(portion)


@router.get("/entries")
async def list_entries(
    request: Request, day: date | None = None
) -> list[FoodEntryResponse]:
    """Return the log, optionally for one local calendar day."""
    return [
        FoodEntryResponse.from_domain(entry)
        for entry in _session(request).entries(day)
    ]


@router.post("/entries/quick", status_code=status.HTTP_201_CREATED)
async def log_quick(payload: PortionRequest, request: Request) -> FoodEntryResponse:
    """Log a single portion immediately."""
    entry = _session(request).log_quick(
        payload.name,
        payload.carbs_per_unit,
        payload.reference_unit,
        payload.amount_consumed,
    )
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Portion has no carbohydrates",
        )
    return FoodEntryResponse.from_domain(entry)


@router.post("/entries/manual", status_code=status.HTTP_201_CREATED)
async def log_manual(
    payload: ManualEntryRequest, request: Request
) -> FoodEntryResponse:
    """Log a single food with known carbohydrates."""
    entry = _session(request).log_manual(
        payload.name,
        payload.carbs,
        current_bg=payload.current_bg,
        description=payload.description,
    )
    return FoodEntryResponse.from_domain(entry)


@router.get("/summary/today")
async def today_summary(request: Request) -> DailySummaryResponse:
    """Return today's totals in the configured timezone."""
    return DailySummaryResponse.from_domain(_session(request).today_summary())


@router.get("/meal")
async def get_meal(request: Request) -> MealResponse:
    """Return the meal in progress."""
    return _meal_response(_session(request))


@router.post("/meal/items")
async def add_meal_item(payload: PortionRequest, request: Request) -> MealResponse:
    """Add a portion to the meal in progress."""
    session = _session(request)
    item = session.add_to_meal(
        payload.name,
        payload.carbs_per_unit,
        payload.reference_unit,
        payload.amount_consumed,
    )
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Portion has no carbohydrates",
        )
    return _meal_response(session)


@router.delete("/meal/items/{item_id}")
async def remove_meal_item(item_id: str, request: Request) -> MealResponse:
    """Remove a meal item; unknown ids are ignored."""
    session = _session(request)
    session.remove_from_meal(item_id)
    return _meal_response(session)


@router.post("/meal/commit", status_code=status.HTTP_201_CREATED)
async def commit_meal(
    request: Request, payload: CommitMealRequest | None = None
) -> FoodEntryResponse:
    """Log the meal in progress as one entry."""
    current_bg = payload.current_bg if payload else None
    entry = _session(request).commit_meal(current_bg=current_bg)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Meal has no items"
        )
    return FoodEntryResponse.from_domain(entry)


@router.post("/estimates/{field_name}/text")
async def estimate_text(
    field_name: str, payload: DescriptionEstimateRequest, request: Request
) -> dict[str, object]:
    """Estimate carbohydrates for a description."""
    try:
        estimate = await _session(request).estimate_description(
            field_name, payload.description
        )
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    except EstimationError as exc:
        _logger.exception("Text estimation failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return _estimate_payload(estimate)


@router.post("/estimates/{field_name}/image")
async def estimate_image(field_name: str, request: Request) -> dict[str, object]:
    """Estimate carbohydrates for an uploaded photo (raw request body)."""
    image_bytes = await request.body()
    try:
        estimate = await _session(request).estimate_image(field_name, image_bytes)
    except ValueError as exc:
        raise _unprocessable(exc) from exc
    except EstimationError as exc:
        _logger.exception("Image estimation failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return _estimate_payload(estimate)


@router.post("/estimates/{field_name}/confirm", status_code=status.HTTP_201_CREATED)
async def confirm_estimate(
    field_name: str, request: Request, payload: ConfirmEstimateRequest | None = None
) -> FoodEntryResponse:
    """Log the pending estimate for ``field_name``."""
    current_bg = payload.current_bg if payload else None
    entry = _session(request).confirm_estimate(field_name, current_bg=current_bg)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No pending estimate"
        )
    return FoodEntryResponse.from_domain(entry)


@router.delete("/estimates/{field_name}")
async def discard_estimate(field_name: str, request: Request) -> dict[str, str]:
    """Drop a pending estimate without logging it."""
    _session(request).discard_estimate(field_name)
    return {"status": "ok"}


@router.get("/products")
async def search_products(request: Request, q: str = "") -> list[ProductMatch]:
    """Search products by name."""
    container: AppContainer = request.app.state.container
    try:
        return await container.product_service.search(q)
    except ProductLookupError as exc:
        _logger.exception("Product search failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc


def _estimate_payload(estimate: FoodEstimate | None) -> dict[str, object]:
    if estimate is None:
        return {"status": "superseded", "estimate": None}
    return {"status": "ok", "estimate": estimate.model_dump()}
