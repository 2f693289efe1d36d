"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from gluco_tracker.adapters.fdc_client import HttpxFdcClient
from gluco_tracker.adapters.openai_estimation_client import OpenAIEstimationClient
from gluco_tracker.adapters.supabase_food_log_repository import (
    SupabaseFoodLogRepository,
)
from gluco_tracker.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from gluco_tracker.adapters.supabase_state_store import SupabaseStateStore
from gluco_tracker.config import Settings, parse_timezone
from gluco_tracker.services.cache import InMemorySearchCache
from gluco_tracker.services.estimation import EstimationService
from gluco_tracker.services.food_log import FoodEntryLog
from gluco_tracker.services.products import ProductCatalogService
from gluco_tracker.services.profile import ProfileService
from gluco_tracker.services.session import DosingSession


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session: DosingSession
    product_service: ProductCatalogService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    store = SupabaseStateStore(supabase_client)
    estimation_service = EstimationService(
        client=OpenAIEstimationClient.create(resolved_settings.openai_api_key),
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    session = DosingSession(
        profile_service=ProfileService(SupabaseProfileRepository(store)),
        food_log=FoodEntryLog(SupabaseFoodLogRepository(store)),
        estimation_service=estimation_service,
        timezone=parse_timezone(resolved_settings.timezone),
    )
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
    )
    product_service = ProductCatalogService(
        fdc_client=fdc_client,
        cache=InMemorySearchCache(
            ttl_seconds=resolved_settings.product_cache_ttl_seconds
        ),
        default_limit=resolved_settings.product_search_limit,
    )

    async def close_resources() -> None:
        await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        session=session,
        product_service=product_service,
        close_resources=close_resources,
    )
