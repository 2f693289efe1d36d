"""Shared test fixtures."""

from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

import pytest

from gluco_tracker.adapters.fdc_client import FdcClient
from gluco_tracker.config import Settings
from gluco_tracker.containers import AppContainer
from gluco_tracker.domain.entries import FoodEntry
from gluco_tracker.domain.profile import DosingProfile
from gluco_tracker.services.cache import InMemorySearchCache
from gluco_tracker.services.estimation import EstimationClient, EstimationService
from gluco_tracker.services.food_log import FoodEntryLog, FoodLogRepository
from gluco_tracker.services.products import ProductCatalogService
from gluco_tracker.services.profile import ProfileRepository, ProfileService
from gluco_tracker.services.session import DosingSession


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profile: DosingProfile | None = None
    saves: int = 0

    def load_profile(self) -> DosingProfile | None:
        return self.profile

    def save_profile(self, profile: DosingProfile) -> None:
        self.profile = profile
        self.saves += 1


@dataclass
class InMemoryFoodLogRepository(FoodLogRepository):
    """In-memory log repository keeping every saved snapshot."""

    stored: list[FoodEntry] = field(default_factory=list)
    snapshots: list[list[FoodEntry]] = field(default_factory=list)
    fail_saves: bool = False

    def load_entries(self) -> list[FoodEntry]:
        return list(self.stored)

    def save_entries(self, entries: list[FoodEntry]) -> None:
        if self.fail_saves:
            raise ConnectionError("store unavailable")
        self.stored = list(entries)
        self.snapshots.append(list(entries))


@dataclass
class FakeEstimationClient(EstimationClient):
    """Fake estimation client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "food_name": "Spaghetti bolognese",
            "carbs_grams": 70,
            "portion_size": "1 plate",
            "confidence": 0.8,
            "explanation": "Estimated from a standard portion",
        }
    )
    calls: list[dict[str, object]] = field(default_factory=list)

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
        self.calls.append({"prompt": prompt, "image_data_url": image_data_url})
        return self.payload


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client with a canned search payload."""

    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": [
                {
                    "fdcId": 2001,
                    "description": "Whole wheat bread",
                    "brandName": "Bakery",
                    "foodNutrients": [
                        {"nutrientId": 1003, "value": 9.0},
                        {"nutrientId": 1005, "value": 41.3},
                    ],
                },
                {
                    "fdcId": 2002,
                    "description": "White bread",
                    "brandOwner": "Mill Co",
                    "foodNutrients": [{"nutrientId": 1005, "value": 49.0}],
                },
            ]
        }
    )
    search_calls: int = 0

    async def search_foods(self, query: str, page_size: int = 5) -> dict[str, object]:
        self.search_calls += 1
        return self.search_payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
        api_token="api-token",
        openai_api_key="openai-key",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def log_repository() -> InMemoryFoodLogRepository:
    return InMemoryFoodLogRepository()


@pytest.fixture
def estimation_client() -> FakeEstimationClient:
    return FakeEstimationClient()


@pytest.fixture
def session(
    profile_repository: InMemoryProfileRepository,
    log_repository: InMemoryFoodLogRepository,
    estimation_client: FakeEstimationClient,
) -> DosingSession:
    return DosingSession(
        profile_service=ProfileService(profile_repository),
        food_log=FoodEntryLog(log_repository),
        estimation_service=EstimationService(
            client=estimation_client,
            model="gpt-5.2",
            reasoning_effort="low",
            store=False,
        ),
        timezone=ZoneInfo("UTC"),
    )


@pytest.fixture
def container(settings: Settings, session: DosingSession) -> AppContainer:
    product_service = ProductCatalogService(
        fdc_client=FakeFdcClient(),
        cache=InMemorySearchCache(),
        default_limit=settings.product_search_limit,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session=session,
        product_service=product_service,
        close_resources=close_resources,
    )
