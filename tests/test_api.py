"""Tests for the HTTP API."""

from datetime import UTC, datetime

from fastapi.testclient import TestClient

from gluco_tracker.api.app import create_app
from gluco_tracker.domain.entries import FoodEntry, entry_id_for
from tests.conftest import FakeEstimationClient, InMemoryFoodLogRepository

HEADERS = {"X-Api-Token": "api-token"}


def _client(container) -> TestClient:  # type: ignore[no-untyped-def]
    return TestClient(create_app(container))


def test_health_is_public(container) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_routes_require_token(container) -> None:
    client = _client(container)

    assert client.get("/profile").status_code == 401
    assert client.get("/profile", headers={"X-Api-Token": "nope"}).status_code == 401


def test_profile_update_and_validation(container) -> None:
    client = _client(container)
    payload = {
        "carb_ratio": 12,
        "sensitivity_factor": 40,
        "target_glucose": 110,
        "glucose_unit": "mg/dL",
    }

    updated = client.put("/profile", json=payload, headers=HEADERS)
    rejected = client.put(
        "/profile", json={**payload, "carb_ratio": 0}, headers=HEADERS
    )

    assert updated.status_code == 200
    assert rejected.status_code == 422
    assert client.get("/profile", headers=HEADERS).json()["carb_ratio"] == 12


def test_dose_endpoint(container) -> None:
    response = _client(container).post(
        "/dose", json={"carbs": 70, "current_bg": 180}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json()["total_dose"] == 8.6


def test_dose_rejects_negative_carbs(container) -> None:
    response = _client(container).post("/dose", json={"carbs": -1}, headers=HEADERS)

    assert response.status_code == 422


def test_portion_endpoint_defaults_blank_reference(container) -> None:
    response = _client(container).post(
        "/portion",
        json={"carbs_per_unit": 12, "reference_unit": 0, "amount_consumed": 2},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"carbs": 24, "insulin": 2.4, "reference_unit": 1}


def test_meal_flow(container) -> None:
    client = _client(container)
    client.post(
        "/meal/items",
        json={"name": "Rice", "carbs_per_unit": 30, "amount_consumed": 1},
        headers=HEADERS,
    )
    meal = client.post(
        "/meal/items",
        json={"name": "Beans", "carbs_per_unit": 15, "amount_consumed": 1},
        headers=HEADERS,
    ).json()
    assert [item["name"] for item in meal["items"]] == ["Rice", "Beans"]

    client.delete(f"/meal/items/{meal['items'][1]['id']}", headers=HEADERS)
    committed = client.post("/meal/commit", headers=HEADERS)
    empty = client.post("/meal/commit", headers=HEADERS)

    assert committed.status_code == 201
    assert committed.json()["food_name"] == "Rice"
    assert committed.json()["portion_description"] == "Composite meal (1 items)"
    assert empty.status_code == 409


def test_meal_item_without_carbs_is_rejected(container) -> None:
    response = _client(container).post(
        "/meal/items", json={"name": "Water"}, headers=HEADERS
    )

    assert response.status_code == 422


def test_entries_filter_by_day(
    container, log_repository: InMemoryFoodLogRepository
) -> None:
    client = _client(container)
    for timestamp in (
        datetime(2026, 3, 1, 9, 0, tzinfo=UTC),
        datetime(2026, 3, 2, 9, 0, tzinfo=UTC),
    ):
        container.session.food_log.append(
            FoodEntry(
                id=entry_id_for(timestamp),
                timestamp=timestamp,
                food_name="Toast",
                carbs=25,
                calculated_insulin=2.5,
                portion_description="Manual entry",
            )
        )

    all_entries = client.get("/entries", headers=HEADERS).json()
    day_entries = client.get(
        "/entries", params={"day": "2026-03-01"}, headers=HEADERS
    ).json()

    assert len(all_entries) == 2
    assert [entry["id"] for entry in day_entries] == [
        entry_id_for(datetime(2026, 3, 1, 9, 0, tzinfo=UTC))
    ]
    assert len(log_repository.snapshots) == 2


def test_quick_and_manual_entries_feed_today_summary(container) -> None:
    client = _client(container)

    quick = client.post(
        "/entries/quick",
        json={
            "name": "Oats",
            "carbs_per_unit": 60,
            "reference_unit": 100,
            "amount_consumed": 40,
        },
        headers=HEADERS,
    )
    manual = client.post(
        "/entries/manual", json={"name": "Juice", "carbs": 20}, headers=HEADERS
    )
    summary = client.get("/summary/today", headers=HEADERS).json()

    assert quick.status_code == 201
    assert quick.json()["portion_description"] == "40 units of 60g/100g"
    assert manual.status_code == 201
    assert summary["carbs"] == 44
    assert summary["insulin"] == 4.4
    assert summary["entry_count"] == 2


def test_estimate_confirm_flow(container) -> None:
    client = _client(container)

    estimated = client.post(
        "/estimates/text/text", json={"description": "pasta"}, headers=HEADERS
    )
    confirmed = client.post(
        "/estimates/text/confirm", json={"current_bg": 180}, headers=HEADERS
    )
    again = client.post("/estimates/text/confirm", headers=HEADERS)

    assert estimated.json()["status"] == "ok"
    assert estimated.json()["estimate"]["carbs_grams"] == 70
    assert confirmed.status_code == 201
    assert confirmed.json()["calculated_insulin"] == 8.6
    assert again.status_code == 404


def test_image_estimate_and_discard(container) -> None:
    client = _client(container)

    estimated = client.post(
        "/estimates/photo/image", content=b"\xff\xd8\xffjpeg", headers=HEADERS
    )
    client.delete("/estimates/photo", headers=HEADERS)
    confirmed = client.post("/estimates/photo/confirm", headers=HEADERS)

    assert estimated.status_code == 200
    assert confirmed.status_code == 404


def test_malformed_estimate_is_reported(
    container, estimation_client: FakeEstimationClient
) -> None:
    estimation_client.payload = {"food_name": "Bad", "carbs_grams": -10}

    response = _client(container).post(
        "/estimates/text/text", json={"description": "bad"}, headers=HEADERS
    )

    assert response.status_code == 502


def test_product_search(container) -> None:
    response = _client(container).get(
        "/products", params={"q": "bread"}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json()[0]["carbs_per_100g"] == 41.3


def test_oversized_figures_are_rejected_cleanly(container) -> None:
    client = _client(container)
    client.put(
        "/profile",
        json={"carb_ratio": 0.5, "sensitivity_factor": 50, "target_glucose": 100},
        headers=HEADERS,
    )

    large = client.post(
        "/entries/manual", json={"name": "Big", "carbs": 1e29}, headers=HEADERS
    )
    overflow = client.post("/dose", json={"carbs": 1e308}, headers=HEADERS)

    assert large.status_code == 201
    assert overflow.status_code == 422
