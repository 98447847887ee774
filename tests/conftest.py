"""Shared pytest fixtures for all test suites."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from backend.tourplan.clients.ai_engine import AIEngineClient
from backend.tourplan.models.tour_plan import ItineraryItem, SelectedLocation

ENGINE_URL = "http://ai-engine.test"

Handler = Callable[[httpx.Request], httpx.Response]


def _engine_plan_payload(thread_id: str = "thread-1", **overrides: Any) -> dict[str, Any]:
    """Typical engine answer for a generate/refine turn."""
    payload: dict[str, Any] = {
        "thread_id": thread_id,
        "response": "Here is your 2-day plan for Kandy.",
        "itinerary": [
            {
                "time": "06:30",
                "location": "Kandy",
                "activity": "Temple of the Tooth at opening",
                "duration_minutes": 90,
                "crowd_prediction": 0.2,
                "lighting_quality": "golden",
                "day": 1,
                "order": 0,
            },
            {
                "time": "16:30",
                "location": "Kandy",
                "activity": "Kandy Lake walk",
                "duration_minutes": 60,
                "day": 2,
                "order": 1,
            },
        ],
        "metadata": {"match_score": 0.92, "total_days": 2},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def plan_payload() -> Callable[..., dict[str, Any]]:
    """Builder for engine generate/refine answers."""
    return _engine_plan_payload


@pytest.fixture
def kandy() -> SelectedLocation:
    """A single selected location."""
    return SelectedLocation(name="Kandy", latitude=7.2906, longitude=80.6337)


@pytest.fixture
def itinerary_items() -> list[ItineraryItem]:
    """Itinerary as echoed back by a caller on accept."""
    return [ItineraryItem.model_validate(item) for item in _engine_plan_payload()["itinerary"]]


@pytest.fixture
def make_engine() -> Callable[[Handler], AIEngineClient]:
    """Build an AI engine client backed by an httpx.MockTransport handler."""

    def _make(handler: Handler) -> AIEngineClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return AIEngineClient(ENGINE_URL, timeout_seconds=5.0, client=http)

    return _make


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    """Collects requests seen by a mock handler."""
    return []
