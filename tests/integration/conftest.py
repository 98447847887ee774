"""App-level fixtures: a real app wired to a scripted AI engine and in-memory stores."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.tourplan.api.deps import (
    get_ai_engine,
    get_orchestrator,
    get_preferences_service,
    get_resilience_policy,
    get_timetable_client,
)
from backend.tourplan.clients.ai_engine import AIEngineClient
from backend.tourplan.clients.resilience import CircuitBreaker, ResiliencePolicy
from backend.tourplan.clients.timetable import TimetableClient
from backend.tourplan.config import Settings
from backend.tourplan.db.inmemory import InMemoryPreferencesRepository, InMemoryTripRepository
from backend.tourplan.main import create_app
from backend.tourplan.orchestration.sessions import ThreadSessionStore
from backend.tourplan.orchestration.tour_plan import TourPlanOrchestrator
from backend.tourplan.services.preferences import PreferencesService


class ScriptedEngine:
    """MockTransport handler answering by request path.

    ``routes`` maps a path to a JSON body or to a callable producing a response.
    Unscripted paths answer 404 with an engine-style ``detail``.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get(request.url.path)
        if answer is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        if callable(answer):
            return answer(request)
        return httpx.Response(200, json=answer)

    def last_json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def scripted_engine(plan_payload) -> ScriptedEngine:
    engine = ScriptedEngine()

    def tour_plan(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json=plan_payload(body.get("thread_id") or "thread-kandy"))

    engine.routes["/api/v1/tour-plan/generate"] = tour_plan
    engine.routes["/api/v1/tour-plan/refine"] = tour_plan
    engine.routes["/api/v1/health"] = {"status": "healthy", "version": "1.0.0"}
    return engine


@pytest.fixture
def timetable_handler() -> dict[str, Callable[[httpx.Request], httpx.Response]]:
    """Mutable holder for the timetable service handler."""
    return {
        "handler": lambda request: httpx.Response(
            200, json={"operator": "Sri Lanka Railways", "mode": "train", "schedule": []}
        )
    }


@pytest.fixture
def trips() -> InMemoryTripRepository:
    return InMemoryTripRepository()


@pytest.fixture
def app(scripted_engine, timetable_handler, trips) -> FastAPI:
    """Application with every lifespan-built component overridden."""
    app = create_app(Settings(openai_api_key=None))

    engine = AIEngineClient(
        "http://ai-engine.test",
        client=httpx.AsyncClient(transport=httpx.MockTransport(scripted_engine)),
    )
    timetable = TimetableClient(
        "http://timetable.test/api/timetable",
        client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: timetable_handler["handler"](r))
        ),
    )
    breaker = CircuitBreaker(
        name="ai_engine", failure_threshold=5, window_seconds=60, half_open_seconds=30
    )
    policy = ResiliencePolicy(breaker)
    preferences = PreferencesService(InMemoryPreferencesRepository())
    orchestrator = TourPlanOrchestrator(
        engine=engine,
        trips=trips,
        sessions=ThreadSessionStore(ttl_seconds=3600),
        policy=policy,
        preferences=preferences,
    )

    app.dependency_overrides[get_ai_engine] = lambda: engine
    app.dependency_overrides[get_resilience_policy] = lambda: policy
    app.dependency_overrides[get_timetable_client] = lambda: timetable
    app.dependency_overrides[get_preferences_service] = lambda: preferences
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.state.extractor = None
    return app


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer user-1"}


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client (lifespan not run; components come from overrides)."""
    return TestClient(app)
