"""Tests for the tour plan orchestrator flows.

The AI engine is an httpx.MockTransport; persistence is in-memory.
"""

import json
from datetime import datetime, timedelta

import httpx
import pytest

from backend.tourplan.clients.resilience import CircuitBreaker, ResiliencePolicy
from backend.tourplan.db.inmemory import InMemoryPreferencesRepository, InMemoryTripRepository
from backend.tourplan.errors import (
    AIEngineCircuitOpenError,
    AIEngineConnectionError,
    AIEngineTimeoutError,
    PersistenceError,
    ThreadOwnershipError,
    Unauthenticated,
    ValidationFailed,
)
from backend.tourplan.models.tour_plan import SessionStatus, TripSpec
from backend.tourplan.orchestration.sessions import ThreadSessionStore
from backend.tourplan.orchestration.tour_plan import TourPlanOrchestrator, build_trip_spec
from backend.tourplan.services.preferences import PreferencesService

NOW = datetime(2025, 3, 1, 9, 0, 0)


class CountingPreferencesRepository(InMemoryPreferencesRepository):
    """Preferences store that counts writes."""

    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    async def save_scores(self, user_id, scores) -> None:
        self.writes += 1
        await super().save_scores(user_id, scores)


class BrokenPreferencesRepository(InMemoryPreferencesRepository):
    """Preferences store whose reads always fail."""

    async def get_scores(self, user_id):
        raise PersistenceError("Failed to load preferences")


class FailingTripRepository(InMemoryTripRepository):
    """Trip store whose writes always fail."""

    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    async def create_trip(self, spec: TripSpec):
        self.calls += 1
        raise PersistenceError("Failed to save trip")


class CountingMetrics:
    """Records accepted-plan increments."""

    def __init__(self) -> None:
        self.accepted = 0

    def record_latency(self, service, operation, outcome, latency_ms) -> None:
        pass

    def inc_error(self, service, reason) -> None:
        pass

    def inc_plan_accepted(self) -> None:
        self.accepted += 1


@pytest.fixture
def trips() -> InMemoryTripRepository:
    return InMemoryTripRepository()


@pytest.fixture
def sessions() -> ThreadSessionStore:
    return ThreadSessionStore(ttl_seconds=3600, clock=lambda: NOW)


@pytest.fixture
def engine_requests() -> list[dict]:
    return []


@pytest.fixture
def metrics() -> CountingMetrics:
    return CountingMetrics()


@pytest.fixture
def orchestrator(make_engine, plan_payload, trips, sessions, engine_requests, metrics):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        engine_requests.append(body)
        return httpx.Response(200, json=plan_payload(body.get("thread_id") or "thread-minted"))

    return TourPlanOrchestrator(
        engine=make_engine(handler),
        trips=trips,
        sessions=sessions,
        clock=lambda: NOW,
        metrics=metrics,
    )


class TestGenerate:
    """generate()"""

    @pytest.mark.asyncio
    async def test_generate_returns_engine_plan_and_registers_thread(
        self, orchestrator, kandy, sessions, engine_requests
    ) -> None:
        result = await orchestrator.generate(
            "user-1", [kandy], "2025-03-01", "2025-03-02", preferences=["culture"], message="hi"
        )

        assert result.thread_id == "thread-minted"
        assert len(result.itinerary) == 2
        assert result.metadata["match_score"] == 0.92
        assert sessions.status("thread-minted", "user-1") == SessionStatus.active

        sent = engine_requests[0]
        assert "thread_id" not in sent
        assert sent["preferences"] == ["culture"]
        assert sent["message"] == "hi"
        assert sent["selected_locations"][0]["name"] == "Kandy"
        assert "preference_scores" not in sent

    @pytest.mark.asyncio
    async def test_generate_requires_user(self, orchestrator, kandy) -> None:
        with pytest.raises(Unauthenticated):
            await orchestrator.generate(None, [kandy], "2025-03-01", "2025-03-02")

    @pytest.mark.asyncio
    async def test_generate_requires_locations(self, orchestrator) -> None:
        with pytest.raises(ValidationFailed):
            await orchestrator.generate("user-1", [], "2025-03-01", "2025-03-02")

    @pytest.mark.asyncio
    async def test_generate_attaches_preference_scores_alongside_preferences(
        self, make_engine, plan_payload, trips, sessions, kandy
    ) -> None:
        sent: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(json.loads(request.content))
            return httpx.Response(200, json=plan_payload())

        preferences = PreferencesService(InMemoryPreferencesRepository())
        await preferences.update_scores("user-1", {"nature": 0.9})
        orchestrator = TourPlanOrchestrator(
            engine=make_engine(handler), trips=trips, sessions=sessions, preferences=preferences
        )

        await orchestrator.generate(
            "user-1", [kandy], "2025-03-01", "2025-03-02", preferences=["hiking"]
        )

        assert sent[0]["preferences"] == ["hiking"]
        assert sent[0]["preference_scores"] == {
            "history": 0.5,
            "adventure": 0.5,
            "nature": 0.9,
            "relaxation": 0.5,
        }

    @pytest.mark.asyncio
    async def test_generate_never_writes_preferences(
        self, make_engine, plan_payload, trips, sessions, kandy
    ) -> None:
        sent: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            sent.append(body)
            return httpx.Response(200, json=plan_payload(body.get("thread_id") or "thread-fresh"))

        repository = CountingPreferencesRepository()
        orchestrator = TourPlanOrchestrator(
            engine=make_engine(handler),
            trips=trips,
            sessions=sessions,
            preferences=PreferencesService(repository),
        )

        generated = await orchestrator.generate("fresh-user", [kandy], "2025-03-01", "2025-03-02")
        await orchestrator.refine(
            "fresh-user", generated.thread_id, "slower", [kandy], "2025-03-01", "2025-03-02"
        )

        assert repository.writes == 0
        assert await repository.get_scores("fresh-user") is None
        assert all("preference_scores" not in body for body in sent)

    @pytest.mark.asyncio
    async def test_generate_survives_preference_store_failure(
        self, make_engine, plan_payload, trips, sessions, kandy
    ) -> None:
        sent: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(json.loads(request.content))
            return httpx.Response(200, json=plan_payload())

        orchestrator = TourPlanOrchestrator(
            engine=make_engine(handler),
            trips=trips,
            sessions=sessions,
            preferences=PreferencesService(BrokenPreferencesRepository()),
        )

        result = await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")

        assert result.thread_id == "thread-1"
        assert len(sent) == 1
        assert "preference_scores" not in sent[0]

    @pytest.mark.asyncio
    async def test_generate_passes_engine_values_through(
        self, make_engine, plan_payload, trips, sessions, kandy
    ) -> None:
        payload = plan_payload()
        payload["itinerary"][0].update(
            {"duration_minutes": 90.5, "crowd_prediction": "moderate", "day": "1"}
        )
        payload["warnings"] = [{"code": "rain", "text": "Showers after 3pm"}]

        orchestrator = TourPlanOrchestrator(
            engine=make_engine(lambda request: httpx.Response(200, json=payload)),
            trips=trips,
            sessions=sessions,
        )

        result = await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")
        item = result.itinerary[0]

        assert item.duration_minutes == 90.5
        assert item.crowd_prediction == "moderate"
        assert item.day == "1"
        assert result.warnings == [{"code": "rain", "text": "Showers after 3pm"}]

    @pytest.mark.asyncio
    async def test_generating_twice_derives_the_same_trip(self, orchestrator, kandy) -> None:
        first = await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")
        second = await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")

        specs = [
            build_trip_spec(
                "user-1", plan.thread_id, "Kandy", None, plan.itinerary, plan.metadata, NOW
            )
            for plan in (first, second)
        ]

        assert first.itinerary == second.itinerary
        assert specs[0] == specs[1]
        assert specs[0].destinations == ["Kandy"]

    @pytest.mark.asyncio
    async def test_engine_failure_propagates_unchanged(
        self, make_engine, trips, sessions, kandy
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        orchestrator = TourPlanOrchestrator(
            engine=make_engine(handler), trips=trips, sessions=sessions
        )

        with pytest.raises(AIEngineTimeoutError):
            await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")

        assert len(sessions) == 0

    @pytest.mark.asyncio
    async def test_open_breaker_rejects_without_calling_engine(
        self, make_engine, trips, sessions, kandy
    ) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        breaker = CircuitBreaker(
            name="ai_engine", failure_threshold=1, window_seconds=60, half_open_seconds=30
        )
        orchestrator = TourPlanOrchestrator(
            engine=make_engine(handler),
            trips=trips,
            sessions=sessions,
            policy=ResiliencePolicy(breaker),
        )

        with pytest.raises(AIEngineConnectionError):
            await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")
        with pytest.raises(AIEngineCircuitOpenError):
            await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")

        assert len(calls) == 1


class TestRefine:
    """refine()"""

    @pytest.mark.asyncio
    async def test_refine_forwards_thread_id(self, orchestrator, kandy, engine_requests) -> None:
        generated = await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")

        refined = await orchestrator.refine(
            "user-1",
            generated.thread_id,
            "Add a tea plantation",
            [kandy],
            "2025-03-01",
            "2025-03-02",
        )

        assert refined.thread_id == generated.thread_id
        assert engine_requests[1]["thread_id"] == generated.thread_id
        assert engine_requests[1]["message"] == "Add a tea plantation"

    @pytest.mark.asyncio
    async def test_refine_unknown_thread_is_accepted_and_registered(
        self, orchestrator, kandy, sessions
    ) -> None:
        result = await orchestrator.refine(
            "user-1", "from-another-device", "more temples", [kandy], "2025-03-01", "2025-03-02"
        )

        assert result.thread_id == "from-another-device"
        assert sessions.status("from-another-device", "user-1") == SessionStatus.active

    @pytest.mark.asyncio
    async def test_refine_foreign_thread_is_rejected(
        self, orchestrator, kandy, engine_requests
    ) -> None:
        generated = await orchestrator.generate("alice", [kandy], "2025-03-01", "2025-03-02")

        with pytest.raises(ThreadOwnershipError) as exc_info:
            await orchestrator.refine(
                "mallory", generated.thread_id, "show me", [kandy], "2025-03-01", "2025-03-02"
            )

        assert exc_info.value.status_code == 403
        assert len(engine_requests) == 1


class TestAccept:
    """accept() and get_session()"""

    @pytest.mark.asyncio
    async def test_accept_saves_derived_trip(
        self, orchestrator, trips, itinerary_items, metrics
    ) -> None:
        result = await orchestrator.accept(
            "user-1",
            "thread-1",
            "Kandy weekend",
            "Temples and lake",
            itinerary_items,
            metadata={"match_score": 0.92},
        )

        saved = trips._trips[result.trip_id]
        assert saved.user_id == "user-1"
        assert result.message == "Tour plan saved successfully"
        assert saved.destinations == ["Kandy"]
        assert saved.start_date == NOW
        assert saved.end_date == NOW + timedelta(days=1)
        assert [item.order for item in saved.itinerary] == [0, 1]
        assert saved.ai_metadata["sessionId"] == "thread-1"
        assert saved.ai_metadata["match_score"] == 0.92
        assert metrics.accepted == 1

    @pytest.mark.asyncio
    async def test_accept_persistence_failure_propagates_once(
        self, make_engine, sessions, itinerary_items
    ) -> None:
        trips = FailingTripRepository()
        orchestrator = TourPlanOrchestrator(
            engine=make_engine(lambda r: httpx.Response(500)), trips=trips, sessions=sessions
        )

        with pytest.raises(PersistenceError):
            await orchestrator.accept("user-1", "thread-1", "Trip", None, itinerary_items)

        assert trips.calls == 1

    @pytest.mark.asyncio
    async def test_accept_requires_user(self, orchestrator, itinerary_items) -> None:
        with pytest.raises(Unauthenticated):
            await orchestrator.accept("", "thread-1", "Trip", None, itinerary_items)

    @pytest.mark.asyncio
    async def test_get_session_reports_status(self, orchestrator, kandy) -> None:
        generated = await orchestrator.generate("user-1", [kandy], "2025-03-01", "2025-03-02")

        mine = await orchestrator.get_session("user-1", generated.thread_id)
        theirs = await orchestrator.get_session("user-2", generated.thread_id)

        assert mine.status == SessionStatus.active
        assert theirs.status == SessionStatus.unknown
        assert theirs.thread_id == generated.thread_id
