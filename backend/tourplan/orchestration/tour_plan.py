"""Tour plan orchestration: generate, refine, accept and session lookup.

The AI engine owns the conversation; this layer shapes requests, tracks which user
owns which thread, and materializes accepted itineraries as trips. AI engine
failures propagate unchanged.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta
from typing import Any, TypeVar

from backend.tourplan.clients.ai_engine import AIEngineClient
from backend.tourplan.clients.resilience import ResiliencePolicy
from backend.tourplan.db.repositories import TripRepository
from backend.tourplan.errors import PersistenceError, Unauthenticated, ValidationFailed
from backend.tourplan.models.tour_plan import (
    AcceptResult,
    ItineraryItem,
    PlanResult,
    SelectedLocation,
    SessionStatus,
    SessionView,
    TourPlanEngineRequest,
    TripItineraryItem,
    TripSpec,
)
from backend.tourplan.orchestration.sessions import ThreadSessionStore
from backend.tourplan.services.preferences import PreferencesService
from backend.tourplan.utils.metrics import UpstreamMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

SESSION_MESSAGES = {
    SessionStatus.active: "Session is active",
    SessionStatus.expired: "Session has expired",
    SessionStatus.unknown: "No session found for this thread",
}


def as_int(value: Any) -> int | None:
    """Integer reading of an engine ``day``/``order`` value, None when it has none."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def derive_destinations(itinerary: Sequence[ItineraryItem]) -> list[str]:
    """Distinct non-empty locations in first-seen order."""
    seen: dict[str, None] = {}
    for item in itinerary:
        if item.location:
            seen.setdefault(item.location, None)
    return list(seen)


def derive_trip_dates(
    itinerary: Sequence[ItineraryItem], now: datetime
) -> tuple[datetime, datetime]:
    """Start now; end after the itinerary's day span.

    Items without a usable day, or with day 0, count as day 1.
    """
    days = [as_int(item.day) or 1 for item in itinerary] or [1]
    return now, now + timedelta(days=max(days) - min(days))


def to_trip_item(item: ItineraryItem, index: int) -> TripItineraryItem:
    """Map an engine itinerary item to its persisted shape."""
    order = as_int(item.order)
    return TripItineraryItem(
        order=order if order is not None else index,
        time=item.time,
        location_name=item.location,
        activity=item.activity,
        duration_minutes=item.duration_minutes,
        notes=item.notes,
        crowd_prediction=item.crowd_prediction,
        lighting_quality=item.lighting_quality,
    )


def build_trip_spec(
    user_id: str,
    thread_id: str,
    title: str,
    description: str | None,
    itinerary: Sequence[ItineraryItem],
    metadata: dict[str, Any] | None,
    now: datetime,
) -> TripSpec:
    """Derive everything the trip store needs from an accepted itinerary.

    Pure: the same inputs always give the same spec.
    """
    start_date, end_date = derive_trip_dates(itinerary, now)
    return TripSpec(
        user_id=user_id,
        title=title,
        description=description,
        destinations=derive_destinations(itinerary),
        start_date=start_date,
        end_date=end_date,
        itinerary=[to_trip_item(item, index) for index, item in enumerate(itinerary)],
        generated_by="ai",
        ai_metadata={"sessionId": thread_id, "generatedAt": now.isoformat(), **(metadata or {})},
    )


class TourPlanOrchestrator:
    """Drives a tour plan conversation against the AI engine."""

    def __init__(
        self,
        engine: AIEngineClient,
        trips: TripRepository,
        sessions: ThreadSessionStore,
        policy: ResiliencePolicy | None = None,
        preferences: PreferencesService | None = None,
        clock: Callable[[], datetime] | None = None,
        metrics: UpstreamMetrics | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            engine: AI engine client
            trips: Trip store used on accept
            sessions: Thread ownership store
            policy: Optional retry/circuit breaker policy around engine calls
            preferences: Optional preferences service; stored scores are attached to
                requests read-only, a failed lookup sends none
            clock: Injectable clock (default: datetime.now)
            metrics: Metrics recorder (optional, defaults to no-op)
        """
        self._engine = engine
        self._trips = trips
        self._sessions = sessions
        self._policy = policy
        self._preferences = preferences
        self._clock = clock or datetime.now
        self._metrics = metrics or UpstreamMetrics()

    async def _call_engine(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        if self._policy is None:
            return await fn()
        return await self._policy.run(operation, fn)

    async def _build_request(
        self,
        user_id: str,
        selected_locations: Sequence[SelectedLocation],
        start_date: str,
        end_date: str,
        preferences: list[str] | None,
        message: str | None,
        thread_id: str | None = None,
    ) -> TourPlanEngineRequest:
        if not selected_locations:
            raise ValidationFailed("At least one location must be selected")

        preference_scores = None
        if self._preferences is not None:
            try:
                scores = await self._preferences.find_scores(user_id)
            except PersistenceError as e:
                logger.warning(f"Preference scores unavailable for user {user_id}: {e}")
                scores = None
            if scores is not None:
                preference_scores = scores.model_dump()

        return TourPlanEngineRequest(
            selected_locations=[location.to_engine() for location in selected_locations],
            start_date=start_date,
            end_date=end_date,
            thread_id=thread_id,
            message=message,
            preferences=preferences,
            preference_scores=preference_scores,
        )

    async def generate(
        self,
        user_id: str | None,
        selected_locations: Sequence[SelectedLocation],
        start_date: str,
        end_date: str,
        preferences: list[str] | None = None,
        message: str | None = None,
    ) -> PlanResult:
        """Start a new conversation; the engine mints the thread id.

        Raises:
            Unauthenticated: No caller identity
            ValidationFailed: No locations selected
            UpstreamUnavailable: AI engine call failed
        """
        if not user_id:
            raise Unauthenticated("User not authenticated")

        logger.info(
            f"Generating tour plan for user {user_id}: {len(selected_locations)} locations, "
            f"{start_date} to {end_date}"
        )
        request = await self._build_request(
            user_id, selected_locations, start_date, end_date, preferences, message
        )
        response = await self._call_engine(
            "generate_tour_plan", lambda: self._engine.generate_tour_plan(request)
        )

        self._sessions.register(response.thread_id, user_id)
        logger.info(f"Tour plan generated on thread {response.thread_id}")
        return PlanResult.from_engine(response)

    async def refine(
        self,
        user_id: str | None,
        thread_id: str,
        message: str,
        selected_locations: Sequence[SelectedLocation],
        start_date: str,
        end_date: str,
        preferences: list[str] | None = None,
    ) -> PlanResult:
        """Continue a conversation with a refinement message.

        Unknown or expired threads are passed through; the engine treats them as new.

        Raises:
            Unauthenticated: No caller identity
            ThreadOwnershipError: Thread is live and owned by another user
            ValidationFailed: No locations selected
            UpstreamUnavailable: AI engine call failed
        """
        if not user_id:
            raise Unauthenticated("User not authenticated")

        self._sessions.ensure_owner(thread_id, user_id)

        logger.info(f"Refining tour plan on thread {thread_id} for user {user_id}")
        request = await self._build_request(
            user_id,
            selected_locations,
            start_date,
            end_date,
            preferences,
            message,
            thread_id=thread_id,
        )
        response = await self._call_engine(
            "refine_tour_plan", lambda: self._engine.refine_tour_plan(request)
        )

        self._sessions.touch(response.thread_id, user_id)
        return PlanResult.from_engine(response)

    async def accept(
        self,
        user_id: str | None,
        thread_id: str,
        title: str,
        description: str | None,
        itinerary: Sequence[ItineraryItem],
        metadata: dict[str, Any] | None = None,
    ) -> AcceptResult:
        """Save an itinerary as a trip. One write, never retried.

        Raises:
            Unauthenticated: No caller identity
            PersistenceError: Trip store failed
        """
        if not user_id:
            raise Unauthenticated("User not authenticated")

        spec = build_trip_spec(
            user_id, thread_id, title, description, itinerary, metadata, self._clock()
        )
        trip = await self._trips.create_trip(spec)

        self._metrics.inc_plan_accepted()
        logger.info(
            f"Tour plan on thread {thread_id} saved as trip {trip.trip_id} "
            f"({len(spec.destinations)} destinations)"
        )
        return AcceptResult(trip_id=trip.trip_id)

    async def get_session(self, user_id: str | None, thread_id: str) -> SessionView:
        """Report a thread's status for its owner.

        Raises:
            Unauthenticated: No caller identity
        """
        if not user_id:
            raise Unauthenticated("User not authenticated")

        status = self._sessions.status(thread_id, user_id)
        return SessionView(thread_id=thread_id, status=status, message=SESSION_MESSAGES[status])
