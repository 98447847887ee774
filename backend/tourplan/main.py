"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.tourplan.api.routes.ai_engine import router as ai_engine_router
from backend.tourplan.api.routes.health import router as health_router
from backend.tourplan.api.routes.metrics import router as metrics_router
from backend.tourplan.api.routes.preferences import router as preferences_router
from backend.tourplan.api.routes.timetable import router as timetable_router
from backend.tourplan.api.routes.tour_plan import router as tour_plan_router
from backend.tourplan.api.routes.travel import router as travel_router
from backend.tourplan.clients.ai_engine import AIEngineClient
from backend.tourplan.clients.resilience import CircuitBreaker, ResiliencePolicy, RetryConfig
from backend.tourplan.clients.timetable import TimetableClient
from backend.tourplan.config import Settings, get_settings
from backend.tourplan.db.engine import (
    create_async_engine_from_settings,
    create_session_factory,
    create_tables,
)
from backend.tourplan.db.inmemory import InMemoryPreferencesRepository, InMemoryTripRepository
from backend.tourplan.db.sql_repositories import SqlPreferencesRepository, SqlTripRepository
from backend.tourplan.errors import register_error_handlers
from backend.tourplan.llm.extractor import get_trip_extractor
from backend.tourplan.orchestration.sessions import ThreadSessionStore
from backend.tourplan.orchestration.tour_plan import TourPlanOrchestrator
from backend.tourplan.services.preferences import PreferencesService
from backend.tourplan.utils.logging import configure_logging
from backend.tourplan.utils.metrics import PrometheusUpstreamMetrics

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def build_resilience_policy(settings: Settings) -> ResiliencePolicy:
    """AI engine retry/breaker policy from settings."""
    breaker = CircuitBreaker(
        name="ai_engine",
        failure_threshold=settings.ai_engine_breaker_failures,
        window_seconds=settings.ai_engine_breaker_window_sec,
        half_open_seconds=settings.ai_engine_breaker_half_open_sec,
    )
    retry = RetryConfig(
        retry_count=settings.ai_engine_retry_count,
        backoff_ms=settings.ai_engine_retry_backoff_ms,
    )
    return ResiliencePolicy(breaker, retry=retry)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; every client is created in the lifespan."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        metrics = PrometheusUpstreamMetrics()

        db_engine = None
        if settings.database_url:
            db_engine = create_async_engine_from_settings(settings)
            await create_tables(db_engine)
            session_factory = create_session_factory(db_engine)
            trips = SqlTripRepository(session_factory)
            preferences_repo = SqlPreferencesRepository(session_factory)
            logger.info("Using SQL persistence")
        else:
            trips = InMemoryTripRepository()
            preferences_repo = InMemoryPreferencesRepository()
            logger.info("DATABASE_URL not set, using in-memory persistence")

        ai_engine = AIEngineClient(
            settings.ai_engine_base_url,
            timeout_seconds=settings.ai_engine_timeout_seconds,
            metrics=metrics,
        )
        timetable = TimetableClient(
            settings.timetable_api_url,
            timeout_seconds=settings.timetable_timeout_seconds,
            metrics=metrics,
        )
        policy = build_resilience_policy(settings)
        preferences = PreferencesService(preferences_repo)

        app.state.ai_engine = ai_engine
        app.state.timetable = timetable
        app.state.resilience_policy = policy
        app.state.preferences = preferences
        app.state.extractor = get_trip_extractor(settings)
        app.state.orchestrator = TourPlanOrchestrator(
            engine=ai_engine,
            trips=trips,
            sessions=ThreadSessionStore(ttl_seconds=settings.thread_session_ttl_seconds),
            policy=policy,
            preferences=preferences,
            metrics=metrics,
        )

        try:
            yield
        finally:
            await ai_engine.aclose()
            await timetable.aclose()
            if db_engine is not None:
                await db_engine.dispose()

    app = FastAPI(title="Tour Plan API", version=VERSION, lifespan=lifespan)
    register_error_handlers(app)

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(tour_plan_router)
    app.include_router(ai_engine_router)
    app.include_router(timetable_router)
    app.include_router(travel_router)
    app.include_router(preferences_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "Tour Plan API", "version": VERSION}

    return app


app = create_app()
