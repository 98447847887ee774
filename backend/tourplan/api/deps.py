"""FastAPI dependencies resolving the components built in the app lifespan."""

from fastapi import Request

from backend.tourplan.clients.ai_engine import AIEngineClient
from backend.tourplan.clients.resilience import ResiliencePolicy
from backend.tourplan.clients.timetable import TimetableClient
from backend.tourplan.errors import ExtractionUnavailable
from backend.tourplan.llm.extractor import TripExtractor
from backend.tourplan.orchestration.tour_plan import TourPlanOrchestrator
from backend.tourplan.services.preferences import PreferencesService


def get_orchestrator(request: Request) -> TourPlanOrchestrator:
    return request.app.state.orchestrator


def get_ai_engine(request: Request) -> AIEngineClient:
    return request.app.state.ai_engine


def get_resilience_policy(request: Request) -> ResiliencePolicy:
    return request.app.state.resilience_policy


def get_timetable_client(request: Request) -> TimetableClient:
    return request.app.state.timetable


def get_preferences_service(request: Request) -> PreferencesService:
    return request.app.state.preferences


def require_trip_extractor(request: Request) -> TripExtractor:
    """Extractor dependency.

    Raises:
        ExtractionUnavailable: No LLM key configured
    """
    extractor = request.app.state.extractor
    if extractor is None:
        raise ExtractionUnavailable("Trip extraction is not configured")
    return extractor
