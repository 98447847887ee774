"""Models package - re-exports for convenience."""

from backend.tourplan.models.common import (
    CamelModel,
    EngineModel,
    PreferenceScores,
)
from backend.tourplan.models.extraction import (
    ExtractRequest,
    TripExtraction,
    TripExtractionResult,
)
from backend.tourplan.models.preferences import PreferenceScoresUpdate
from backend.tourplan.models.timetable import Timetable, TimetableRequest
from backend.tourplan.models.tour_plan import (
    AcceptPlanRequest,
    AcceptResult,
    EngineLocation,
    GeneratePlanRequest,
    ItineraryItem,
    PlanResult,
    RefinePlanRequest,
    SavedTrip,
    SelectedLocation,
    SessionStatus,
    SessionView,
    TourPlanEngineRequest,
    TourPlanEngineResponse,
    TripItineraryItem,
    TripSpec,
)

__all__ = [
    # Common
    "CamelModel",
    "EngineModel",
    "PreferenceScores",
    # Tour plan
    "SelectedLocation",
    "EngineLocation",
    "ItineraryItem",
    "TourPlanEngineRequest",
    "TourPlanEngineResponse",
    "PlanResult",
    "GeneratePlanRequest",
    "RefinePlanRequest",
    "AcceptPlanRequest",
    "AcceptResult",
    "TripItineraryItem",
    "TripSpec",
    "SavedTrip",
    "SessionStatus",
    "SessionView",
    # Timetable
    "TimetableRequest",
    "Timetable",
    # Extraction
    "TripExtraction",
    "TripExtractionResult",
    "ExtractRequest",
    # Preferences
    "PreferenceScoresUpdate",
]
