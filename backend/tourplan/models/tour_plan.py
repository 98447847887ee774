"""Tour plan models: caller requests, engine itinerary items, persisted trips."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from backend.tourplan.models.common import DATE_PATTERN, CamelModel, EngineModel


class EngineLocation(EngineModel):
    """Selected location in the AI engine's wire shape."""

    name: str
    latitude: float
    longitude: float
    image_url: str | None = None
    distance_km: float | None = None


class SelectedLocation(CamelModel):
    """Location chosen by the caller for a single generate/refine request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=2, max_length=200)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    image_url: str | None = Field(None, alias="imageUrl")
    distance_km: float | None = Field(None, ge=0, alias="distance_km")

    def to_engine(self) -> EngineLocation:
        """Rename caller fields to the engine's wire names."""
        return EngineLocation(
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            image_url=self.image_url or None,
            distance_km=self.distance_km,
        )


class ItineraryItem(EngineModel):
    """One scheduled activity as produced by the AI engine.

    Every field is optional: accepted itineraries come back from callers, who may
    have edited them. Values are kept as sent; ``day`` and ``order`` are read as
    integers only at derivation time.
    """

    time: str | None = None
    location: str | None = None
    activity: str | None = None
    duration_minutes: int | float | None = None
    crowd_prediction: int | float | str | None = None
    lighting_quality: str | None = None
    notes: str | None = None
    day: int | float | str | None = None
    order: int | float | str | None = None


class TourPlanEngineRequest(EngineModel):
    """Body of the engine's tour-plan generate/refine endpoints."""

    selected_locations: list[EngineLocation]
    start_date: str
    end_date: str
    thread_id: str | None = None
    message: str | None = None
    preferences: list[str] | None = None
    preference_scores: dict[str, float] | None = None


class TourPlanEngineResponse(EngineModel):
    """Engine answer for a generate/refine turn."""

    thread_id: str
    response: str = ""
    itinerary: list[ItineraryItem] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    constraints: list[Any] | None = None
    warnings: list[Any] | None = None
    tips: list[Any] | None = None


class PlanResult(CamelModel):
    """Generate/refine result returned to the caller."""

    thread_id: str
    response: str
    itinerary: list[ItineraryItem]
    metadata: dict[str, Any]
    constraints: list[Any] | None = None
    warnings: list[Any] | None = None
    tips: list[Any] | None = None

    @classmethod
    def from_engine(cls, engine: TourPlanEngineResponse) -> "PlanResult":
        """Copy the engine payload verbatim, keyed by the engine-assigned thread."""
        return cls(
            thread_id=engine.thread_id,
            response=engine.response,
            itinerary=engine.itinerary,
            metadata=engine.metadata,
            constraints=engine.constraints,
            warnings=engine.warnings,
            tips=engine.tips,
        )


class GeneratePlanRequest(CamelModel):
    """POST /tour-plan/generate body."""

    selected_locations: list[SelectedLocation] = Field(..., min_length=1, max_length=20)
    start_date: str = Field(..., pattern=DATE_PATTERN)
    end_date: str = Field(..., pattern=DATE_PATTERN)
    preferences: list[str] | None = None
    message: str | None = Field(None, max_length=1000)


class RefinePlanRequest(CamelModel):
    """POST /tour-plan/refine body."""

    thread_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1, max_length=1000)
    selected_locations: list[SelectedLocation] = Field(..., min_length=1)
    start_date: str = Field(..., pattern=DATE_PATTERN)
    end_date: str = Field(..., pattern=DATE_PATTERN)
    preferences: list[str] | None = None


class AcceptPlanRequest(CamelModel):
    """POST /tour-plan/accept body."""

    thread_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = Field(None, max_length=1000)
    itinerary: list[ItineraryItem] = Field(..., min_length=1)
    metadata: dict[str, Any] | None = None


class TripItineraryItem(CamelModel):
    """Persisted itinerary entry."""

    order: int
    time: str | None = None
    location_name: str | None = None
    activity: str | None = None
    duration_minutes: int | float | None = None
    notes: str | None = None
    crowd_prediction: int | float | str | None = None
    lighting_quality: str | None = None


class TripSpec(CamelModel):
    """Everything the trip store needs to record an accepted plan."""

    user_id: str
    title: str
    description: str | None = None
    destinations: list[str]
    start_date: datetime
    end_date: datetime
    itinerary: list[TripItineraryItem]
    generated_by: str = "ai"
    ai_metadata: dict[str, Any] = Field(default_factory=dict)


class SavedTrip(TripSpec):
    """Trip as recorded by the trip store."""

    trip_id: str
    created_at: datetime


class AcceptResult(CamelModel):
    """POST /tour-plan/accept payload."""

    trip_id: str
    message: str = "Tour plan saved successfully"


class SessionStatus(str, Enum):
    """Conversation thread status as seen by its owner."""

    active = "active"
    expired = "expired"
    unknown = "unknown"


class SessionView(CamelModel):
    """GET /tour-plan/session/{threadId} payload."""

    thread_id: str
    status: SessionStatus
    message: str
