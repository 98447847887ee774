"""Wire models for the AI engine REST surface.

Requests are validated before leaving the process; responses keep unknown keys so
the proxy routes can hand them to callers unchanged.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from backend.tourplan.models.common import EngineModel, PreferenceScores
from backend.tourplan.models.tour_plan import ItineraryItem


class Coordinates(BaseModel):
    """Latitude/longitude pair."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


# Chat (/api/v1/chat)


class ChatContext(BaseModel):
    """Optional context for a chat turn."""

    current_location: Coordinates | None = Field(None, alias="currentLocation")
    preferences: PreferenceScores | None = None

    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(BaseModel):
    """Chat turn sent to the engine."""

    message: str = Field(..., min_length=1, max_length=2000)
    thread_id: str | None = None
    stream: bool = False
    context: ChatContext | None = None


class ConstraintViolation(EngineModel):
    """Constraint raised by the engine while planning."""

    constraint_type: str
    description: str
    severity: str
    suggestion: str | None = None


class ChatResponse(EngineModel):
    """Engine answer to a chat turn."""

    query: str | None = None
    intent: str | None = None
    response: str
    itinerary: list[ItineraryItem] | None = None
    constraints: list[ConstraintViolation] | None = None
    reasoning_logs: list[dict[str, Any]] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


# Recommendations (/api/v1/recommend, /api/v1/explain, /api/v1/locations/nearby)


class RecommendationRequest(BaseModel):
    """Personalized recommendation query."""

    current_lat: float = Field(..., ge=-90, le=90)
    current_lng: float = Field(..., ge=-180, le=180)
    preferences: PreferenceScores | None = None
    top_k: int | None = Field(None, ge=1, le=10)
    max_distance_km: float | None = Field(None, ge=1, le=500)
    target_datetime: str | None = None
    outdoor_only: bool | None = None
    exclude_locations: list[str] | None = None
    user_id: str | None = None


class RecommendationItem(EngineModel):
    """Single ranked recommendation."""

    rank: int
    name: str
    latitude: float
    longitude: float
    distance_km: float | None = None
    similarity_score: float | None = None
    combined_score: float | None = None
    reasoning: str | None = None
    warnings: list[str] | None = None


class RecommendationResponse(EngineModel):
    """Ranked recommendations plus engine bookkeeping."""

    success: bool = True
    recommendations: list[RecommendationItem] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    reasoning_summary: str | None = None


class ExplainResponse(EngineModel):
    """Reasoning behind a location recommendation."""

    location_name: str
    found: bool


class NearbyLocation(EngineModel):
    """Location close to a query point."""

    name: str
    latitude: float
    longitude: float
    distance_km: float


class NearbyLocationsResponse(EngineModel):
    """Nearby locations around a query point."""

    success: bool = True
    locations: list[NearbyLocation] = Field(default_factory=list)
    total_found: int = 0


# CrowdCast (/api/v1/crowd)


class CrowdPredictionRequest(BaseModel):
    """Crowd prediction query."""

    location_type: str = Field(..., min_length=1)
    target_datetime: str
    is_poya: bool | None = None
    is_school_holiday: bool | None = None


class CrowdPredictionResponse(EngineModel):
    """Predicted crowd level."""

    crowd_level: float
    crowd_percentage: float
    crowd_status: Literal["LOW", "MODERATE", "HIGH", "EXTREME"]
    recommendation: str
    optimal_times: list[dict[str, Any]] | None = None


# Event sentinel (/api/v1/events/impact)


class EventImpactRequest(BaseModel):
    """Event/holiday impact query."""

    location_name: str = Field(..., min_length=1)
    target_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    activity_type: str | None = None


class EventImpactResponse(EngineModel):
    """Holiday and event impact on a visit."""

    is_legal_conflict: bool = False
    predicted_crowd_modifier: float = 1.0
    travel_advice_strings: list[str] = Field(default_factory=list)
    temporal_context: dict[str, Any] | None = None
    constraints: list[dict[str, Any]] = Field(default_factory=list)
    is_poya_day: bool = False
    is_new_year_shutdown: bool = False
    is_weekend: bool = False
    is_long_weekend: bool = False


class HolidayCheck(BaseModel):
    """Condensed holiday view derived from an event impact response."""

    is_poya: bool
    is_holiday: bool
    is_new_year_shutdown: bool
    crowd_modifier: float
    warnings: list[str]


# Golden hour / physics (/api/v1/physics/*)


class GoldenHourRequest(BaseModel):
    """Golden hour query by coordinates."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    elevation_m: float | None = Field(None, ge=0, le=3000)
    location_name: str | None = None
    include_current_position: bool | None = None


class TimeWindowLocal(EngineModel):
    """Golden/blue hour window."""

    start: str
    end: str
    start_local: str | None = None
    end_local: str | None = None
    duration_minutes: float | None = None


class GoldenHourResponse(EngineModel):
    """Golden hour windows for a day."""

    date: str
    timezone: str | None = None
    morning_golden_hour: TimeWindowLocal
    evening_golden_hour: TimeWindowLocal
    sunrise: str | None = None
    sunset: str | None = None
    warnings: list[str] = Field(default_factory=list)


class SunPositionResponse(EngineModel):
    """Current solar position."""

    timestamp: str | None = None
    local_time: str | None = None
    elevation_deg: float
    azimuth_deg: float
    is_daylight: bool
    light_quality: str


class LightQualityView(BaseModel):
    """Condensed light quality derived from a sun position response."""

    quality: str
    is_daylight: bool
    elevation: float
    azimuth: float


# Convenience views combining several engine calls


class LocationInfo(BaseModel):
    """Explanation plus best-effort event impact and golden hour for a date."""

    explanation: ExplainResponse
    event_impact: EventImpactResponse | None = None
    golden_hour: GoldenHourResponse | None = None


class VisitWindow(BaseModel):
    """Local start/end of a golden hour window."""

    start: str
    end: str


class OptimalVisitTime(BaseModel):
    """Suggested visit time from golden hour and expected crowds."""

    recommended_time: str
    golden_hour_morning: VisitWindow
    golden_hour_evening: VisitWindow
    crowd_status: Literal["LOW", "MODERATE", "HIGH"]
    warnings: list[str]


# Health and graph (/api/v1/health, /api/v1/graph)


class HealthResponse(EngineModel):
    """Engine health report."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str | None = None
    components: dict[str, Any] = Field(default_factory=dict)


class GraphResponse(EngineModel):
    """Mermaid diagram of the engine's agent graph."""

    diagram: str
