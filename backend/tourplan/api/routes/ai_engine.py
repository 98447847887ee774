"""AI engine proxy endpoints.

Each route is a thin pass-through to an AI engine operation, run under the shared
resilience policy. Health and status are public; everything else needs a user.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from backend.tourplan.api.auth import get_current_user
from backend.tourplan.api.deps import get_ai_engine, get_resilience_policy
from backend.tourplan.api.envelope import success_body
from backend.tourplan.clients.ai_engine import AIEngineClient
from backend.tourplan.clients.resilience import ResiliencePolicy
from backend.tourplan.models.ai_engine import (
    ChatRequest,
    CrowdPredictionRequest,
    EventImpactRequest,
    GoldenHourRequest,
    RecommendationRequest,
)
from backend.tourplan.models.common import DATE_PATTERN

router = APIRouter(prefix="/ai", tags=["ai-engine"])

UserId = Annotated[str, Depends(get_current_user)]
Engine = Annotated[AIEngineClient, Depends(get_ai_engine)]
Policy = Annotated[ResiliencePolicy, Depends(get_resilience_policy)]


# Health and graph (public)


@router.get("/health")
async def engine_health(engine: Engine, policy: Policy) -> dict[str, Any]:
    """AI engine health report."""
    report = await policy.run("health", engine.health)
    return success_body(report, message="AI Engine health check completed")


@router.get("/status")
async def engine_status(engine: Engine) -> dict[str, Any]:
    """Whether the AI engine reports itself healthy. Never fails."""
    available = await engine.is_available()
    message = "AI Engine is available" if available else "AI Engine is unavailable"
    return success_body({"available": available}, message=message)


@router.get("/graph")
async def engine_graph(engine: Engine, policy: Policy) -> dict[str, Any]:
    """Mermaid diagram of the engine's agent graph."""
    result = await policy.run("graph", engine.graph)
    return success_body(result, message="AI Engine graph retrieved")


# Chat and recommendations


@router.post("/chat")
async def chat(body: ChatRequest, user_id: UserId, engine: Engine, policy: Policy) -> dict[str, Any]:
    """Send a message to the agentic chat system."""
    result = await policy.run(
        "chat", lambda: engine.chat(body.message, thread_id=body.thread_id, context=body.context)
    )
    return success_body(result, message="Chat response generated")


@router.post("/recommend")
async def recommend(
    body: RecommendationRequest, user_id: UserId, engine: Engine, policy: Policy
) -> dict[str, Any]:
    """Get personalized location recommendations."""
    request = body if body.user_id else body.model_copy(update={"user_id": user_id})
    result = await policy.run("recommend", lambda: engine.recommend(request))
    return success_body(result, message="Recommendations generated")


@router.get("/explain/{location}")
async def explain(
    location: str,
    user_id: UserId,
    engine: Engine,
    policy: Policy,
    user_lat: Annotated[float | None, Query(ge=-90, le=90)] = None,
    user_lng: Annotated[float | None, Query(ge=-180, le=180)] = None,
) -> dict[str, Any]:
    """Explain why a location is recommended."""
    result = await policy.run(
        "explain", lambda: engine.explain(location, user_lat=user_lat, user_lng=user_lng)
    )
    return success_body(result, message="Explanation generated")


@router.get("/locations/nearby")
async def nearby_locations(
    user_id: UserId,
    engine: Engine,
    policy: Policy,
    lat: Annotated[float, Query(ge=-90, le=90)],
    lng: Annotated[float, Query(ge=-180, le=180)],
    top_k: Annotated[int | None, Query(ge=1, le=50)] = None,
    max_distance_km: Annotated[float | None, Query(gt=0, le=500)] = None,
) -> dict[str, Any]:
    """List locations near a point."""
    result = await policy.run(
        "nearby_locations",
        lambda: engine.nearby_locations(lat, lng, top_k=top_k, max_distance_km=max_distance_km),
    )
    return success_body(result, message="Nearby locations retrieved")


# CrowdCast and events


@router.post("/crowd")
async def crowd_prediction(
    body: CrowdPredictionRequest, user_id: UserId, engine: Engine, policy: Policy
) -> dict[str, Any]:
    """Predict crowd level for a location type at a time."""
    result = await policy.run("crowd", lambda: engine.crowd_prediction(body))
    return success_body(result, message="Crowd prediction generated")


@router.post("/events/impact")
async def event_impact(
    body: EventImpactRequest, user_id: UserId, engine: Engine, policy: Policy
) -> dict[str, Any]:
    """Analyze holiday and event impact on a visit."""
    result = await policy.run("event_impact", lambda: engine.event_impact(body))
    return success_body(result, message="Event impact analysis completed")


@router.get("/events/check-holiday")
async def check_holiday(
    user_id: UserId,
    engine: Engine,
    policy: Policy,
    location_name: Annotated[str, Query(min_length=1)],
    target_date: Annotated[str, Query(pattern=DATE_PATTERN)],
) -> dict[str, Any]:
    """Holiday flags for a location on a date."""
    result = await policy.run(
        "check_holiday", lambda: engine.check_holiday(location_name, target_date)
    )
    return success_body(result, message="Holiday check completed")


# Golden hour / physics


@router.post("/physics/golden-hour")
async def golden_hour(
    body: GoldenHourRequest, user_id: UserId, engine: Engine, policy: Policy
) -> dict[str, Any]:
    """Golden hour windows by coordinates."""
    result = await policy.run("golden_hour", lambda: engine.golden_hour(body))
    return success_body(result, message="Golden hour calculated")


@router.get("/physics/golden-hour/{location}")
async def golden_hour_by_location(
    location: str,
    user_id: UserId,
    engine: Engine,
    policy: Policy,
    date: Annotated[str | None, Query(pattern=DATE_PATTERN)] = None,
    include_current_position: bool | None = None,
) -> dict[str, Any]:
    """Golden hour windows by location name."""
    result = await policy.run(
        "golden_hour_by_location",
        lambda: engine.golden_hour_by_location(
            location, date=date, include_current_position=include_current_position
        ),
    )
    return success_body(result, message="Golden hour calculated")


@router.get("/physics/sun-position")
async def sun_position(
    user_id: UserId,
    engine: Engine,
    policy: Policy,
    latitude: Annotated[float, Query(ge=-90, le=90)],
    longitude: Annotated[float, Query(ge=-180, le=180)],
    elevation_m: Annotated[float | None, Query(ge=0, le=3000)] = None,
) -> dict[str, Any]:
    """Current sun position."""
    result = await policy.run(
        "sun_position", lambda: engine.sun_position(latitude, longitude, elevation_m=elevation_m)
    )
    return success_body(result, message="Sun position calculated")


@router.get("/physics/light-quality")
async def light_quality(
    user_id: UserId,
    engine: Engine,
    policy: Policy,
    latitude: Annotated[float, Query(ge=-90, le=90)],
    longitude: Annotated[float, Query(ge=-180, le=180)],
) -> dict[str, Any]:
    """Current light quality for photography."""
    result = await policy.run(
        "light_quality", lambda: engine.current_light_quality(latitude, longitude)
    )
    return success_body(result, message="Light quality retrieved")


# Combined views


@router.get("/location-info/{location}")
async def location_info(
    location: str,
    user_id: UserId,
    engine: Engine,
    policy: Policy,
    target_date: Annotated[str | None, Query(pattern=DATE_PATTERN)] = None,
    user_lat: Annotated[float | None, Query(ge=-90, le=90)] = None,
    user_lng: Annotated[float | None, Query(ge=-180, le=180)] = None,
) -> dict[str, Any]:
    """Explanation plus, for a date, event impact and golden hour."""
    result = await policy.run(
        "location_info",
        lambda: engine.location_info(
            location, target_date=target_date, user_lat=user_lat, user_lng=user_lng
        ),
    )
    return success_body(result, message="Location info retrieved")


@router.get("/optimal-visit-time/{location}")
async def optimal_visit_time(
    location: str,
    user_id: UserId,
    engine: Engine,
    policy: Policy,
    target_date: Annotated[str, Query(pattern=DATE_PATTERN)],
) -> dict[str, Any]:
    """Best time to visit a location on a date."""
    result = await policy.run(
        "optimal_visit_time", lambda: engine.optimal_visit_time(location, target_date)
    )
    return success_body(result, message="Optimal visit time retrieved")
