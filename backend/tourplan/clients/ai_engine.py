"""Stateless HTTP client for the AI engine REST surface.

One call per operation (combined views issue one per underlying operation), fixed
timeout, no retries and no caching. Failures are raised as ``UpstreamUnavailable``
subclasses; composing retry or circuit breaking is left to
``backend.tourplan.clients.resilience``.
"""

import logging
import time
import uuid
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from backend.tourplan.errors import (
    AIEngineConnectionError,
    AIEngineDecodeError,
    AIEngineTimeoutError,
    AIEngineUpstreamError,
    UpstreamUnavailable,
)
from backend.tourplan.models.ai_engine import (
    ChatContext,
    ChatRequest,
    ChatResponse,
    CrowdPredictionRequest,
    CrowdPredictionResponse,
    EventImpactRequest,
    EventImpactResponse,
    ExplainResponse,
    GoldenHourRequest,
    GoldenHourResponse,
    GraphResponse,
    HealthResponse,
    HolidayCheck,
    LightQualityView,
    LocationInfo,
    NearbyLocationsResponse,
    OptimalVisitTime,
    RecommendationRequest,
    RecommendationResponse,
    SunPositionResponse,
    TimeWindowLocal,
    VisitWindow,
)
from backend.tourplan.models.tour_plan import TourPlanEngineRequest, TourPlanEngineResponse
from backend.tourplan.utils.logging import StructuredUpstreamLogger
from backend.tourplan.utils.metrics import UpstreamMetrics

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SERVICE_NAME = "ai_engine"


class Endpoints:
    """AI engine endpoint paths."""

    chat = "/api/v1/chat"
    tour_plan_generate = "/api/v1/tour-plan/generate"
    tour_plan_refine = "/api/v1/tour-plan/refine"
    recommend = "/api/v1/recommend"
    explain = "/api/v1/explain"
    nearby_locations = "/api/v1/locations/nearby"
    crowd = "/api/v1/crowd"
    event_impact = "/api/v1/events/impact"
    physics_golden_hour = "/api/v1/physics/golden-hour"
    sun_position = "/api/v1/physics/sun-position"
    health = "/api/v1/health"
    graph = "/api/v1/graph"


def _request_id() -> str:
    """Generate a unique request ID for tracing."""
    return f"ai-{uuid.uuid4().hex[:12]}"


def _error_detail(response: httpx.Response) -> tuple[str | None, Any]:
    """Extract the engine's ``detail`` message and the decoded body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None, response.text or None

    if isinstance(body, dict) and isinstance(body.get("detail"), str):
        return body["detail"], body
    return None, body


class AIEngineClient:
    """Typed client for the AI engine."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
        metrics: UpstreamMetrics | None = None,
        call_logger: StructuredUpstreamLogger | None = None,
    ) -> None:
        """Initialize client.

        Args:
            base_url: Engine base URL (e.g. http://localhost:8001)
            timeout_seconds: Timeout applied to every call
            client: Optional shared httpx client (for connection reuse and mocks)
            metrics: Metrics recorder (optional, defaults to no-op)
            call_logger: Structured call logger (optional)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={"Content-Type": "application/json", "Accept": "application/json"}
        )
        self._metrics = metrics or UpstreamMetrics()
        self._call_logger = call_logger or StructuredUpstreamLogger(SERVICE_NAME)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Issue one HTTP call and return the decoded JSON body.

        Raises:
            AIEngineTimeoutError: Call exceeded the timeout
            AIEngineConnectionError: Connection refused or other transport failure
            AIEngineUpstreamError: Engine answered with a non-2xx status
            AIEngineDecodeError: Body is not JSON
        """
        request_id = _request_id()
        start = time.monotonic()

        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                json=json,
                params=params,
                headers={"X-Request-ID": request_id},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            self._record(operation, "timeout", start, request_id, error_reason="timeout")
            raise AIEngineTimeoutError("AI Engine request timed out") from e
        except httpx.ConnectError as e:
            self._record(operation, "error", start, request_id, error_reason="connection_refused")
            raise AIEngineConnectionError("AI Engine service is unavailable") from e
        except httpx.TransportError as e:
            self._record(operation, "error", start, request_id, error_reason=type(e).__name__)
            raise AIEngineConnectionError(f"AI Engine {operation} failed: {e}") from e

        if response.is_error:
            detail, body = _error_detail(response)
            self._record(
                operation,
                "upstream_error",
                start,
                request_id,
                status_code=response.status_code,
                error_reason=detail,
            )
            raise AIEngineUpstreamError(
                detail or f"AI Engine {operation} failed",
                upstream_status=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as e:
            self._record(operation, "decode_error", start, request_id, error_reason="invalid_json")
            raise AIEngineDecodeError(f"AI Engine {operation} returned invalid JSON") from e

        self._record(operation, "success", start, request_id, status_code=response.status_code)
        return data

    def _record(
        self,
        operation: str,
        outcome: str,
        start: float,
        request_id: str,
        status_code: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        latency_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(SERVICE_NAME, operation, outcome, latency_ms)
        if outcome != "success":
            self._metrics.inc_error(SERVICE_NAME, outcome)
        self._call_logger.log_call(
            operation,
            outcome,
            latency_ms,
            request_id=request_id,
            status_code=status_code,
            error_reason=error_reason,
        )

    def _parse(self, model: type[ModelT], data: Any, operation: str) -> ModelT:
        """Validate a decoded body against the expected response model."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"AI Engine {operation} response failed validation: {e.error_count()} errors")
            raise AIEngineDecodeError(
                f"AI Engine {operation} returned an unexpected response"
            ) from e

    # Chat

    async def chat(
        self,
        message: str,
        thread_id: str | None = None,
        context: ChatContext | None = None,
    ) -> ChatResponse:
        """Send a message to the agentic chat system."""
        request = ChatRequest(message=message, thread_id=thread_id, context=context)
        data = await self._request(
            "chat", "POST", Endpoints.chat, json=request.model_dump(mode="json", exclude_none=True)
        )
        return self._parse(ChatResponse, data, "chat")

    # Tour plans

    async def generate_tour_plan(self, request: TourPlanEngineRequest) -> TourPlanEngineResponse:
        """Start a new planning conversation (the engine mints the thread id)."""
        data = await self._request(
            "tour_plan_generate",
            "POST",
            Endpoints.tour_plan_generate,
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return self._parse(TourPlanEngineResponse, data, "tour_plan_generate")

    async def refine_tour_plan(self, request: TourPlanEngineRequest) -> TourPlanEngineResponse:
        """Continue an existing planning conversation."""
        data = await self._request(
            "tour_plan_refine",
            "POST",
            Endpoints.tour_plan_refine,
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return self._parse(TourPlanEngineResponse, data, "tour_plan_refine")

    # Recommendations

    async def recommend(self, request: RecommendationRequest) -> RecommendationResponse:
        """Get personalized location recommendations."""
        data = await self._request(
            "recommend",
            "POST",
            Endpoints.recommend,
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return self._parse(RecommendationResponse, data, "recommend")

    async def explain(
        self,
        location_name: str,
        user_lat: float | None = None,
        user_lng: float | None = None,
    ) -> ExplainResponse:
        """Get the reasoning behind a location recommendation."""
        params: dict[str, Any] = {}
        if user_lat is not None:
            params["user_lat"] = user_lat
        if user_lng is not None:
            params["user_lng"] = user_lng

        data = await self._request(
            "explain",
            "GET",
            f"{Endpoints.explain}/{quote(location_name, safe='')}",
            params=params,
        )
        return self._parse(ExplainResponse, data, "explain")

    async def nearby_locations(
        self,
        lat: float,
        lng: float,
        top_k: int | None = None,
        max_distance_km: float | None = None,
    ) -> NearbyLocationsResponse:
        """List locations near a point."""
        params: dict[str, Any] = {"lat": lat, "lng": lng}
        if top_k is not None:
            params["top_k"] = top_k
        if max_distance_km is not None:
            params["max_distance_km"] = max_distance_km

        data = await self._request(
            "nearby_locations", "GET", Endpoints.nearby_locations, params=params
        )
        return self._parse(NearbyLocationsResponse, data, "nearby_locations")

    # CrowdCast

    async def crowd_prediction(self, request: CrowdPredictionRequest) -> CrowdPredictionResponse:
        """Predict crowd level for a location type at a time."""
        data = await self._request(
            "crowd",
            "POST",
            Endpoints.crowd,
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return self._parse(CrowdPredictionResponse, data, "crowd")

    # Event sentinel

    async def event_impact(self, request: EventImpactRequest) -> EventImpactResponse:
        """Analyze holiday/event impact on a visit."""
        data = await self._request(
            "event_impact",
            "POST",
            Endpoints.event_impact,
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return self._parse(EventImpactResponse, data, "event_impact")

    async def check_holiday(self, location_name: str, target_date: str) -> HolidayCheck:
        """Condense an event impact analysis into holiday flags."""
        impact = await self.event_impact(
            EventImpactRequest(location_name=location_name, target_date=target_date)
        )
        categories = (impact.temporal_context or {}).get("categories") or []
        return HolidayCheck(
            is_poya=impact.is_poya_day,
            is_holiday="Public" in categories,
            is_new_year_shutdown=impact.is_new_year_shutdown,
            crowd_modifier=impact.predicted_crowd_modifier,
            warnings=impact.travel_advice_strings,
        )

    # Golden hour / physics

    async def golden_hour(self, request: GoldenHourRequest) -> GoldenHourResponse:
        """Compute golden hour windows by coordinates."""
        data = await self._request(
            "golden_hour",
            "POST",
            Endpoints.physics_golden_hour,
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return self._parse(GoldenHourResponse, data, "golden_hour")

    async def golden_hour_by_location(
        self,
        location_name: str,
        date: str | None = None,
        include_current_position: bool | None = None,
    ) -> GoldenHourResponse:
        """Compute golden hour windows by location name."""
        params: dict[str, Any] = {}
        if date:
            params["date"] = date
        if include_current_position is not None:
            params["include_current_position"] = str(include_current_position).lower()

        data = await self._request(
            "golden_hour_by_location",
            "GET",
            f"{Endpoints.physics_golden_hour}/{quote(location_name, safe='')}",
            params=params,
        )
        return self._parse(GoldenHourResponse, data, "golden_hour_by_location")

    async def sun_position(
        self,
        latitude: float,
        longitude: float,
        elevation_m: float | None = None,
    ) -> SunPositionResponse:
        """Get the current sun position."""
        params: dict[str, Any] = {"latitude": latitude, "longitude": longitude}
        if elevation_m is not None:
            params["elevation_m"] = elevation_m

        data = await self._request("sun_position", "GET", Endpoints.sun_position, params=params)
        return self._parse(SunPositionResponse, data, "sun_position")

    async def current_light_quality(self, latitude: float, longitude: float) -> LightQualityView:
        """Condense the current sun position into a light quality view."""
        position = await self.sun_position(latitude, longitude)
        return LightQualityView(
            quality=position.light_quality,
            is_daylight=position.is_daylight,
            elevation=position.elevation_deg,
            azimuth=position.azimuth_deg,
        )

    # Health

    async def health(self) -> HealthResponse:
        """Get the engine health report."""
        data = await self._request("health", "GET", Endpoints.health)
        return self._parse(HealthResponse, data, "health")

    async def is_available(self) -> bool:
        """Check whether the engine reports itself healthy."""
        try:
            report = await self.health()
        except UpstreamUnavailable:
            return False
        return report.status == "healthy"

    async def graph(self) -> GraphResponse:
        """Get the engine's agent graph as a Mermaid diagram."""
        data = await self._request("graph", "GET", Endpoints.graph)
        return self._parse(GraphResponse, data, "graph")

    # Combined views

    async def location_info(
        self,
        location_name: str,
        target_date: str | None = None,
        user_lat: float | None = None,
        user_lng: float | None = None,
    ) -> LocationInfo:
        """Explain a location; with a date, add event impact and golden hour if available.

        Only the explanation is required. Event impact and golden hour failures are
        logged and left out of the result.
        """
        explanation = await self.explain(location_name, user_lat=user_lat, user_lng=user_lng)
        info = LocationInfo(explanation=explanation)
        if not target_date:
            return info

        try:
            info.event_impact = await self.event_impact(
                EventImpactRequest(location_name=location_name, target_date=target_date)
            )
        except UpstreamUnavailable as e:
            logger.warning(f"Event impact unavailable for {location_name}: {e}")

        try:
            info.golden_hour = await self.golden_hour_by_location(location_name, date=target_date)
        except UpstreamUnavailable as e:
            logger.warning(f"Golden hour unavailable for {location_name}: {e}")

        return info

    async def optimal_visit_time(self, location_name: str, target_date: str) -> OptimalVisitTime:
        """Suggest when to visit from golden hour windows and the crowd modifier."""
        golden_hour = await self.golden_hour_by_location(location_name, date=target_date)
        impact = await self.event_impact(
            EventImpactRequest(location_name=location_name, target_date=target_date)
        )

        morning = _visit_window(golden_hour.morning_golden_hour)
        modifier = impact.predicted_crowd_modifier
        if modifier > 2:
            crowd_status = "HIGH"
            recommended_time = f"Before {morning.start} (arrive early due to high crowds)"
        else:
            crowd_status = "MODERATE" if modifier > 1.5 else "LOW"
            recommended_time = morning.start

        return OptimalVisitTime(
            recommended_time=recommended_time,
            golden_hour_morning=morning,
            golden_hour_evening=_visit_window(golden_hour.evening_golden_hour),
            crowd_status=crowd_status,
            warnings=impact.travel_advice_strings,
        )


def _visit_window(window: TimeWindowLocal) -> VisitWindow:
    return VisitWindow(start=window.start_local or window.start, end=window.end_local or window.end)
