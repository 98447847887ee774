"""Transit timetable models."""

from pydantic import BaseModel, Field

from backend.tourplan.models.common import EngineModel


class TimetableRequest(BaseModel):
    """Timetable lookup for one service departure."""

    service_id: str = Field(..., min_length=1)
    departure_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    departure_time: str = Field(..., pattern=r"^([01]?\d|2[0-3]):[0-5]\d$")


class TimetableStop(EngineModel):
    """Stop along a scheduled run."""

    stop_name: str
    arrival_time: str
    departure_time: str | None = None


class ScheduleEntry(EngineModel):
    """Scheduled run of a service."""

    scheduled_time: str
    estimated_time: str | None = None
    stops: list[TimetableStop] | None = None


class Timetable(EngineModel):
    """Timetable lookup outcome.

    ``success`` is always present. Failed lookups echo the request fields and carry
    a non-empty ``error``.
    """

    success: bool
    service_id: str
    departure_date: str
    departure_time: str
    operator: str | None = None
    mode: str | None = None
    schedule: list[ScheduleEntry] | None = None
    message: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, request: TimetableRequest, error: str) -> "Timetable":
        """Build the failure result for a request."""
        return cls(
            success=False,
            service_id=request.service_id,
            departure_date=request.departure_date,
            departure_time=request.departure_time,
            error=error or "Failed to fetch timetable",
        )
