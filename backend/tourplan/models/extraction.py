"""Trip-detail extraction models."""

from typing import Any

from pydantic import Field

from backend.tourplan.models.common import CamelModel


class TripExtraction(CamelModel):
    """Structured trip fields; any may be missing."""

    origin: str | None = None
    destination: str | None = None
    departure_date: str | None = None
    departure_time: str | None = None

    def missing_fields(self) -> list[str]:
        """Caller-facing names of fields that are still empty, in fixed order."""
        missing = []
        for field_name, info in type(self).model_fields.items():
            if not getattr(self, field_name):
                missing.append(info.alias or field_name)
        return missing


class TripExtractionResult(CamelModel):
    """Merged extraction plus the raw LLM object."""

    extracted: TripExtraction
    missing_fields: list[str]
    raw: dict[str, Any]


class ExtractRequest(CamelModel):
    """POST /travel/extract body."""

    message: str = Field(..., min_length=1, max_length=2000)
    defaults: TripExtraction | None = None
