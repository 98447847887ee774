"""User preference models."""

from pydantic import BaseModel, Field


class PreferenceScoresUpdate(BaseModel):
    """Partial update of preference scores; omitted scores are left unchanged."""

    history: float | None = Field(None, ge=0, le=1)
    adventure: float | None = Field(None, ge=0, le=1)
    nature: float | None = Field(None, ge=0, le=1)
    relaxation: float | None = Field(None, ge=0, le=1)
