"""Common types shared across all models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class CamelModel(BaseModel):
    """Model exposed to front-end callers with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EngineModel(BaseModel):
    """Model exchanged with the AI engine.

    Unknown keys are kept so engine payloads round-trip to callers verbatim.
    """

    model_config = ConfigDict(extra="allow")


class PreferenceScores(BaseModel):
    """Interest scores (0-1) used to bias recommendations and plans."""

    history: float = Field(0.5, ge=0, le=1)
    adventure: float = Field(0.5, ge=0, le=1)
    nature: float = Field(0.5, ge=0, le=1)
    relaxation: float = Field(0.5, ge=0, le=1)

