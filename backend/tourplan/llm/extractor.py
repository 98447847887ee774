"""LLM-based trip-detail extraction with OpenAI integration.

Security: Reads API key from settings (environment) only, never hardcoded.
"""

import json
import logging
import time
from typing import Any, Protocol

from openai import AsyncOpenAI

from backend.tourplan.config import Settings
from backend.tourplan.errors import MalformedResponseError, NoContentError
from backend.tourplan.models.extraction import TripExtraction, TripExtractionResult
from backend.tourplan.utils.metrics import UpstreamMetrics

logger = logging.getLogger(__name__)

SERVICE_NAME = "llm"

SYSTEM_PROMPT = (
    "You extract structured travel details. Return JSON with keys origin, destination, "
    "departure_date (YYYY-MM-DD), departure_time (HH:MM 24h). Use null for unknown. "
    "Do not guess stations; keep what user said."
)


class TripExtractor(Protocol):
    """Protocol for trip-detail extractors."""

    async def extract(
        self, message: str, seed: TripExtraction | None = None
    ) -> TripExtractionResult:
        """Pull origin, destination, departure date and time out of free text.

        Args:
            message: User's free-text request
            seed: Caller-supplied defaults kept when the LLM has no answer

        Returns:
            Merged extraction, the still-missing fields and the raw LLM object
        """
        ...


def normalize_value(value: Any) -> str | None:
    """Normalize an LLM field: null and blank strings are absent, scalars are stringified."""
    if value is None:
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    return str(value)


def merge_extraction(parsed: dict[str, Any], seed: TripExtraction | None) -> TripExtractionResult:
    """Merge LLM output over caller defaults; the LLM wins when it has a value."""
    seed = seed or TripExtraction()
    merged: dict[str, str | None] = {}
    for field_name in TripExtraction.model_fields:
        merged[field_name] = normalize_value(parsed.get(field_name)) or getattr(seed, field_name)

    extracted = TripExtraction(**merged)
    return TripExtractionResult(
        extracted=extracted,
        missing_fields=extracted.missing_fields(),
        raw=parsed,
    )


class OpenAITripExtractor:
    """OpenAI-backed extractor using JSON-mode, deterministic decoding."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        client: AsyncOpenAI | None = None,
        metrics: UpstreamMetrics | None = None,
    ):
        """Initialize OpenAI extractor.

        Args:
            api_key: OpenAI API key (read from environment)
            model: Model name to use (default: gpt-4o-mini)
            client: Optional preconfigured client (for tests)
            metrics: Metrics recorder (optional, defaults to no-op)
        """
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model
        self._metrics = metrics or UpstreamMetrics()
        logger.info(f"Trip extractor initialized with model {model}")

    async def extract(
        self, message: str, seed: TripExtraction | None = None
    ) -> TripExtractionResult:
        """Extract trip details with a single completion call.

        Raises:
            NoContentError: Completion returned no text
            MalformedResponseError: Completion text is not a JSON object
        """
        defaults = seed.model_dump(by_alias=True, exclude_none=True) if seed else {}
        start = time.monotonic()

        completion = await self.client.chat.completions.create(
            model=self.model,
            temperature=0,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps({"message": message, "defaults": defaults})},
            ],
        )
        self._metrics.record_latency(
            SERVICE_NAME, "extract_trip_details", "success", (time.monotonic() - start) * 1000
        )

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            self._metrics.inc_error(SERVICE_NAME, "no_content")
            raise NoContentError("No content returned from LLM")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            self._metrics.inc_error(SERVICE_NAME, "malformed")
            raise MalformedResponseError("Failed to parse LLM response") from e

        if not isinstance(parsed, dict):
            self._metrics.inc_error(SERVICE_NAME, "malformed")
            raise MalformedResponseError("Failed to parse LLM response")

        result = merge_extraction(parsed, seed)
        logger.info(f"Trip details extracted, missing fields: {result.missing_fields}")
        return result


def get_trip_extractor(settings: Settings) -> TripExtractor | None:
    """Factory function to get an extractor based on config.

    Returns:
        OpenAITripExtractor if an API key is configured, None otherwise
    """
    api_key = settings.openai_api_key

    if api_key and api_key.get_secret_value():
        return OpenAITripExtractor(api_key=api_key.get_secret_value(), model=settings.openai_model)

    logger.warning("No OpenAI API key configured, trip extraction is disabled")
    return None
