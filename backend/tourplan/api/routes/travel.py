"""Free-text trip detail extraction endpoint."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from backend.tourplan.api.auth import get_current_user
from backend.tourplan.api.deps import require_trip_extractor
from backend.tourplan.api.envelope import success_body
from backend.tourplan.llm.extractor import TripExtractor
from backend.tourplan.models.extraction import ExtractRequest

router = APIRouter(prefix="/travel", tags=["travel"])


@router.post("/extract")
async def extract_trip_details(
    body: ExtractRequest,
    user_id: Annotated[str, Depends(get_current_user)],
    extractor: Annotated[TripExtractor, Depends(require_trip_extractor)],
) -> dict[str, Any]:
    """Pull origin, destination, departure date and time out of a message.

    ``defaults`` fill any field the message does not mention; ``missingFields``
    lists what is still unknown so the caller can ask a follow-up question.
    """
    result = await extractor.extract(body.message, seed=body.defaults)
    return success_body(result)
