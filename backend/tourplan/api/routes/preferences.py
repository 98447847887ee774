"""User preference score endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from backend.tourplan.api.auth import get_current_user
from backend.tourplan.api.deps import get_preferences_service
from backend.tourplan.api.envelope import success_body
from backend.tourplan.models.preferences import PreferenceScoresUpdate
from backend.tourplan.services.preferences import PreferencesService

router = APIRouter(prefix="/preferences", tags=["preferences"])

UserId = Annotated[str, Depends(get_current_user)]
Service = Annotated[PreferencesService, Depends(get_preferences_service)]


@router.get("/scores")
async def get_scores(user_id: UserId, service: Service) -> dict[str, Any]:
    """Current preference scores (defaults on first access)."""
    scores = await service.get_scores(user_id)
    return success_body(scores)


@router.put("/scores")
async def update_scores(
    body: PreferenceScoresUpdate, user_id: UserId, service: Service
) -> dict[str, Any]:
    """Update some or all preference scores."""
    scores = await service.update_scores(user_id, body)
    return success_body(scores, message="Preferences updated successfully")
