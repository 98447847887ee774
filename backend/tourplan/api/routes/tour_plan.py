"""Tour plan endpoints - generate, refine, accept, session status."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from backend.tourplan.api.auth import get_current_user
from backend.tourplan.api.deps import get_orchestrator
from backend.tourplan.api.envelope import success_body
from backend.tourplan.models.tour_plan import (
    AcceptPlanRequest,
    GeneratePlanRequest,
    RefinePlanRequest,
)
from backend.tourplan.orchestration.tour_plan import TourPlanOrchestrator

router = APIRouter(prefix="/tour-plan", tags=["tour-plan"])

UserId = Annotated[str, Depends(get_current_user)]
Orchestrator = Annotated[TourPlanOrchestrator, Depends(get_orchestrator)]


@router.post("/generate", status_code=status.HTTP_200_OK)
async def generate_plan(
    body: GeneratePlanRequest,
    user_id: UserId,
    orchestrator: Orchestrator,
) -> dict[str, Any]:
    """Generate a multi-day itinerary for the selected locations.

    Starts a new conversation with the AI engine; the returned ``threadId`` is
    used for later refine/accept calls.
    """
    result = await orchestrator.generate(
        user_id,
        body.selected_locations,
        body.start_date,
        body.end_date,
        preferences=body.preferences,
        message=body.message,
    )
    return success_body(result, message="Tour plan generated successfully")


@router.post("/refine", status_code=status.HTTP_200_OK)
async def refine_plan(
    body: RefinePlanRequest,
    user_id: UserId,
    orchestrator: Orchestrator,
) -> dict[str, Any]:
    """Refine an existing plan with a follow-up message."""
    result = await orchestrator.refine(
        user_id,
        body.thread_id,
        body.message,
        body.selected_locations,
        body.start_date,
        body.end_date,
        preferences=body.preferences,
    )
    return success_body(result, message="Tour plan refined successfully")


@router.post("/accept", status_code=status.HTTP_201_CREATED)
async def accept_plan(
    body: AcceptPlanRequest,
    user_id: UserId,
    orchestrator: Orchestrator,
) -> dict[str, Any]:
    """Save an accepted itinerary as a trip."""
    result = await orchestrator.accept(
        user_id,
        body.thread_id,
        body.title,
        body.description,
        body.itinerary,
        metadata=body.metadata,
    )
    return success_body(result, message=result.message)


@router.get("/session/{thread_id}", status_code=status.HTTP_200_OK)
async def get_session(
    thread_id: str,
    user_id: UserId,
    orchestrator: Orchestrator,
) -> dict[str, Any]:
    """Report whether a planning conversation is still active."""
    result = await orchestrator.get_session(user_id, thread_id)
    return success_body(result)
