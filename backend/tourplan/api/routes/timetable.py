"""Transit timetable lookup endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from backend.tourplan.api.deps import get_timetable_client
from backend.tourplan.clients.timetable import TimetableClient
from backend.tourplan.models.timetable import TimetableRequest

router = APIRouter(tags=["timetable"])


@router.get("/timetable")
async def get_timetable(
    request: Annotated[TimetableRequest, Query()],
    client: Annotated[TimetableClient, Depends(get_timetable_client)],
) -> JSONResponse:
    """Timetable for one service departure.

    Returns:
        200 with the timetable when found
        400 with the same body shape (``success: false`` plus ``error``) otherwise
    """
    timetable = await client.get_timetable(request)
    return JSONResponse(
        status_code=status.HTTP_200_OK if timetable.success else status.HTTP_400_BAD_REQUEST,
        content={"success": timetable.success, "data": timetable.model_dump(mode="json")},
    )
