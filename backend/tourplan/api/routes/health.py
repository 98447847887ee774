"""Health check endpoints.

- /health: liveness, always 200 while the process runs
- /healthz: readiness, reports AI engine reachability
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from backend.tourplan.api.deps import get_ai_engine
from backend.tourplan.clients.ai_engine import AIEngineClient

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    engine: Annotated[AIEngineClient, Depends(get_ai_engine)],
) -> dict[str, Any] | JSONResponse:
    """Readiness check.

    Returns:
        200 with component status if the AI engine is reachable and healthy
        503 otherwise
    """
    engine_ok = await engine.is_available()

    response_body = {
        "status": "ok" if engine_ok else "degraded",
        "components": {
            "ai_engine": "ok" if engine_ok else "unavailable",
        },
    }

    if not engine_ok:
        return JSONResponse(content=response_body, status_code=503)

    return response_body
