"""Health and readiness endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...deps import DatabaseDependency
from ...schemas.system import HealthCheckResponse

router = APIRouter(tags=["system"])


@router.get(
    "/healthz",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def read_health(database: DatabaseDependency) -> HealthCheckResponse:
    """Return a heartbeat payload including record store reachability."""
    connected = await database.ping()
    return HealthCheckResponse(status="ok", database="connected" if connected else "unavailable")
