"""
Health check endpoints — used by load balancers and monitoring.

/health       — liveness: is the process running?
/health/ready — readiness: can the store answer queries?
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from privalytics.core.database import get_store

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    timestamp: str


@router.get("", response_model=HealthResponse, summary="Liveness probe")
async def health():
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@router.get("/ready", summary="Readiness probe")
async def readiness(request: Request):
    connected = await get_store(request).ping()
    return JSONResponse(
        status_code=200 if connected else 503,
        content={
            "status": "ready" if connected else "degraded",
            "database": "connected" if connected else "unreachable",
        },
    )
