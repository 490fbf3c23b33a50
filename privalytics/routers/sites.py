"""
Site provisioning.

Endpoints:
  POST /api/sites — register a site; the response is the only time the
                    plaintext API key is shown
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from privalytics.core.database import get_write_db
from privalytics.core.limiter import limiter, register_limit
from privalytics.services.site_service import create_site

router = APIRouter()


# ── Schemas ────────────────────────────────────────────────────────────────────
class SiteCreate(BaseModel):
    # Optional so a missing field is reported as 400, not a schema error
    name: str | None = None
    domain: str | None = None


class SiteCreated(BaseModel):
    id: str
    name: str
    domain: str
    api_key: str

    model_config = {"from_attributes": True}


# ── Endpoints ──────────────────────────────────────────────────────────────────
@router.post(
    "/sites",
    response_model=SiteCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Register a site and issue its API key",
)
@limiter.limit(register_limit)
async def register_site(
    request: Request,
    body: SiteCreate,
    db: AsyncSession = Depends(get_write_db),
):
    if not body.name or not body.domain:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name and domain required",
        )

    return await create_site(db, name=body.name, domain=body.domain)
