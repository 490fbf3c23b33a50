"""
Event ingestion.

Endpoints:
  POST /api/track — record one pageview or custom event (no auth; the
                    beacon carries the public site id)
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from privalytics.core.config import settings
from privalytics.core.database import get_write_db
from privalytics.core.identity import get_client_ip
from privalytics.core.limiter import limiter, track_limit
from privalytics.services.event_service import Beacon, UnknownSiteError, record_event

router = APIRouter()


class TrackRequest(BaseModel):
    """
    Beacon body. Only a missing siteId is an error; optional fields that
    arrive with the wrong type are dropped so the event is still recorded.
    """

    model_config = ConfigDict(populate_by_name=True)

    site_id: str | None = Field(default=None, alias="siteId")
    type: str | None = None
    path: str | None = None
    referrer: str | None = None
    screen_width: int | None = Field(default=None, alias="screenWidth")

    @field_validator("site_id", "type", "path", "referrer", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str | None:
        if isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool) and v:
            return str(v)
        return None

    @field_validator("screen_width", mode="before")
    @classmethod
    def coerce_width(cls, v: Any) -> int | None:
        if isinstance(v, bool):
            return None
        try:
            width = int(float(v))
        except (TypeError, ValueError, OverflowError):
            return None
        return width if width >= 0 else None


@router.post(
    "/track",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Record a tracked event",
)
@limiter.limit(track_limit)
async def track(
    request: Request,
    body: TrackRequest | None = None,
    db: AsyncSession = Depends(get_write_db),
):
    body = body or TrackRequest()
    if not body.site_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Site ID required",
        )

    country = (
        request.headers.get(settings.COUNTRY_HEADER) if settings.COUNTRY_HEADER else None
    )
    beacon = Beacon(
        site_id=body.site_id,
        client_ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        event_type=body.type,
        path=body.path,
        referrer=body.referrer,
        screen_width=body.screen_width,
        country=country,
    )

    try:
        await record_event(db, beacon, validate_site=settings.VALIDATE_SITE_ID)
    except UnknownSiteError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Unknown site",
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
