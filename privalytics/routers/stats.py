"""
Stats router — aggregate queries scoped to the site owning the API key.

Endpoints (all require the ``x-api-key`` header):
  GET /api/stats       → {visitors, views}
  GET /api/timeseries  → [{date, count}]
  GET /api/pages       → [{path, views, visitors}]   top 20
  GET /api/referrers   → [{domain, views}]           top 20
  GET /api/devices     → [{device, browser, views, visitors}]
"""

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from privalytics.core.database import get_db
from privalytics.core.limiter import limiter, stats_limit
from privalytics.core.logging import get_logger
from privalytics.core.security import get_current_site
from privalytics.models.site import Site
from privalytics.services import stats_service

router = APIRouter()
logger = get_logger(__name__)


# ── Schemas ────────────────────────────────────────────────────────────────────
class Summary(BaseModel):
    visitors: int
    views: int


class TimeseriesPoint(BaseModel):
    date: str
    count: int


class PageStats(BaseModel):
    path: str
    views: int
    visitors: int


class ReferrerStats(BaseModel):
    domain: str
    views: int


class DeviceStats(BaseModel):
    device: str | None
    browser: str | None
    views: int
    visitors: int


# ── Endpoints ──────────────────────────────────────────────────────────────────
@router.get("/stats", response_model=Summary, summary="Visitor and pageview totals")
@limiter.limit(stats_limit)
async def get_stats(
    request: Request,
    site: Site = Depends(get_current_site),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.summary(db, site.id)


@router.get(
    "/timeseries",
    response_model=list[TimeseriesPoint],
    summary="Daily visitors or pageviews",
)
@limiter.limit(stats_limit)
async def get_timeseries(
    request: Request,
    start: str | None = Query(default=None, description="Accepted but not applied"),
    end: str | None = Query(default=None, description="Accepted but not applied"),
    metric: str = Query(default="visitors", description='"views" or "visitors"'),
    site: Site = Depends(get_current_site),
    db: AsyncSession = Depends(get_db),
):
    # The window is not applied: callers always receive the full history.
    if start or end:
        logger.info("stats.timeseries_window_ignored", start=start, end=end)

    return await stats_service.timeseries(db, site.id, metric=metric)


@router.get("/pages", response_model=list[PageStats], summary="Top pages by views")
@limiter.limit(stats_limit)
async def get_pages(
    request: Request,
    site: Site = Depends(get_current_site),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.top_pages(db, site.id)


@router.get(
    "/referrers",
    response_model=list[ReferrerStats],
    summary="Top referring domains",
)
@limiter.limit(stats_limit)
async def get_referrers(
    request: Request,
    site: Site = Depends(get_current_site),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.top_referrers(db, site.id)


@router.get(
    "/devices",
    response_model=list[DeviceStats],
    summary="Device type and browser breakdown",
)
@limiter.limit(stats_limit)
async def get_devices(
    request: Request,
    site: Site = Depends(get_current_site),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.devices(db, site.id)
