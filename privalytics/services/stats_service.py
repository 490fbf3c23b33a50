"""
Aggregate queries over the events table.

Every query is scoped to a single site_id; callers obtain it from the
authenticated API key, never from user input.

"Visitors" always means distinct daily session pseudonyms, so one person
visiting on two days counts twice.
"""

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from privalytics.models.event import PAGEVIEW, Event

TOP_LIMIT = 20

_views = func.count(Event.id).label("views")
_visitors = func.count(func.distinct(Event.session_hash)).label("visitors")


async def summary(db: AsyncSession, site_id: str) -> dict:
    pageviews = func.coalesce(
        func.sum(case((Event.event_type == PAGEVIEW, 1), else_=0)), 0
    )
    result = await db.execute(
        select(_visitors, pageviews.label("views")).where(Event.site_id == site_id)
    )
    row = result.one()
    return {"visitors": row.visitors or 0, "views": row.views or 0}


async def timeseries(db: AsyncSession, site_id: str, metric: str = "visitors") -> list[dict]:
    """
    Daily counts ordered by date. ``views`` counts pageview rows; anything
    else counts distinct pseudonyms across all event types.
    """
    day = func.date(Event.timestamp).label("date")
    if metric == "views":
        stmt = (
            select(day, func.count(Event.id).label("count"))
            .where(Event.site_id == site_id, Event.event_type == PAGEVIEW)
        )
    else:
        stmt = (
            select(day, func.count(func.distinct(Event.session_hash)).label("count"))
            .where(Event.site_id == site_id)
        )
    stmt = stmt.group_by(day).order_by(day)

    result = await db.execute(stmt)
    return [{"date": str(r.date), "count": r.count} for r in result]


async def top_pages(db: AsyncSession, site_id: str, limit: int = TOP_LIMIT) -> list[dict]:
    result = await db.execute(
        select(Event.path, _views, _visitors)
        .where(Event.site_id == site_id, Event.event_type == PAGEVIEW)
        .group_by(Event.path)
        .order_by(_views.desc(), _visitors.asc(), Event.path.asc())
        .limit(limit)
    )
    return [{"path": r.path, "views": r.views, "visitors": r.visitors} for r in result]


async def top_referrers(db: AsyncSession, site_id: str, limit: int = TOP_LIMIT) -> list[dict]:
    result = await db.execute(
        select(Event.referrer_domain, _views)
        .where(Event.site_id == site_id, Event.referrer_domain.is_not(None))
        .group_by(Event.referrer_domain)
        .order_by(_views.desc(), Event.referrer_domain.asc())
        .limit(limit)
    )
    return [{"domain": r.referrer_domain, "views": r.views} for r in result]


async def devices(db: AsyncSession, site_id: str) -> list[dict]:
    result = await db.execute(
        select(Event.device_type, Event.browser, _views, _visitors)
        .where(Event.site_id == site_id)
        .group_by(Event.device_type, Event.browser)
        .order_by(
            _visitors.desc(),
            _views.desc(),
            Event.device_type.asc(),
            Event.browser.asc(),
        )
    )
    return [
        {
            "device": r.device_type,
            "browser": r.browser,
            "views": r.views,
            "visitors": r.visitors,
        }
        for r in result
    ]
