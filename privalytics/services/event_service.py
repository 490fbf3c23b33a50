"""
Event ingestion — turns a raw beacon into a stored, anonymised event row.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from privalytics.core.identity import current_date_string, session_pseudonym
from privalytics.core.logging import get_logger
from privalytics.core.parsing import (
    classify_user_agent,
    extract_registrable_domain,
    normalize_country,
    screen_bucket,
)
from privalytics.models.event import PAGEVIEW, Event
from privalytics.services.site_service import get_site

logger = get_logger(__name__)

DEFAULT_PATH = "/"


class UnknownSiteError(Exception):
    pass


@dataclass
class Beacon:
    """Everything ingestion needs from one /api/track request."""

    site_id: str
    client_ip: str
    user_agent: str | None = None
    event_type: str | None = None
    path: str | None = None
    referrer: str | None = None
    screen_width: int | None = None
    country: str | None = None


async def record_event(
    db: AsyncSession,
    beacon: Beacon,
    *,
    validate_site: bool = False,
    now: datetime | None = None,
) -> Event:
    """
    Classify and persist one event.

    The pseudonym and the stored timestamp share the same ``now`` so an event
    can never land on a different UTC day than its session hash.
    """
    if validate_site and await get_site(db, beacon.site_id) is None:
        logger.warning("event.unknown_site", site_id=beacon.site_id)
        raise UnknownSiteError(beacon.site_id)

    now = now or datetime.now(timezone.utc)
    browser, device_type = classify_user_agent(beacon.user_agent)

    event = Event(
        site_id=beacon.site_id,
        session_hash=session_pseudonym(beacon.client_ip, current_date_string(now)),
        event_type=beacon.event_type or PAGEVIEW,
        path=beacon.path or DEFAULT_PATH,
        referrer_domain=extract_registrable_domain(beacon.referrer),
        country=normalize_country(beacon.country),
        browser=browser,
        device_type=device_type,
        screen_bucket=screen_bucket(beacon.screen_width),
        timestamp=now,
    )
    db.add(event)
    await db.commit()

    logger.debug(
        "event.tracked",
        site_id=event.site_id,
        event_type=event.event_type,
        device_type=device_type,
        browser=browser,
    )
    return event
