"""
Site service — registration and lookup of client websites.

Services sit between routers (HTTP layer) and models (data layer).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from privalytics.core.logging import get_logger
from privalytics.core.security import generate_api_key, generate_site_id
from privalytics.models.site import Site

logger = get_logger(__name__)


async def create_site(db: AsyncSession, name: str, domain: str) -> Site:
    """Insert a new site with a fresh id and API key and commit it."""
    site = Site(
        id=generate_site_id(),
        name=name,
        domain=domain,
        api_key=generate_api_key(),
    )
    db.add(site)
    await db.commit()

    logger.info("site.created", site_id=site.id, domain=domain)
    return site


async def get_site(db: AsyncSession, site_id: str) -> Site | None:
    result = await db.execute(select(Site).where(Site.id == site_id))
    return result.scalar_one_or_none()

