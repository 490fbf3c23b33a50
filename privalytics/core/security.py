"""
Security core: API key issuance and per-site authentication.

Architecture:
  - Each registered site gets one API key, returned in plaintext once at
    registration time and sent back in the ``x-api-key`` header afterwards
  - Keys are 32 random hex characters (uuid4 without dashes)
  - Authentication is a point lookup on the unique ``sites.api_key`` column
  - Every stats query is scoped to the site that owns the key
"""

import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from privalytics.core.database import get_db
from privalytics.core.logging import bind_request_context, get_logger
from privalytics.models.site import Site

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"

# auto_error=False so a missing key yields our own 401 body instead of a 403
api_key_scheme = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def generate_site_id() -> str:
    return str(uuid.uuid4())


def generate_api_key() -> str:
    return uuid.uuid4().hex


async def get_current_site(
    request: Request,
    api_key: str | None = Depends(api_key_scheme),
    db: AsyncSession = Depends(get_db),
) -> Site:
    """
    Dependency: resolves the site owning the ``x-api-key`` header.
    Inject this into any route that requires authentication.
    """
    if not api_key:
        logger.warning("auth.api_key_missing", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
        )

    result = await db.execute(select(Site).where(Site.api_key == api_key))
    site = result.scalar_one_or_none()
    if site is None:
        logger.warning("auth.api_key_invalid", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )

    request.state.site_id = site.id
    bind_request_context(site_id=site.id)
    return site
