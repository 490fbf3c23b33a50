"""
Rate limiting via slowapi (Starlette-compatible Limits wrapper).

Strategy:
  - Authenticated stats calls are limited per API key, so one dashboard
    cannot starve another behind the same NAT
  - Registration and ingestion are limited per client IP
  - In-memory storage; point ``storage_uri`` at Redis for multi-instance
    deployments

Usage in routes:
    @router.post("/track")
    @limiter.limit(track_limit)   # resolved per request from settings
    async def track(request: Request, ...):
        ...
"""

import hashlib

from fastapi import Request
from slowapi import Limiter

from privalytics.core.config import settings
from privalytics.core.identity import get_client_ip
from privalytics.core.security import API_KEY_HEADER


def get_rate_limit_key(request: Request) -> str:
    """
    Rate limit key: the API key when present, else the client IP.
    The API key is hashed so limiter storage never holds the credential.
    """
    api_key = request.headers.get(API_KEY_HEADER)
    if api_key:
        return "key:" + hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]

    return "ip:" + get_client_ip(request)


def register_limit() -> str:
    return settings.RATE_LIMIT_REGISTER


def track_limit() -> str:
    return settings.RATE_LIMIT_TRACK


def stats_limit() -> str:
    return settings.RATE_LIMIT_STATS


# Primary limiter instance — imported across all routers
limiter = Limiter(
    key_func=get_rate_limit_key,
    enabled=settings.RATE_LIMIT_ENABLED,
)
