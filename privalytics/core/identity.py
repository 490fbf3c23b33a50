"""
Visitor identity without storing visitors.

A visitor is represented by a daily pseudonym: the truncated SHA-256 of their
IP address and the current UTC date. The same IP maps to the same pseudonym
for one calendar day, then rotates. The IP itself is never persisted.
"""

import hashlib
from datetime import datetime, timezone

from fastapi import Request

from privalytics.core.config import settings

PSEUDONYM_LENGTH = 16

# Checked in priority order when TRUST_PROXY_HEADERS is enabled
PROXY_IP_HEADERS = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def session_pseudonym(ip: str, date_string: str) -> str:
    """Return the 16-hex-character pseudonym for *ip* on *date_string*."""
    digest = hashlib.sha256(f"{ip}:{date_string}".encode("utf-8")).hexdigest()
    return digest[:PSEUDONYM_LENGTH]


def current_date_string(now: datetime | None = None) -> str:
    """Today's date in UTC as ``YYYY-MM-DD``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%d")


def get_client_ip(request: Request) -> str:
    """
    Resolve the caller's IP address.

    Proxy headers are only honoured when TRUST_PROXY_HEADERS is set, since
    any client can forge them. Falls back to "unknown" when the ASGI server
    reports no peer address.
    """
    if settings.TRUST_PROXY_HEADERS:
        for header in PROXY_IP_HEADERS:
            value = request.headers.get(header)
            if value:
                client_ip = value.split(",")[0].strip()
                if client_ip:
                    return client_ip

    return request.client.host if request.client else "unknown"
