"""
Access log middleware — one structured line per request.

Emits:
  - request_id (UUID, injected into request.state and the X-Request-ID header)
  - method, path, status_code, duration_ms
  - site_id (if the request authenticated with an API key)
  - user_agent

Client IPs are deliberately absent: the service promises not to retain them.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from privalytics.core.logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

# Probes and docs would drown out real traffic
SKIP_PATHS = {"/health", "/health/ready", "/docs", "/redoc", "/openapi.json"}


class AuditLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.site_id = None

        clear_request_context()
        bind_request_context(request_id=request_id)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        response.headers["X-Request-ID"] = request_id

        if request.url.path in SKIP_PATHS:
            return response

        log_fn = logger.warning if response.status_code >= 400 else logger.info
        log_fn(
            "http.request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            site_id=getattr(request.state, "site_id", None),
            user_agent=request.headers.get("user-agent"),
        )

        return response
