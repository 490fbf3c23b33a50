"""
Privalytics — privacy-friendly web analytics collector.
Site API keys · Daily visitor pseudonyms · Rate Limiting · Structured Logging
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from privalytics.core.config import settings
from privalytics.core.database import Database
from privalytics.core.limiter import limiter
from privalytics.core.logging import get_logger, setup_logging
from privalytics.middleware.audit import AuditLogMiddleware
from privalytics.routers import health, sites, stats, track

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store on startup, close it cleanly on shutdown."""
    logger.info("api.startup", version=settings.API_VERSION, env=settings.ENVIRONMENT)
    db = Database(settings.DATABASE_URL, echo=settings.DEBUG)
    await db.init()
    app.state.db = db
    try:
        yield
    finally:
        await db.dispose()
        logger.info("api.shutdown")


app = FastAPI(
    title="Privalytics",
    description="""
## Privacy-friendly web analytics

- **No raw IPs stored** — visitors are counted by a daily SHA-256 pseudonym
  of IP and UTC date, which rotates at midnight
- **Per-site API keys** — issued once at registration, sent as `x-api-key`
- **Aggregates only** — visitors, pageviews, top pages, referrers, devices

Tracking (`POST /api/track`) and registration are unauthenticated; every
stats endpoint requires the site's API key.
    """,
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── Middleware (order matters — outermost runs first) ─────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(AuditLogMiddleware)

# ── Rate limit error handler ───────────────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ── Error bodies are always flat {"error": message} ────────────────────────────
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("api.invalid_request", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "api.unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


# ── Routers ────────────────────────────────────────────────────────────────────
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(sites.router, prefix="/api", tags=["Sites"])
app.include_router(track.router, prefix="/api", tags=["Tracking"])
app.include_router(stats.router, prefix="/api", tags=["Stats"])


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "privalytics.main:app",
        host=settings.HOST,
        port=settings.PORT,
    )


if __name__ == "__main__":
    run()
