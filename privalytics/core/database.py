"""
Async SQLAlchemy store for sites and events.

A ``Database`` is constructed explicitly (see ``main.lifespan``) and handed to
route handlers through the ``get_db`` / ``get_write_db`` dependencies.
Every mutation commits its own transaction; writers are serialised behind a
single asyncio lock so concurrent requests never interleave writes.
"""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from privalytics.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""
    pass


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    # WAL keeps readers unblocked during a commit and avoids torn files on crash
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


class Database:
    def __init__(self, url: str, echo: bool = False) -> None:
        self.engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragmas)

        self.sessionmaker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        self._write_lock = asyncio.Lock()

    async def init(self) -> None:
        """Open (or create) the database and ensure both tables exist."""
        import privalytics.models.event  # noqa: F401  register models
        import privalytics.models.site  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("database.ready", dialect=self.engine.dialect.name)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("database.closed")

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.warning("database.ping_failed", error=str(exc))
            return False
        return True

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Single-writer session: commits on success, rolls back on error."""
        async with self._write_lock:
            async with self.session() as session:
                yield session
                await session.commit()


# ── FastAPI dependencies ───────────────────────────────────────────────────────
def get_store(request: Request) -> Database:
    return request.app.state.db


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Read-only session per request."""
    async with get_store(request).session() as session:
        yield session


async def get_write_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Session for mutating handlers, held under the store's write lock."""
    async with get_store(request).transaction() as session:
        yield session
