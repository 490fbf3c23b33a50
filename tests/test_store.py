"""
Store lifecycle and service-level behaviour that HTTP tests cannot reach:
reopening the database file, UTC day rollover, transaction rollback.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from privalytics.core.database import Database
from privalytics.models.event import Event
from privalytics.models.site import Site
from privalytics.services import stats_service
from privalytics.services.event_service import Beacon, UnknownSiteError, record_event
from privalytics.services.site_service import create_site, get_site


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"


@pytest_asyncio.fixture
async def database(db_url):
    db = Database(db_url)
    await db.init()
    yield db
    await db.dispose()


@pytest.mark.asyncio
class TestLifecycle:
    async def test_init_is_idempotent(self, database):
        await database.init()
        await database.init()
        assert await database.ping()

    async def test_data_survives_reopen(self, db_url):
        first = Database(db_url)
        await first.init()
        async with first.transaction() as session:
            site = await create_site(session, name="Blog", domain="blog.example")
            await record_event(session, Beacon(site_id=site.id, client_ip="1.1.1.1"))
        await first.dispose()

        second = Database(db_url)
        await second.init()
        async with second.session() as session:
            reopened = await get_site(session, site.id)
            count = await session.scalar(select(func.count(Event.id)))
        await second.dispose()

        assert reopened is not None
        assert reopened.api_key == site.api_key
        assert count == 1

    async def test_failed_transaction_rolls_back(self, database):
        with pytest.raises(RuntimeError):
            async with database.transaction() as session:
                session.add(Site(id="s1", name="Blog", domain="blog.example", api_key="k" * 32))
                await session.flush()
                raise RuntimeError("boom")

        async with database.session() as session:
            assert await get_site(session, "s1") is None


@pytest.mark.asyncio
class TestRecordEvent:
    async def test_pseudonym_rotates_at_utc_midnight(self, database):
        before = datetime(2024, 1, 1, 23, 59, tzinfo=timezone.utc)
        after = datetime(2024, 1, 2, 0, 1, tzinfo=timezone.utc)
        beacon = Beacon(site_id="site-a", client_ip="1.1.1.1")

        async with database.transaction() as session:
            e1 = await record_event(session, beacon, now=before)
            e2 = await record_event(session, beacon, now=after)
            e3 = await record_event(session, beacon, now=after)

        assert e1.session_hash != e2.session_hash
        assert e2.session_hash == e3.session_hash

        async with database.session() as session:
            series = await stats_service.timeseries(session, "site-a")
            summary = await stats_service.summary(session, "site-a")

        assert series == [
            {"date": "2024-01-01", "count": 1},
            {"date": "2024-01-02", "count": 1},
        ]
        # One person on two days is two daily visitors
        assert summary == {"visitors": 2, "views": 3}

    async def test_validation_rejects_unknown_site(self, database):
        async with database.transaction() as session:
            with pytest.raises(UnknownSiteError):
                await record_event(
                    session, Beacon(site_id="ghost", client_ip="1.1.1.1"), validate_site=True
                )

    async def test_validation_accepts_registered_site(self, database):
        async with database.transaction() as session:
            site = await create_site(session, name="Blog", domain="blog.example")
            event = await record_event(
                session, Beacon(site_id=site.id, client_ip="1.1.1.1"), validate_site=True
            )
        assert event.site_id == site.id

    async def test_empty_type_and_path_use_defaults(self, database):
        async with database.transaction() as session:
            event = await record_event(
                session, Beacon(site_id="s", client_ip="1.1.1.1", event_type="", path="")
            )
        assert (event.event_type, event.path) == ("pageview", "/")
