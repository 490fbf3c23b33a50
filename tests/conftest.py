"""
Shared fixtures: a fresh SQLite file per test, served through httpx's
ASGITransport. The app's lifespan is not run; the fixture installs the
store on app.state the way lifespan would.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from privalytics.core.database import Database
from privalytics.core.limiter import limiter
from privalytics.main import app

BLOG = {"name": "Blog", "domain": "blog.example"}
SHOP = {"name": "Shop", "domain": "shop.example"}


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest_asyncio.fixture
async def store(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'privalytics-test.db'}")
    await db.init()
    app.state.db = db
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def make_client(store):
    """Factory for clients that appear to connect from a given IP."""
    clients: list[AsyncClient] = []

    async def _make(ip: str = "127.0.0.1") -> AsyncClient:
        transport = ASGITransport(app=app, client=(ip, 4321))
        ac = AsyncClient(transport=transport, base_url="http://test")
        clients.append(ac)
        return ac

    yield _make
    for ac in clients:
        await ac.aclose()


@pytest_asyncio.fixture
async def client(make_client) -> AsyncClient:
    return await make_client()


async def register(client: AsyncClient, body: dict) -> dict:
    resp = await client.post("/api/sites", json=body)
    assert resp.status_code == 201
    return resp.json()


@pytest_asyncio.fixture
async def blog(client) -> dict:
    return await register(client, BLOG)


@pytest_asyncio.fixture
async def shop(client) -> dict:
    return await register(client, SHOP)


def key_headers(site: dict) -> dict:
    return {"x-api-key": site["api_key"]}
