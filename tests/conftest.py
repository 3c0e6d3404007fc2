import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["FROZEN_TODAY"] = "2024-03-31"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from finflow.core.database import Base, get_db
from finflow.main import app
from finflow.models import transaction, user  # noqa: F401
from finflow.services.snapshot import snapshot_cache

API = "/api/v1"


@pytest.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    snapshot_cache.clear()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    snapshot_cache.clear()


async def login(client, email="alice@example.com", password="secret123"):
    await client.post(f"{API}/auth/register", json={"email": email, "password": password, "name": "Alice"})
    resp = await client.post(f"{API}/auth/login", data={"username": email, "password": password})
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
async def auth_headers(client):
    return await login(client)
