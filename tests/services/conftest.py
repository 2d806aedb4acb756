"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_provider patched so readiness probes see the test engine
    - Repository clock is a fake that advances one second per call

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for repository
      and route tests (unique index behaves the same as on PostgreSQL)
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.db.base import Base
from app.infrastructure.database import (
    get_db, DatabaseProvider, DatabaseSessionManager,
)
import app.infrastructure.database as db_module
from app.main import app
from app.services.record_repository import RecordRepository


class FakeClock:
    """Strictly increasing UTC clock — one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo(test_db, clock):
    return RecordRepository(test_db, clock=clock)


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_provider = db_module.db_provider
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    fake_provider = DatabaseProvider("sqlite+aiosqlite:///:memory:")
    fake_provider._manager = fake_manager
    db_module.db_provider = fake_provider

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_provider = original_provider


@pytest.fixture
async def unlocked_client(client):
    """Client holding a standard-tier session."""
    res = await client.post("/api/v1/unlock", json={"pin": "1234"})
    assert res.status_code == 200
    return client
