"""DatabaseProvider — lazy, single-flight, reference-counted store handle.

Invariants under test:
    - Nothing connects until the first acquire()
    - Concurrent first acquires converge on one manager (one connect attempt)
    - acquire()/release() keep a balanced reference count
    - A failed connect is not cached: the next acquire() retries
    - close() disposes and resets; a later acquire() reconnects
    - close() cancels a pending connect; its waiter gets DatabaseError
"""

import asyncio

import pytest
from sqlalchemy import text

from app.core.errors import DatabaseError
from app.infrastructure.database import DatabaseProvider, DatabaseSessionManager

URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def provider():
    p = DatabaseProvider(URL)
    yield p
    await p.close()


@pytest.fixture
def count_connects(monkeypatch):
    calls = {"n": 0}
    original = DatabaseProvider._connect

    async def _counting(self):
        calls["n"] += 1
        await asyncio.sleep(0.01)  # widen the race window
        return await original(self)

    monkeypatch.setattr(DatabaseProvider, "_connect", _counting)
    return calls


async def test_does_not_connect_until_first_acquire(provider, count_connects):
    assert provider.manager is None
    assert count_connects["n"] == 0
    await provider.acquire()
    assert isinstance(provider.manager, DatabaseSessionManager)
    assert count_connects["n"] == 1


async def test_concurrent_first_acquires_share_one_connect(provider, count_connects):
    managers = await asyncio.gather(*(provider.acquire() for _ in range(10)))
    assert count_connects["n"] == 1
    assert all(m is managers[0] for m in managers)
    assert provider.refs == 10


async def test_reuse_across_invocations(provider, count_connects):
    first = await provider.acquire()
    provider.release()
    second = await provider.acquire()
    provider.release()
    assert first is second
    assert count_connects["n"] == 1
    assert provider.refs == 0


async def test_session_context_releases_reference(provider):
    async with provider.session() as db:
        assert provider.refs == 1
        assert (await db.execute(text("SELECT 1"))).scalar() == 1
    assert provider.refs == 0


async def test_release_never_goes_negative(provider):
    provider.release()
    assert provider.refs == 0


async def test_failed_connect_is_retried(provider, monkeypatch):
    attempts = {"n": 0}
    original = DatabaseProvider._connect

    async def _flaky(self):
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise DatabaseError("Connection or operational error", "connect")
        return await original(self)

    monkeypatch.setattr(DatabaseProvider, "_connect", _flaky)

    with pytest.raises(DatabaseError):
        await provider.acquire()
    assert provider.manager is None
    assert provider.refs == 0

    manager = await provider.acquire()
    assert manager is provider.manager
    assert attempts["n"] == 2


async def test_unreachable_database_maps_to_database_error(tmp_path):
    # directory path: sqlite can't open it as a database file
    p = DatabaseProvider(f"sqlite+aiosqlite:///{tmp_path}")
    with pytest.raises(DatabaseError) as exc:
        await p.acquire()
    assert exc.value.operation == "connect"
    assert await p.health_check() is False
    await p.close()


async def test_close_resets_and_allows_reconnect(provider, count_connects):
    first = await provider.acquire()
    await provider.close()
    assert provider.manager is None
    assert provider.refs == 0
    second = await provider.acquire()
    assert second is not first
    assert count_connects["n"] == 2


async def test_health_check(provider):
    assert await provider.health_check() is True
    assert provider.refs == 0


async def test_close_cancels_in_flight_connect(provider, monkeypatch):
    started = asyncio.Event()
    original = DatabaseProvider._connect

    async def _stalled(self):
        started.set()
        await asyncio.sleep(30)
        return await original(self)

    monkeypatch.setattr(DatabaseProvider, "_connect", _stalled)
    waiter = asyncio.ensure_future(provider.acquire())
    await started.wait()

    await provider.close()
    with pytest.raises(DatabaseError) as exc:
        await waiter
    assert exc.value.operation == "connect"
    assert provider.manager is None
    assert provider.refs == 0

    monkeypatch.setattr(DatabaseProvider, "_connect", original)
    assert await provider.acquire() is provider.manager
