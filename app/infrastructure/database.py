"""Database Session Manager — lazy, shared async connection pool with automatic rollback.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - SQLAlchemy exceptions escaping a session mapped to DatabaseError (core/errors.py)
    - One engine per process: DatabaseProvider connects on first acquire(), and
      concurrent first callers await the same in-flight attempt (single flight)
    - A failed connect attempt is forgotten, so the next acquire() retries
    - acquire()/release() are paired; close() disposes the engine on shutdown
    - close() cancels an in-flight connect; its waiters get DatabaseError

Design Decisions:
    - Provider initialized on startup but connects lazily: the app boots even
      when the database is briefly unreachable (ADR: no global import side effects)
    - asyncio task + shield for single flight: a cancelled waiter doesn't abort
      the attempt other waiters depend on
    - expire_on_commit=False: prevents lazy-load issues in async context
    - IntegrityError is left to callers that own a constraint (record_repository
      maps the MAC unique index to MacConflictError before it reaches here)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from app.core.errors import DatabaseError

logger = logging.getLogger(__name__)


def _engine_kwargs(database_url: str, pool_size: int, max_overflow: int) -> dict:
    # SQLite (tests, local dev) uses a static/null pool that rejects sizing args
    if database_url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url, **_engine_kwargs(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise DatabaseError("Integrity constraint violated", "commit")
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}")
            raise DatabaseError("Connection or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise DatabaseError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise DatabaseError("Database operation failed", "unknown")
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False


class DatabaseProvider:
    """Process-wide owner of the shared DatabaseSessionManager."""

    def __init__(self, database_url: str, **manager_kwargs):
        self.database_url = database_url
        self._manager_kwargs = manager_kwargs
        self._manager: DatabaseSessionManager | None = None
        self._connecting: asyncio.Task | None = None
        self._refs = 0

    @property
    def manager(self) -> DatabaseSessionManager | None:
        return self._manager

    @property
    def refs(self) -> int:
        return self._refs

    async def acquire(self) -> DatabaseSessionManager:
        """Return the shared manager, connecting on first use."""
        if self._manager is None:
            if self._connecting is None:
                self._connecting = asyncio.ensure_future(self._connect())
            attempt = self._connecting
            try:
                manager = await asyncio.shield(attempt)
            except asyncio.CancelledError:
                if not attempt.cancelled():
                    raise
                raise DatabaseError("Database is closed", "connect")
            except Exception:
                if self._connecting is attempt:
                    self._connecting = None
                raise
            if self._connecting is not attempt:
                # close() ran while this attempt was in flight
                raise DatabaseError("Database is closed", "connect")
            if self._manager is None:
                self._manager = manager
        self._refs += 1
        return self._manager

    def release(self) -> None:
        if self._refs > 0:
            self._refs -= 1

    async def _connect(self) -> DatabaseSessionManager:
        manager = DatabaseSessionManager(self.database_url, **self._manager_kwargs)
        try:
            async with manager.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except asyncio.CancelledError:
            await manager.engine.dispose()
            raise
        except (SQLAlchemyError, OSError) as e:
            await manager.engine.dispose()
            logger.error(f"DB connect failed: {e}", extra={"operation": "connect"})
            raise DatabaseError("Connection or operational error", "connect")
        logger.info("Database connection established")
        return manager

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Acquire the shared manager for the duration of one session."""
        manager = await self.acquire()
        try:
            async with manager.session() as session:
                yield session
        finally:
            self.release()

    async def health_check(self) -> bool:
        try:
            manager = await self.acquire()
        except DatabaseError:
            return False
        try:
            return await manager.health_check()
        finally:
            self.release()

    async def close(self) -> None:
        """Dispose the engine. Safe to call when never connected.

        An in-flight connect attempt is cancelled and awaited, and an engine
        it managed to open is disposed as well.
        """
        if self._refs:
            logger.warning(f"Closing database with {self._refs} session(s) still held")
        manager, self._manager = self._manager, None
        pending, self._connecting = self._connecting, None
        self._refs = 0
        if pending is not None:
            if not pending.done():
                pending.cancel()
            await asyncio.wait([pending])
            if not pending.cancelled() and pending.exception() is None:
                orphan = pending.result()
                if orphan is not manager:
                    await orphan.engine.dispose()
        if manager is not None:
            await manager.engine.dispose()
            logger.info("Database connection disposed")


# Singleton (configured on startup, connects on first use)
db_provider: DatabaseProvider | None = None


def init_db(database_url: str, **kwargs) -> DatabaseProvider:
    global db_provider
    db_provider = DatabaseProvider(database_url, **kwargs)
    return db_provider


async def close_db() -> None:
    global db_provider
    if db_provider is not None:
        await db_provider.close()
        db_provider = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_provider:
        raise RuntimeError("Database not initialized")
    async with db_provider.session() as session:
        yield session
