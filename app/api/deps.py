"""Request Dependencies — session gate and repository wiring for route handlers.

Invariants:
    - get_tier() reads only the signed cookies the client presents (no server state)
    - require_unlocked() raises LockedError below UnlockTier.UNLOCKED
    - HARDCORE passes require_unlocked() and grants nothing more

Design Decisions:
    - FastAPI Depends over middleware: only routes that declare the gate pay for it,
      and /status, /unlock, /lock stay open
"""

import time

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_session_secret
from app.core.errors import LockedError
from app.core.session_gate import (
    HARDCORE_COOKIE, UNLOCKED_COOKIE, UnlockTier, read_tier,
)
from app.infrastructure.database import get_db
from app.services.record_repository import RecordRepository


def get_tier(request: Request) -> UnlockTier:
    return read_tier(
        request.cookies.get(UNLOCKED_COOKIE),
        request.cookies.get(HARDCORE_COOKIE),
        get_session_secret(),
        time.time(),
    )


def require_unlocked(tier: UnlockTier = Depends(get_tier)) -> UnlockTier:
    if not tier.unlocked:
        raise LockedError()
    return tier


def get_record_repository(
    db: AsyncSession = Depends(get_db),
) -> RecordRepository:
    return RecordRepository(db)
