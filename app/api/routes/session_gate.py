"""Session Gate Routes — status, unlock, lock.

Invariants:
    - All three endpoints are unauthenticated (lock state is not sensitive)
    - A successful unlock sets one signed cookie per granted tier; lock clears both
    - Wrong PIN (401) and no configured PIN (500) are distinct failures

Design Decisions:
    - Cookies: HttpOnly, SameSite=Lax, path "/", fixed TTL; Secure from settings
    - Lock deletes both cookies regardless of tier (explicit revocation)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from app.api.deps import get_tier
from app.config import get_settings, get_session_secret
from app.core.session_gate import (
    HARDCORE_COOKIE, UNLOCKED_COOKIE, UnlockTier, check_pin, issue_markers,
)
from app.schemas.auth import LockStatus, UnlockRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["session-gate"])


@router.get("/status", response_model=LockStatus)
async def get_status(tier: UnlockTier = Depends(get_tier)):
    """Current lock state. Unauthenticated."""
    return tier.to_status()


@router.post("/unlock", response_model=LockStatus)
async def unlock(body: UnlockRequest, response: Response):
    """Check the PIN and issue session markers for the tier it grants."""
    settings = get_settings()
    tier = check_pin(body.pin, settings.lock_pin, settings.hardcore_pin)
    markers = issue_markers(
        tier, get_session_secret(), time.time(), settings.session_ttl_seconds,
    )
    for name, value in markers.items():
        response.set_cookie(
            name, value,
            max_age=settings.session_ttl_seconds,
            path="/",
            httponly=True,
            samesite="lax",
            secure=settings.cookie_secure,
        )
    logger.info("Session unlocked", extra={"tier": tier.name.lower()})
    return tier.to_status()


@router.post("/lock")
async def lock(response: Response):
    """Clear both session markers."""
    settings = get_settings()
    for name in (UNLOCKED_COOKIE, HARDCORE_COOKIE):
        response.delete_cookie(
            name, path="/", httponly=True, samesite="lax",
            secure=settings.cookie_secure,
        )
    return {"locked": True}
