"""Session Gate — PIN check and signed, self-contained session markers.

Invariants:
    - UnlockTier is the only session state: LOCKED < UNLOCKED < HARDCORE
    - HARDCORE is never issued alone — a hardcore marker without a valid
      unlocked marker reads as LOCKED
    - Markers carry their own expiry; TTL is checked passively on every read
    - No configured PIN at all raises PinNotConfiguredError (distinct from InvalidPinError)
    - All secret comparisons are constant time (hmac.compare_digest)

Design Decisions:
    - Tagged enum over two booleans: illegal states (hardcore without unlock) unrepresentable
    - Marker = "<expires_epoch>.<hmac_sha256_hex>" over "<cookie_name>:<expires_epoch>":
      binding the cookie name prevents replaying an unlocked marker as a hardcore one
    - Stateless: no server-side session table, the client presents everything
    - HARDCORE grants nothing beyond UNLOCKED today (reserved tier)
"""

import hashlib
import hmac
import re
from enum import IntEnum

from app.core.errors import InvalidPinError, PinNotConfiguredError

UNLOCKED_COOKIE = "lock_unlocked"
HARDCORE_COOKIE = "lock_hardcore"
SESSION_TTL_SECONDS = 60 * 60 * 4

# ASCII epoch seconds, at most 12 digits
_EXPIRY_DIGITS = re.compile(r"[0-9]{1,12}")


class UnlockTier(IntEnum):
    """Session tiers, ordered so `tier >= UnlockTier.UNLOCKED` reads naturally."""
    LOCKED = 0
    UNLOCKED = 1
    HARDCORE = 2

    @property
    def unlocked(self) -> bool:
        return self >= UnlockTier.UNLOCKED

    @property
    def hardcore(self) -> bool:
        return self is UnlockTier.HARDCORE

    def to_status(self) -> dict:
        return {"unlocked": self.unlocked, "hardcore": self.hardcore}


def _same(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def check_pin(
    pin: str, standard_pin: str | None, hardcore_pin: str | None,
) -> UnlockTier:
    """Resolve a submitted PIN to the tier it unlocks.

    Hardcore is checked as an alternative match, it does not require the
    standard PIN to be configured.
    """
    if not standard_pin and not hardcore_pin:
        raise PinNotConfiguredError()
    if hardcore_pin and _same(pin, hardcore_pin):
        return UnlockTier.HARDCORE
    if standard_pin and _same(pin, standard_pin):
        return UnlockTier.UNLOCKED
    raise InvalidPinError()


def _signature(secret: str, cookie_name: str, expires_at: int) -> str:
    payload = f"{cookie_name}:{expires_at}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def sign_marker(
    secret: str, cookie_name: str, now: float,
    ttl_seconds: int = SESSION_TTL_SECONDS,
) -> str:
    expires_at = int(now) + ttl_seconds
    return f"{expires_at}.{_signature(secret, cookie_name, expires_at)}"


def verify_marker(
    secret: str, cookie_name: str, marker: str | None, now: float,
) -> bool:
    """True iff marker is well-formed, signed for cookie_name, and unexpired."""
    if not marker:
        return False
    expires_raw, _, signature = marker.partition(".")
    if not _EXPIRY_DIGITS.fullmatch(expires_raw) or not signature:
        return False
    expires_at = int(expires_raw)
    if expires_at <= now:
        return False
    return _same(signature, _signature(secret, cookie_name, expires_at))


def issue_markers(
    tier: UnlockTier, secret: str, now: float,
    ttl_seconds: int = SESSION_TTL_SECONDS,
) -> dict[str, str]:
    """Cookie name -> marker for every cookie the tier needs. LOCKED issues none."""
    markers: dict[str, str] = {}
    if tier.unlocked:
        markers[UNLOCKED_COOKIE] = sign_marker(
            secret, UNLOCKED_COOKIE, now, ttl_seconds,
        )
    if tier.hardcore:
        markers[HARDCORE_COOKIE] = sign_marker(
            secret, HARDCORE_COOKIE, now, ttl_seconds,
        )
    return markers


def read_tier(
    unlocked_marker: str | None, hardcore_marker: str | None,
    secret: str, now: float,
) -> UnlockTier:
    """Classify a request from the markers it presents."""
    if not verify_marker(secret, UNLOCKED_COOKIE, unlocked_marker, now):
        return UnlockTier.LOCKED
    if verify_marker(secret, HARDCORE_COOKIE, hardcore_marker, now):
        return UnlockTier.HARDCORE
    return UnlockTier.UNLOCKED
