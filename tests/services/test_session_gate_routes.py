"""Session gate endpoints — /status, /unlock, /lock and the cookie-carried tier.

Invariants under test:
    - Standard PIN -> {unlocked: true, hardcore: false}; hardcore PIN -> both true
    - Wrong PIN -> 401 and still locked; missing PIN -> 400; no PINs configured -> 500
    - /lock clears both markers from any tier
    - Forged or unsigned markers read as locked
"""

import time

from app.config import Settings, get_session_secret
from app.core.session_gate import (
    HARDCORE_COOKIE, UNLOCKED_COOKIE, UnlockTier, issue_markers,
)
import app.api.routes.session_gate as gate_routes


async def test_status_is_locked_by_default(client):
    res = await client.get("/api/v1/status")
    assert res.status_code == 200
    assert res.json() == {"unlocked": False, "hardcore": False}


async def test_standard_pin_unlocks(client):
    res = await client.post("/api/v1/unlock", json={"pin": "1234"})
    assert res.status_code == 200
    assert res.json() == {"unlocked": True, "hardcore": False}
    assert UNLOCKED_COOKIE in res.cookies
    assert HARDCORE_COOKIE not in res.cookies

    status = await client.get("/api/v1/status")
    assert status.json() == {"unlocked": True, "hardcore": False}


async def test_hardcore_pin_unlocks_both_tiers(client):
    res = await client.post("/api/v1/unlock", json={"pin": " 9999 "})
    assert res.json() == {"unlocked": True, "hardcore": True}

    status = await client.get("/api/v1/status")
    assert status.json() == {"unlocked": True, "hardcore": True}


async def test_unlock_cookie_attributes(client):
    res = await client.post("/api/v1/unlock", json={"pin": "1234"})
    header = res.headers["set-cookie"].lower()
    assert "httponly" in header
    assert "samesite=lax" in header
    assert "path=/" in header
    assert "max-age=14400" in header


async def test_wrong_pin_is_401_and_stays_locked(client):
    res = await client.post("/api/v1/unlock", json={"pin": "0000"})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_PIN"

    status = await client.get("/api/v1/status")
    assert status.json() == {"unlocked": False, "hardcore": False}


async def test_missing_or_blank_pin_is_400(client):
    assert (await client.post("/api/v1/unlock", json={})).status_code == 400
    assert (await client.post("/api/v1/unlock", json={"pin": "   "})).status_code == 400


async def test_unconfigured_pins_is_500_not_401(client, monkeypatch):
    monkeypatch.setattr(
        gate_routes, "get_settings",
        lambda: Settings(lock_pin=None, hardcore_pin=None),
    )
    res = await client.post("/api/v1/unlock", json={"pin": "1234"})
    assert res.status_code == 500
    assert res.json()["error"]["code"] == "PIN_NOT_CONFIGURED"


async def test_lock_clears_hardcore_session(client):
    await client.post("/api/v1/unlock", json={"pin": "9999"})
    res = await client.post("/api/v1/lock")
    assert res.status_code == 200
    assert res.json() == {"locked": True}

    status = await client.get("/api/v1/status")
    assert status.json() == {"unlocked": False, "hardcore": False}


async def test_lock_when_already_locked_is_harmless(client):
    res = await client.post("/api/v1/lock")
    assert res.status_code == 200


async def test_unsigned_flag_cookies_read_as_locked(client):
    client.cookies.set(UNLOCKED_COOKIE, "1")
    client.cookies.set(HARDCORE_COOKIE, "1")
    status = await client.get("/api/v1/status")
    assert status.json() == {"unlocked": False, "hardcore": False}
    assert (await client.get("/api/v1/records")).status_code == 401


async def test_expired_markers_read_as_locked(client):
    markers = issue_markers(
        UnlockTier.UNLOCKED, get_session_secret(), time.time() - 20_000,
    )
    client.cookies.set(UNLOCKED_COOKIE, markers[UNLOCKED_COOKIE])
    status = await client.get("/api/v1/status")
    assert status.json()["unlocked"] is False


async def test_malformed_expiry_cookie_reads_as_locked(client):
    client.cookies.set(UNLOCKED_COOKIE, "9" * 5000 + ".abc")
    res = await client.get("/api/v1/status")
    assert res.status_code == 200
    assert res.json() == {"unlocked": False, "hardcore": False}
    assert (await client.get("/api/v1/records")).status_code == 401


async def test_numeric_pin_is_accepted(client):
    res = await client.post("/api/v1/unlock", json={"pin": 1234})
    assert res.status_code == 200
    assert res.json() == {"unlocked": True, "hardcore": False}


async def test_null_pin_is_400(client):
    res = await client.post("/api/v1/unlock", json={"pin": None})
    assert res.status_code == 400
