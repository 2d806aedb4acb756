"""Session Gate Schemas — PIN submission and lock-state payloads.

Invariants:
    - UnlockRequest.pin accepts JSON strings or numbers ({"pin": 1234} works)
    - UnlockRequest.pin is stripped; missing, null, empty or whitespace-only is a 400
"""

from pydantic import BaseModel, Field, field_validator

from app.schemas.coerce import numeric_to_str


class UnlockRequest(BaseModel):
    pin: str = Field(max_length=200)

    @field_validator("pin", mode="before")
    @classmethod
    def coerce_numeric_pin(cls, v):
        return numeric_to_str(v)

    @field_validator("pin")
    @classmethod
    def strip_pin(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("PIN is required")
        return v


class LockStatus(BaseModel):
    unlocked: bool
    hardcore: bool
