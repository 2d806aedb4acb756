"""Record Schemas — request/response shapes for the records API.

Invariants:
    - Request bodies carry raw text; normalization/validation happens in the
      repository so the same rules apply to create and partial update
    - RecordUpdate distinguishes "not supplied" from "supplied" via model_fields_set
    - RecordResponse exposes the canonical MAC plus a colon-separated display form

Design Decisions:
    - Missing required create fields rejected by Pydantic (400 via the
      RequestValidationError handler); bad values rejected by the repository
      with a field-indicating RecordValidationError
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from app.core.normalize import format_mac
from app.schemas.coerce import numeric_to_str


class RecordCreate(BaseModel):
    """New record — all three fields required."""
    name: str = Field(max_length=1000)
    mac: str = Field(max_length=100)
    phone: str = Field(max_length=100)

    @field_validator("name", "mac", "phone", mode="before")
    @classmethod
    def coerce_numbers(cls, v):
        return numeric_to_str(v)


class RecordUpdate(BaseModel):
    """Partial update — only fields present in the body are applied."""
    name: str | None = Field(None, max_length=1000)
    mac: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=100)

    @field_validator("name", "mac", "phone", mode="before")
    @classmethod
    def coerce_numbers(cls, v):
        return numeric_to_str(v)

    def supplied(self) -> dict:
        return self.model_dump(exclude_unset=True)


class RecordResponse(BaseModel):
    """Public record shape."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    mac: str
    phone: str
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def mac_display(self) -> str:
        return format_mac(self.mac)


class RecordStats(BaseModel):
    """Directory overview counts."""
    total: int = 0
    recent: int = 0
    unique: int = 0
