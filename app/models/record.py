"""Record ORM — one contact entry keyed by its canonical MAC address.

Invariants:
    - id is UUID primary key, assigned at creation, never updated
    - mac holds the canonical form only (12 lowercase hex chars) and is unique
      across the table (uq_records_mac) — the store, not application code,
      decides the winner between concurrent writers
    - created_at / updated_at are set by the repository, never by clients

Design Decisions:
    - Unique index over check-then-insert: a pre-check alone admits a
      time-of-check/time-of-use race under concurrent requests
    - name/phone indexed for filtered search; created_at indexed for newest-first listing
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(Base):
    """Directory entry — name, MAC, phone."""
    __tablename__ = "records"
    __table_args__ = (
        UniqueConstraint("mac", name="uq_records_mac"),
        Index("ix_records_name", "name"),
        Index("ix_records_phone", "phone"),
        Index("ix_records_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    mac: Mapped[str] = mapped_column(String(12), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
