"""Record Repository — canonical record set with MAC uniqueness under concurrent writers.

Invariants:
    - Every stored MAC is canonical (core/normalize.py) — no other form reaches the DB
    - No two records share a MAC after any create/update: enforced by the
      uq_records_mac unique index; IntegrityError on commit -> MacConflictError
    - Validation always runs before touching the store (RecordValidationError never hits the DB)
    - update() applies only supplied fields and always refreshes updated_at
    - find() is capped at MAX_RESULTS, newest-first, and returns a materialized list
    - delete() is a single DELETE ... WHERE id — a second delete raises ResourceNotFoundError

Design Decisions:
    - Duplicate MAC is 409 on create and 400 on update (the records API contract)
    - Pre-check + unique index: the pre-check gives the common case an early,
      cheap conflict; the index decides races the pre-check can't see
    - Clock injectable: timestamps are the repository's, never the client's
    - stats() is best-effort: store failures are logged and answered with zeros
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    MacConflictError, RecordValidationError, ResourceNotFoundError,
)
from app.core.normalize import clean_name, clean_phone, normalize_mac
from app.models.record import Record

logger = logging.getLogger(__name__)

MAX_RESULTS = 100
RECENT_WINDOW = timedelta(hours=24)
RECORD_FIELDS = ("name", "mac", "phone")
CREATE_CONFLICT_STATUS = 409
UPDATE_CONFLICT_STATUS = 400


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_record_fields(fields: dict) -> dict:
    """Normalize supplied fields; raise RecordValidationError on the first bad one."""
    cleaned: dict = {}
    if "name" in fields:
        name = clean_name(fields["name"]) if fields["name"] is not None else None
        if name is None:
            raise RecordValidationError("Name is required", "name")
        cleaned["name"] = name
    if "mac" in fields:
        mac = normalize_mac(fields["mac"]) if fields["mac"] is not None else None
        if mac is None:
            raise RecordValidationError(
                "Invalid MAC. Use 12 hex digits (colon/dash optional).", "mac",
            )
        cleaned["mac"] = mac
    if "phone" in fields:
        phone = clean_phone(fields["phone"]) if fields["phone"] is not None else None
        if phone is None:
            raise RecordValidationError(
                "Phone number must be between 6 and 20 characters", "phone",
            )
        cleaned["phone"] = phone
    return cleaned


def _like_pattern(term: str) -> str:
    escaped = (
        term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return f"%{escaped}%"


def _is_mac_violation(error: IntegrityError) -> bool:
    # postgres names the constraint, sqlite names the column (records.mac)
    detail = str(error.orig).lower()
    return "uq_records_mac" in detail or "records.mac" in detail


class RecordRepository:
    """Record persistence over one AsyncSession."""

    def __init__(
        self, db: AsyncSession, clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self._clock = clock

    async def create(self, name: str, mac: str, phone: str) -> Record:
        fields = validate_record_fields(
            {"name": name, "mac": mac, "phone": phone},
        )
        await self._ensure_mac_free(fields["mac"])
        now = self._clock()
        record = Record(**fields, created_at=now, updated_at=now)
        self.db.add(record)
        await self._commit(fields["mac"])
        logger.info("Record created", extra={"record_id": str(record.id)})
        return record

    async def get(self, record_id: UUID) -> Record:
        result = await self.db.execute(
            select(Record).where(Record.id == record_id),
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise ResourceNotFoundError("Record", str(record_id))
        return record

    async def update(self, record_id: UUID, fields: dict) -> Record:
        """Apply the supplied subset of name/mac/phone."""
        unknown = set(fields) - set(RECORD_FIELDS)
        if unknown:
            raise RecordValidationError(
                f"Unknown field(s): {', '.join(sorted(unknown))}",
                sorted(unknown)[0],
            )
        cleaned = validate_record_fields(fields)
        record = await self.get(record_id)
        if "mac" in cleaned and cleaned["mac"] != record.mac:
            await self._ensure_mac_free(
                cleaned["mac"], exclude_id=record_id,
                conflict_status=UPDATE_CONFLICT_STATUS,
            )
        for key, value in cleaned.items():
            setattr(record, key, value)
        record.updated_at = self._clock()
        await self._commit(
            cleaned.get("mac", record.mac), conflict_status=UPDATE_CONFLICT_STATUS,
        )
        logger.info(
            f"Record updated ({', '.join(sorted(cleaned)) or 'touch'})",
            extra={"record_id": str(record_id)},
        )
        return record

    async def delete(self, record_id: UUID) -> None:
        result = await self.db.execute(
            delete(Record).where(Record.id == record_id),
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError("Record", str(record_id))
        await self.db.commit()
        logger.info("Record deleted", extra={"record_id": str(record_id)})

    async def find(
        self,
        name: str | None = None,
        mac: str | None = None,
        phone: str | None = None,
    ) -> list[Record]:
        """Filtered search: substring on name/phone, exact canonical MAC."""
        query = select(Record)
        name = (name or "").strip()
        phone = (phone or "").strip()
        mac = (mac or "").strip()
        if name:
            query = query.where(Record.name.ilike(_like_pattern(name), escape="\\"))
        if phone:
            query = query.where(Record.phone.ilike(_like_pattern(phone), escape="\\"))
        if mac:
            canonical = normalize_mac(mac)
            if canonical is None:
                return []
            query = query.where(Record.mac == canonical)
        query = query.order_by(
            Record.created_at.desc(), Record.id.desc(),
        ).limit(MAX_RESULTS)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def stats(self, now: datetime | None = None) -> dict:
        """Total, added-in-last-24h, and distinct-MAC counts. Never raises for store faults."""
        since = (now or self._clock()) - RECENT_WINDOW
        try:
            total = await self.db.scalar(
                select(func.count()).select_from(Record),
            )
            recent = await self.db.scalar(
                select(func.count()).select_from(Record)
                .where(Record.created_at > since),
            )
            unique = await self.db.scalar(
                select(func.count(func.distinct(Record.mac))),
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning(f"Failed to load record stats: {e}")
            return {"total": 0, "recent": 0, "unique": 0}
        return {"total": total or 0, "recent": recent or 0, "unique": unique or 0}

    async def _ensure_mac_free(
        self, mac: str, exclude_id: UUID | None = None,
        conflict_status: int = CREATE_CONFLICT_STATUS,
    ) -> None:
        query = select(Record.id).where(Record.mac == mac)
        if exclude_id is not None:
            query = query.where(Record.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            raise MacConflictError(mac, http_status=conflict_status)

    async def _commit(
        self, mac: str, conflict_status: int = CREATE_CONFLICT_STATUS,
    ) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if not _is_mac_violation(e):
                raise
            logger.warning("MAC uniqueness enforced by store")
            raise MacConflictError(mac, http_status=conflict_status) from e
