"""Record Routes — search, create, fetch, update, delete behind the session gate.

Invariants:
    - Every endpoint requires UnlockTier >= UNLOCKED (router-level dependency)
    - Malformed ids rejected by UUID path parsing (400 via validation handler)
    - Routes hold no business rules: RecordRepository validates and enforces uniqueness

Design Decisions:
    - /stats declared before /{record_id} so it isn't parsed as an id
    - Responses wrap payloads ({"record": ...}, {"records": [...]}) for the UI's existing shape
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_record_repository, require_unlocked
from app.schemas.record import (
    RecordCreate, RecordResponse, RecordStats, RecordUpdate,
)
from app.services.record_repository import RecordRepository

router = APIRouter(
    prefix="/api/v1/records", tags=["records"],
    dependencies=[Depends(require_unlocked)],
)


def _serialize(record) -> dict:
    return RecordResponse.model_validate(record).model_dump(mode="json")


@router.get("")
async def search_records(
    name: str | None = Query(None, max_length=200),
    mac: str | None = Query(None, max_length=100),
    phone: str | None = Query(None, max_length=100),
    repo: RecordRepository = Depends(get_record_repository),
):
    """Filtered list, newest first, capped at 100."""
    records = await repo.find(name=name, mac=mac, phone=phone)
    return {"records": [_serialize(r) for r in records]}


@router.get("/stats", response_model=RecordStats)
async def record_stats(
    repo: RecordRepository = Depends(get_record_repository),
):
    """Overview counts. Best-effort: zeros when the store can't answer."""
    return await repo.stats()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_record(
    body: RecordCreate,
    repo: RecordRepository = Depends(get_record_repository),
):
    record = await repo.create(body.name, body.mac, body.phone)
    return {"record": _serialize(record)}


@router.get("/{record_id}")
async def get_record(
    record_id: UUID,
    repo: RecordRepository = Depends(get_record_repository),
):
    record = await repo.get(record_id)
    return {"record": _serialize(record)}


@router.patch("/{record_id}")
async def update_record(
    record_id: UUID,
    body: RecordUpdate,
    repo: RecordRepository = Depends(get_record_repository),
):
    """Apply only the fields present in the body."""
    record = await repo.update(record_id, body.supplied())
    return {"record": _serialize(record)}


@router.delete("/{record_id}")
async def delete_record(
    record_id: UUID,
    repo: RecordRepository = Depends(get_record_repository),
):
    await repo.delete(record_id)
    return {"ok": True}
