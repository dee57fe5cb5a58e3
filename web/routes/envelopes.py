"""
봉투 API 라우트
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.lifecycle import AccountLifecycle
from core.ledger.store import LedgerStore
from core.types import EnvelopeType
from web.dependencies import get_db, get_db_write
from web.errors import ledger_errors
from web.models.requests import EnvelopeCreateRequest, EnvelopeUpdateRequest
from web.models.responses import DeleteResponse

router = APIRouter(prefix="/api/envelopes", tags=["Envelopes"])


@router.get("")
async def list_envelopes(
    account_id: int | None = Query(default=None, description="계좌 필터"),
    type: EnvelopeType | None = Query(default=None, description="봉투 유형 필터"),
    db: SQLiteAdapter = Depends(get_db),
):
    """봉투 목록"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    if account_id is not None:
        envelopes = await lifecycle.list_envelopes_by_account(account_id)
        if type is not None:
            envelopes = [e for e in envelopes if e.type == type]
    elif type is not None:
        envelopes = await lifecycle.list_envelopes_by_type(type)
    else:
        envelopes = await lifecycle.list_envelopes()
    return [e.to_dict() for e in envelopes]


@router.get("/with-accounts")
async def list_envelopes_with_account(db: SQLiteAdapter = Depends(get_db)):
    """봉투 목록 + 계좌 이름/유형"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    return await lifecycle.list_envelopes_with_account()


@router.get("/{envelope_id}")
async def get_envelope(envelope_id: int, db: SQLiteAdapter = Depends(get_db)):
    lifecycle = AccountLifecycle(LedgerStore(db))
    envelope = await lifecycle.get_envelope(envelope_id)
    if envelope is None:
        raise HTTPException(status_code=404, detail="Envelope not found")
    return envelope.to_dict()


@router.post("", status_code=201)
async def create_envelope(
    request: EnvelopeCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    """봉투 생성 (시작 잔액은 미배정 봉투에서 이체)"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    with ledger_errors("create envelope"):
        envelope = await lifecycle.create_envelope(
            name=request.name,
            account_id=request.account_id,
            envelope_type=request.type,
            current_balance=request.current_balance,
            spending_limit=request.spending_limit,
            description=request.description,
        )
    return envelope.to_dict()


@router.patch("/{envelope_id}")
async def update_envelope(
    envelope_id: int,
    request: EnvelopeUpdateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    lifecycle = AccountLifecycle(LedgerStore(db))
    with ledger_errors("update envelope"):
        envelope = await lifecycle.update_envelope(
            envelope_id,
            name=request.name,
            spending_limit=request.spending_limit,
            description=request.description,
        )
    if envelope is None:
        raise HTTPException(status_code=404, detail="Envelope not found")
    return envelope.to_dict()


@router.delete("/{envelope_id}", response_model=DeleteResponse)
async def delete_envelope(envelope_id: int, db: SQLiteAdapter = Depends(get_db_write)):
    """봉투 삭제 (거래는 미배정 봉투로 이동)"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    with ledger_errors("delete envelope"):
        deleted = await lifecycle.delete_envelope(envelope_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Envelope not found")
    return DeleteResponse(id=envelope_id)
