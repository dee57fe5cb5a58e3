"""
이체 API 라우트

- 봉투 간 이체: 같은 계좌 안에서 자금 재배분
- 계좌 간 이체: 은행형 계좌 사이 자금 이동
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.store import LedgerStore
from core.ledger.transfer import EnvelopeTransferService
from web.dependencies import get_db, get_db_write
from web.errors import ledger_errors
from web.models.requests import AccountTransferRequest, EnvelopeTransferRequest

router = APIRouter(prefix="/api/transfers", tags=["Transfers"])


@router.post("/envelopes", status_code=201)
async def transfer_between_envelopes(
    request: EnvelopeTransferRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    """봉투 간 이체

    출금/입금 거래 한 쌍과 이체 기록을 원자적으로 생성.
    잔액 부족 시 409.
    """
    service = EnvelopeTransferService(LedgerStore(db))
    with ledger_errors("transfer between envelopes"):
        transfer = await service.transfer_between_envelopes(
            from_envelope_id=request.from_envelope_id,
            to_envelope_id=request.to_envelope_id,
            amount=request.amount,
            description=request.description,
            transfer_date=request.date,
        )
    return transfer.to_dict()


@router.get("/envelopes")
async def get_envelope_transfers(
    envelope_id: int | None = Query(default=None, description="출금 또는 입금 봉투 필터"),
    db: SQLiteAdapter = Depends(get_db),
):
    """봉투 간 이체 이력 (최신순)"""
    service = EnvelopeTransferService(LedgerStore(db))
    return [t.to_dict() for t in await service.get_transfer_history(envelope_id)]


@router.post("/accounts", status_code=201)
async def transfer_between_accounts(
    request: AccountTransferRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    """계좌 간 이체 (은행형 계좌만)"""
    service = EnvelopeTransferService(LedgerStore(db))
    with ledger_errors("transfer between accounts"):
        transfer = await service.create_account_transfer(
            from_account_id=request.from_account_id,
            to_account_id=request.to_account_id,
            from_envelope_id=request.from_envelope_id,
            to_envelope_id=request.to_envelope_id,
            amount=request.amount,
            transfer_date=request.date,
            description=request.description,
        )
    return transfer.to_dict()


@router.get("/accounts")
async def get_account_transfers(db: SQLiteAdapter = Depends(get_db)):
    service = EnvelopeTransferService(LedgerStore(db))
    return [t.to_dict() for t in await service.list_account_transfers()]


@router.get("/accounts/{transfer_id}")
async def get_account_transfer(transfer_id: int, db: SQLiteAdapter = Depends(get_db)):
    service = EnvelopeTransferService(LedgerStore(db))
    transfer = await service.get_account_transfer(transfer_id)
    if transfer is None:
        raise HTTPException(status_code=404, detail="Transfer not found")
    return transfer.to_dict()
