"""
거래 API 라우트

거래 CRUD, 필터/검색 조회, 일괄 생성.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.store import LedgerStore
from core.ledger.transactions import TransactionInput, TransactionService
from core.types import TransactionStatus
from web.dependencies import get_db, get_db_write
from web.errors import ledger_errors
from web.models.requests import (
    BulkTransactionRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import DeleteResponse

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.get("")
async def get_transactions(
    account_id: int | None = Query(default=None, description="계좌 필터"),
    start_date: date | None = Query(default=None, description="시작 일자 (포함)"),
    end_date: date | None = Query(default=None, description="종료 일자 (포함)"),
    status: TransactionStatus | None = Query(default=None, description="상태 필터"),
    search: str | None = Query(default=None, description="설명/계좌명/봉투명 검색어"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: SQLiteAdapter = Depends(get_db),
):
    """거래 목록 (필터 + 페이지네이션, 최신순)

    Returns:
        transactions: 계좌/봉투 이름이 포함된 거래 목록
        total_count: 필터에 해당하는 전체 건수
    """
    service = TransactionService(LedgerStore(db))
    page = await service.get_transactions_with_filters(
        account_id=account_id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        search=search,
        limit=limit,
        offset=offset,
    )
    return page.to_dict()


@router.get("/search")
async def search_transactions(
    q: str = Query(..., min_length=1, description="검색어"),
    limit: int = Query(default=100, ge=1, le=500),
    db: SQLiteAdapter = Depends(get_db),
):
    service = TransactionService(LedgerStore(db))
    return [t.to_dict() for t in await service.search_transactions(q, limit=limit)]


@router.get("/{transaction_id}")
async def get_transaction(transaction_id: int, db: SQLiteAdapter = Depends(get_db)):
    """거래 상세 (계좌/봉투 이름, 분할 여부 포함)"""
    service = TransactionService(LedgerStore(db))
    details = await service.get_transaction_with_details(transaction_id)
    if details is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    result = details.to_dict()
    result["is_split"] = await service.is_split_transaction(transaction_id)
    return result


@router.post("", status_code=201)
async def create_transaction(
    request: TransactionCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    service = TransactionService(LedgerStore(db))
    with ledger_errors("create transaction"):
        transaction = await service.create_transaction(
            account_id=request.account_id,
            envelope_id=request.envelope_id,
            amount=request.amount,
            txn_date=request.date,
            status=request.status,
            description=request.description,
        )
    return transaction.to_dict()


@router.post("/bulk", status_code=201)
async def create_bulk_transactions(
    request: BulkTransactionRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    """거래 일괄 생성 (하나라도 실패하면 전체 취소)"""
    service = TransactionService(LedgerStore(db))
    items = [
        TransactionInput(
            account_id=item.account_id,
            envelope_id=item.envelope_id,
            amount=item.amount,
            date=item.date,
            status=item.status,
            description=item.description,
        )
        for item in request.transactions
    ]
    with ledger_errors("create transactions"):
        created = await service.create_bulk_transactions(items)
    return [t.to_dict() for t in created]


@router.patch("/{transaction_id}")
async def update_transaction(
    transaction_id: int,
    request: TransactionUpdateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    service = TransactionService(LedgerStore(db))
    with ledger_errors("update transaction"):
        transaction = await service.update_transaction(
            transaction_id,
            account_id=request.account_id,
            envelope_id=request.envelope_id,
            amount=request.amount,
            txn_date=request.date,
            status=request.status,
            description=request.description,
        )
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction.to_dict()


@router.delete("/{transaction_id}", response_model=DeleteResponse)
async def delete_transaction(transaction_id: int, db: SQLiteAdapter = Depends(get_db_write)):
    service = TransactionService(LedgerStore(db))
    with ledger_errors("delete transaction"):
        deleted = await service.delete_transaction(transaction_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return DeleteResponse(id=transaction_id)
