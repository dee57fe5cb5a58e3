"""
계좌 API 라우트

계좌 생성/조회/수정/삭제. 계좌 생성 시 미배정 봉투가 함께 만들어진다.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.lifecycle import AccountLifecycle
from core.ledger.projection import BalanceProjection
from core.ledger.store import LedgerStore
from core.types import AccountType
from web.dependencies import get_db, get_db_write
from web.errors import ledger_errors
from web.models.requests import AccountCreateRequest, AccountUpdateRequest
from web.models.responses import DeleteResponse

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.get("")
async def list_accounts(
    type: AccountType | None = Query(default=None, description="계좌 유형 필터"),
    db: SQLiteAdapter = Depends(get_db),
):
    """계좌 목록 (최신 생성순)"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    if type is not None:
        accounts = await lifecycle.list_accounts_by_type(type)
    else:
        accounts = await lifecycle.list_accounts()
    return [a.to_dict() for a in accounts]


@router.get("/total-balance")
async def get_total_balance(
    type: AccountType | None = Query(default=None, description="계좌 유형 필터"),
    db: SQLiteAdapter = Depends(get_db),
):
    """전체 (또는 유형별) 가용 잔액 합계"""
    projection = BalanceProjection(LedgerStore(db))
    return {
        "type": type.value if type is not None else None,
        "total_balance": await projection.get_total_balance(type),
    }


@router.get("/{account_id}")
async def get_account(account_id: int, db: SQLiteAdapter = Depends(get_db)):
    """계좌 + 봉투 목록 + 잔액 차이"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    with ledger_errors("get account"):
        result = await lifecycle.get_account_with_envelopes(account_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return result.to_dict()


@router.post("", status_code=201)
async def create_account(
    request: AccountCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    """계좌 생성 (미배정 봉투 포함)"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    with ledger_errors("create account"):
        account = await lifecycle.create_account(
            name=request.name,
            account_type=request.type,
            initial_balance=request.initial_balance,
            current_balance=request.current_balance,
        )
    return account.to_dict()


@router.patch("/{account_id}")
async def update_account(
    account_id: int,
    request: AccountUpdateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    """계좌 수정 (이름 변경 시 미배정 봉투 이름도 변경)"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    with ledger_errors("update account"):
        account = await lifecycle.update_account(
            account_id,
            name=request.name,
            initial_balance=request.initial_balance,
            account_type=request.type,
        )
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return account.to_dict()


@router.delete("/{account_id}", response_model=DeleteResponse)
async def delete_account(account_id: int, db: SQLiteAdapter = Depends(get_db_write)):
    """계좌 삭제 (봉투/거래 포함)"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    with ledger_errors("delete account"):
        deleted = await lifecycle.delete_account(account_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Account not found")
    return DeleteResponse(id=account_id)
