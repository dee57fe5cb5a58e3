"""
잔액 / 무결성 API 라우트

상태별 잔액 Projection 조회와 계좌-봉투 잔액 일관성 검사.
"""

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.integrity import IntegrityValidator
from core.ledger.lifecycle import AccountLifecycle
from core.ledger.projection import BalanceProjection
from core.ledger.store import LedgerStore
from core.types import AccountType, EnvelopeType
from web.dependencies import get_db, get_db_write
from web.errors import ledger_errors

router = APIRouter(prefix="/api/balances", tags=["Balances"])


@router.get("/accounts")
async def get_account_balances(
    type: AccountType | None = Query(default=None, description="계좌 유형 필터"),
    db: SQLiteAdapter = Depends(get_db),
):
    """계좌별 상태 잔액 (account_balances_by_status)"""
    projection = BalanceProjection(LedgerStore(db))
    return [b.to_dict() for b in await projection.get_account_balances(type)]


@router.get("/accounts/{account_id}")
async def get_account_balance(account_id: int, db: SQLiteAdapter = Depends(get_db)):
    """단일 계좌 상태 잔액 (없으면 0 잔액)"""
    projection = BalanceProjection(LedgerStore(db))
    balance = await projection.get_account_balance(account_id)
    return balance.to_dict()


@router.get("/envelopes")
async def get_envelope_balances(
    account_id: int | None = Query(default=None, description="계좌 필터"),
    type: EnvelopeType | None = Query(default=None, description="봉투 유형 필터"),
    db: SQLiteAdapter = Depends(get_db),
):
    """봉투별 상태 잔액 (envelope_balances_by_status)"""
    projection = BalanceProjection(LedgerStore(db))
    balances = await projection.get_envelope_balances(account_id=account_id, envelope_type=type)
    return [b.to_dict() for b in balances]


@router.get("/envelopes/{envelope_id}")
async def get_envelope_balance(envelope_id: int, db: SQLiteAdapter = Depends(get_db)):
    projection = BalanceProjection(LedgerStore(db))
    balance = await projection.get_envelope_balance(envelope_id)
    return balance.to_dict()


@router.get("/integrity")
async def check_integrity(db: SQLiteAdapter = Depends(get_db)):
    """계좌 가용 잔액 == 봉투 가용 잔액 합계 검사

    Returns:
        valid: 불일치가 없으면 True
        discrepancies: 불일치 계좌 목록
    """
    validator = IntegrityValidator(LedgerStore(db))
    discrepancies = await validator.validate()
    return {
        "valid": not discrepancies,
        "discrepancies": [d.to_dict() for d in discrepancies],
    }


@router.get("/integrity/stored")
async def check_stored_balances(db: SQLiteAdapter = Depends(get_db)):
    """저장된 current_balance와 계산 잔액 비교 (참고용)"""
    validator = IntegrityValidator(LedgerStore(db))
    return [d.to_dict() for d in await validator.get_stored_balance_discrepancies()]


@router.post("/integrity/repair")
async def repair_unassigned_envelopes(db: SQLiteAdapter = Depends(get_db_write)):
    """미배정 봉투가 없는 계좌에 미배정 봉투 생성"""
    lifecycle = AccountLifecycle(LedgerStore(db))
    with ledger_errors("repair unassigned envelopes"):
        result = await lifecycle.create_missing_unassigned_envelopes()
    return result.to_dict()
