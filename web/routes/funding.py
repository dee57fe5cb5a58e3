"""
충전 목표 / 급여일 보상 계획 API 라우트
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.compensation import CompensationPlanner, next_paycheck_date
from core.ledger.store import LedgerStore
from web.dependencies import get_db, get_db_write
from web.errors import ledger_errors
from web.models.requests import (
    CompensationRequest,
    FundingTargetCreateRequest,
    FundingTargetUpdateRequest,
)
from web.models.responses import DeleteResponse

router = APIRouter(prefix="/api/funding", tags=["Funding"])


@router.get("/targets")
async def list_funding_targets(
    envelope_id: int | None = Query(default=None, description="봉투 필터"),
    active_only: bool = Query(default=False, description="활성 목표만"),
    db: SQLiteAdapter = Depends(get_db),
):
    planner = CompensationPlanner(LedgerStore(db))
    if envelope_id is not None:
        targets = await planner.list_funding_targets_by_envelope(envelope_id)
        if active_only:
            targets = [t for t in targets if t.is_active]
    elif active_only:
        targets = await planner.list_active_funding_targets()
    else:
        targets = await planner.list_funding_targets()
    return [t.to_dict() for t in targets]


@router.get("/targets/with-envelopes")
async def list_funding_targets_with_envelopes(db: SQLiteAdapter = Depends(get_db)):
    """활성 목표 + 봉투 이름/가용 잔액"""
    planner = CompensationPlanner(LedgerStore(db))
    return await planner.list_funding_targets_with_envelope_info()


@router.get("/targets/{target_id}")
async def get_funding_target(target_id: int, db: SQLiteAdapter = Depends(get_db)):
    planner = CompensationPlanner(LedgerStore(db))
    target = await planner.get_funding_target(target_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Funding target not found")
    return target.to_dict()


@router.post("/targets", status_code=201)
async def create_funding_target(
    request: FundingTargetCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    planner = CompensationPlanner(LedgerStore(db))
    with ledger_errors("create funding target"):
        target = await planner.create_funding_target(
            envelope_id=request.envelope_id,
            target_type=request.target_type,
            target_amount=request.target_amount,
            minimum_amount=request.minimum_amount,
            description=request.description,
            is_active=request.is_active,
        )
    return target.to_dict()


@router.patch("/targets/{target_id}")
async def update_funding_target(
    target_id: int,
    request: FundingTargetUpdateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    planner = CompensationPlanner(LedgerStore(db))
    with ledger_errors("update funding target"):
        target = await planner.update_funding_target(
            target_id,
            target_type=request.target_type,
            target_amount=request.target_amount,
            minimum_amount=request.minimum_amount,
            description=request.description,
            is_active=request.is_active,
        )
    if target is None:
        raise HTTPException(status_code=404, detail="Funding target not found")
    return target.to_dict()


@router.delete("/targets/{target_id}", response_model=DeleteResponse)
async def delete_funding_target(target_id: int, db: SQLiteAdapter = Depends(get_db_write)):
    planner = CompensationPlanner(LedgerStore(db))
    with ledger_errors("delete funding target"):
        deleted = await planner.delete_funding_target(target_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Funding target not found")
    return DeleteResponse(id=target_id)


@router.get("/debts")
async def get_current_debt(db: SQLiteAdapter = Depends(get_db)):
    """미결제 부채가 있는 부채 봉투 (부채 큰 순)"""
    planner = CompensationPlanner(LedgerStore(db))
    return [b.to_dict() for b in await planner.get_current_debt_by_envelope()]


@router.post("/compensation")
async def calculate_compensation(
    request: CompensationRequest,
    db: SQLiteAdapter = Depends(get_db),
):
    """급여일 권장 이체액 (W-2 / 배당 분할 포함)"""
    planner = CompensationPlanner(LedgerStore(db))
    paycheck_date = request.paycheck_date or next_paycheck_date(date.today())
    with ledger_errors("calculate compensation"):
        calculation = await planner.calculate_compensation(paycheck_date, request.custom_amount)
    return calculation.to_dict()


@router.get("/suggestions")
async def suggest_funding_targets(db: SQLiteAdapter = Depends(get_db)):
    """목표가 없는 현금 봉투에 대한 목표 금액 제안"""
    planner = CompensationPlanner(LedgerStore(db))
    return [s.to_dict() for s in await planner.suggest_funding_targets()]
