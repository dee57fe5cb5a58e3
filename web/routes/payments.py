"""
신용카드 결제 API 라우트

결제 생성, 시뮬레이션, 배분 제안, 미결제 거래/부채 조회.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.payment import AllocationRequest, CreditCardPaymentEngine
from core.ledger.store import LedgerStore
from web.dependencies import get_db, get_db_write
from web.errors import ledger_errors
from web.models.requests import AllocationItem, PaymentCreateRequest, PaymentSimulateRequest

router = APIRouter(prefix="/api/payments", tags=["Payments"])


def _allocation_requests(items: list[AllocationItem]) -> list[AllocationRequest]:
    return [AllocationRequest(envelope_id=item.envelope_id, amount=item.amount) for item in items]


@router.post("", status_code=201)
async def create_payment(
    request: PaymentCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
):
    """신용카드 결제

    현금 봉투에서 차감하고 부채 봉투의 미결제 거래를 오래된 순으로 정산.
    초과 결제는 거부하지 않고 excess_amount로 보고.
    """
    engine = CreditCardPaymentEngine(LedgerStore(db))
    with ledger_errors("create payment"):
        payment = await engine.create_payment(
            credit_card_account_id=request.credit_card_account_id,
            total_amount=request.total_amount,
            payment_date=request.date,
            allocations=_allocation_requests(request.allocations),
            description=request.description,
        )
    return payment.to_dict()


@router.post("/simulate")
async def simulate_payment(
    request: PaymentSimulateRequest,
    db: SQLiteAdapter = Depends(get_db),
):
    """결제 시뮬레이션 (기록 없음)"""
    engine = CreditCardPaymentEngine(LedgerStore(db))
    with ledger_errors("simulate payment"):
        simulation = await engine.simulate_payment(
            credit_card_account_id=request.credit_card_account_id,
            allocations=_allocation_requests(request.allocations),
            total_amount=request.total_amount,
        )
    return simulation.to_dict()


@router.get("/suggest")
async def suggest_payment_allocation(
    credit_card_account_id: int = Query(..., description="신용카드 계좌 ID"),
    amount: Decimal = Query(..., gt=0, description="목표 결제액"),
    db: SQLiteAdapter = Depends(get_db),
):
    """목표 결제액에 대한 현금 봉투 배분 제안"""
    engine = CreditCardPaymentEngine(LedgerStore(db))
    with ledger_errors("suggest payment allocation"):
        suggestion = await engine.suggest_payment_allocation(credit_card_account_id, amount)
    return suggestion.to_dict()


@router.get("")
async def list_payments(
    credit_card_account_id: int | None = Query(default=None, description="신용카드 계좌 필터"),
    db: SQLiteAdapter = Depends(get_db),
):
    engine = CreditCardPaymentEngine(LedgerStore(db))
    return [p.to_dict() for p in await engine.list_payments(credit_card_account_id)]


@router.get("/debts")
async def get_debt_by_envelope(
    credit_card_account_id: int | None = Query(default=None, description="신용카드 계좌 필터"),
    db: SQLiteAdapter = Depends(get_db),
):
    """부채 봉투별 미결제 잔액"""
    engine = CreditCardPaymentEngine(LedgerStore(db))
    return [b.to_dict() for b in await engine.get_debt_by_envelope_category(credit_card_account_id)]


@router.get("/cash-envelopes")
async def get_cash_envelope_balances(db: SQLiteAdapter = Depends(get_db)):
    """결제 재원으로 쓸 수 있는 현금 봉투 잔액"""
    engine = CreditCardPaymentEngine(LedgerStore(db))
    return [b.to_dict() for b in await engine.get_cash_envelope_balances()]


@router.get("/unpaid/{credit_card_account_id}")
async def get_unpaid_transactions(
    credit_card_account_id: int,
    db: SQLiteAdapter = Depends(get_db),
):
    """신용카드 계좌의 미결제 거래 (오래된 순)"""
    engine = CreditCardPaymentEngine(LedgerStore(db))
    return [t.to_dict() for t in await engine.get_unpaid_transactions_by_credit_card(credit_card_account_id)]


@router.get("/{payment_id}")
async def get_payment(payment_id: int, db: SQLiteAdapter = Depends(get_db)):
    """결제 + 배분 상세"""
    engine = CreditCardPaymentEngine(LedgerStore(db))
    payment = await engine.get_payment_with_allocations(payment_id)
    if payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment.to_dict()
