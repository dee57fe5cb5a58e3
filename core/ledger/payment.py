"""
신용카드 결제 엔진

현금 봉투에서 신용카드 부채를 결제하고,
부채 봉투의 미결제 거래를 오래된 순으로 정산 (부분 결제 시 분할).

처리 순서 (하나의 트랜잭션):
1. 검증 (계좌/배분 합계/봉투 유형/잔액) - 실패 시 아무것도 쓰지 않음
2. 결제 헤더 + 배분 기록
3. 배분마다 현금 봉투 출금 거래(cleared) 기록
4. 현금 봉투 이름으로 부채 봉투 매칭 → 미결제 거래 정산

사용 예시:
```python
engine = CreditCardPaymentEngine(LedgerStore(db))
result = await engine.create_payment(
    credit_card_account_id=card.id,
    total_amount=Decimal("100"),
    payment_date=date.today(),
    allocations=[AllocationRequest(envelope_id=groceries.id, amount=Decimal("100"))],
)
```
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Sequence

from core.constants import Descriptions, Tolerances
from core.ledger.errors import (
    AllocationMismatchError,
    InsufficientFundsError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from core.ledger.models import (
    ZERO,
    Account,
    BalanceByStatus,
    CreditCardPayment,
    CreditCardPaymentWithAllocations,
    Envelope,
    PaymentAllocation,
    TransactionDetails,
    to_money,
)
from core.ledger.planning import (
    PaymentSuggestion,
    SettlementPlan,
    plan_settlement,
    resolve_debt_envelope,
    suggest_allocations,
)
from core.ledger.projection import BalanceProjection
from core.ledger.store import LedgerStore, TransactionFilter
from core.types import EnvelopeType, TransactionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationRequest:
    """결제 배분 요청 (현금 봉투 ID, 금액)"""

    envelope_id: int
    amount: Decimal


@dataclass(frozen=True)
class EnvelopeImpact:
    """결제 시뮬레이션의 봉투별 영향"""

    envelope_id: int
    envelope_name: str
    current_balance: Decimal
    after_payment: Decimal
    sufficient_funds: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "envelope_id": self.envelope_id,
            "envelope_name": self.envelope_name,
            "current_balance": self.current_balance,
            "after_payment": self.after_payment,
            "sufficient_funds": self.sufficient_funds,
        }


@dataclass(frozen=True)
class PaymentSimulation:
    """결제 시뮬레이션 결과 (기록 없음)"""

    valid: bool
    errors: list[str]
    total_amount: Decimal
    envelope_impacts: list[EnvelopeImpact] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": self.errors,
            "total_amount": self.total_amount,
            "envelope_impacts": [i.to_dict() for i in self.envelope_impacts],
        }


@dataclass
class _PaymentCheck:
    """검증 중간 결과"""

    account: Account | None = None
    envelopes: dict[int, Envelope] = field(default_factory=dict)
    available: dict[int, Decimal] = field(default_factory=dict)
    requested: dict[int, Decimal] = field(default_factory=dict)
    issues: list[LedgerError] = field(default_factory=list)


def remainder_description(description: str | None) -> str:
    """부분 결제 후 남은 미결제 거래의 설명"""
    if not description:
        return Descriptions.PARTIAL_REMAINDER
    if description.endswith(Descriptions.PARTIAL_REMAINDER):
        return description
    return f"{description} {Descriptions.PARTIAL_REMAINDER}"


def is_split_description(description: str | None) -> bool:
    """부분 결제 분할로 생성된 거래인지 확인"""
    return bool(description) and Descriptions.PARTIAL_REMAINDER in description


class CreditCardPaymentEngine:
    """신용카드 결제 엔진

    Args:
        store: Ledger 저장소
        projection: 잔액 Projection (None이면 store로 생성)
    """

    def __init__(self, store: LedgerStore, projection: BalanceProjection | None = None):
        self.store = store
        self.projection = projection or BalanceProjection(store)

    # -------------------------------------------------------------------------
    # 결제 생성
    # -------------------------------------------------------------------------

    async def create_payment(
        self,
        credit_card_account_id: int,
        total_amount: Decimal | int | str,
        payment_date: date,
        allocations: Sequence[AllocationRequest],
        description: str | None = None,
    ) -> CreditCardPaymentWithAllocations:
        """신용카드 결제 생성

        Args:
            credit_card_account_id: 신용카드 계좌 ID
            total_amount: 결제 총액 (양수)
            payment_date: 결제 일자
            allocations: 현금 봉투별 배분
            description: 설명

        Returns:
            결제 헤더 + 배분 (배분별 정산/분할 거래 ID, 초과 결제액 포함)

        Raises:
            NotFoundError: 계좌/봉투가 존재하지 않는 경우
            ValidationError: 신용카드 계좌가 아님, 현금 봉투가 아님, 금액 오류
            AllocationMismatchError: 배분 합계 != 결제 총액
            InsufficientFundsError: 현금 봉투 잔액 부족
        """
        total_amount = to_money(total_amount)
        allocations = [
            AllocationRequest(envelope_id=a.envelope_id, amount=to_money(a.amount))
            for a in allocations
        ]

        async with self.store.db.transaction():
            check = await self._check_payment(credit_card_account_id, allocations, total_amount)
            if check.issues:
                logger.warning(
                    f"결제 거부: {check.issues[0]}",
                    extra={"credit_card_account_id": credit_card_account_id},
                )
                raise check.issues[0]

            account = check.account
            payment_id = await self.store.insert_payment(
                credit_card_account_id=account.id,
                total_amount=total_amount,
                payment_date=payment_date,
                description=description,
            )
            debt_envelopes = await self.store.list_envelopes(
                account_id=account.id,
                envelope_type=EnvelopeType.DEBT,
            )

            cash_description = f"Credit card payment to {account.name}"
            if description:
                cash_description += f": {description}"

            results: list[PaymentAllocation] = []
            for allocation in allocations:
                envelope = check.envelopes[allocation.envelope_id]
                allocation_id = await self.store.insert_allocation(
                    payment_id, envelope.id, allocation.amount
                )
                await self.store.insert_transaction(
                    account_id=envelope.account_id,
                    envelope_id=envelope.id,
                    amount=-allocation.amount,
                    txn_date=payment_date,
                    status=TransactionStatus.CLEARED,
                    description=cash_description,
                )

                debt_envelope = resolve_debt_envelope(debt_envelopes, envelope.name)
                if debt_envelope is None:
                    plan = SettlementPlan(excess=allocation.amount)
                    split_ids: list[int] = []
                else:
                    unpaid = await self.store.list_unpaid_transactions(debt_envelope.id)
                    plan = plan_settlement(unpaid, allocation.amount)
                    split_ids = await self._apply_settlement(plan)

                if plan.excess > 0:
                    logger.warning(
                        f"초과 결제: {envelope.name} 배분 중 {plan.excess} 정산 대상 없음",
                        extra={
                            "payment_id": payment_id,
                            "envelope_id": envelope.id,
                            "debt_envelope_id": debt_envelope.id if debt_envelope else None,
                            "excess": str(plan.excess),
                        },
                    )

                results.append(
                    PaymentAllocation(
                        id=allocation_id,
                        payment_id=payment_id,
                        envelope_id=envelope.id,
                        amount=allocation.amount,
                        envelope_name=envelope.name,
                        debt_envelope_id=debt_envelope.id if debt_envelope else None,
                        settled_transaction_ids=tuple(plan.settled_ids),
                        split_transaction_ids=tuple(split_ids),
                        excess_amount=plan.excess,
                    )
                )

        payment = await self.store.get_payment(payment_id)
        logger.info(
            f"신용카드 결제 완료: {account.name} {total_amount}",
            extra={
                "payment_id": payment_id,
                "credit_card_account_id": account.id,
                "allocations": len(results),
            },
        )
        return CreditCardPaymentWithAllocations(payment=payment, allocations=results)

    async def _apply_settlement(self, plan: SettlementPlan) -> list[int]:
        """정산 계획 반영

        Returns:
            분할로 새로 생성된 미결제 거래 ID 목록
        """
        split_ids: list[int] = []
        for step in plan.steps:
            txn = step.transaction
            if not step.is_split:
                await self.store.update_transaction(txn.id, status=TransactionStatus.PAID)
                continue

            await self.store.update_transaction(
                txn.id,
                amount=step.paid_amount,
                status=TransactionStatus.PAID,
            )
            new_id = await self.store.insert_transaction(
                account_id=txn.account_id,
                envelope_id=txn.envelope_id,
                amount=step.remainder,
                txn_date=txn.date,
                status=TransactionStatus.UNPAID,
                description=remainder_description(txn.description),
            )
            split_ids.append(new_id)
            logger.info(
                f"부분 결제 분할: 거래 {txn.id} → paid {step.paid_amount}, 잔여 {step.remainder}",
                extra={"transaction_id": txn.id, "remainder_transaction_id": new_id},
            )
        return split_ids

    async def _check_payment(
        self,
        account_id: int,
        allocations: Sequence[AllocationRequest],
        total_amount: Decimal | None,
    ) -> _PaymentCheck:
        """결제 사전조건 검사 (모든 위반을 수집)"""
        check = _PaymentCheck()

        account = await self.store.get_account(account_id)
        if account is None:
            check.issues.append(
                NotFoundError("account", account_id, "Credit card account not found")
            )
            return check
        if not account.is_credit_card:
            check.issues.append(ValidationError("Account must be a credit card account"))
            return check
        check.account = account

        if total_amount is not None and total_amount <= 0:
            check.issues.append(ValidationError(f"Payment total must be positive: {total_amount}"))
        if not allocations:
            check.issues.append(ValidationError("Payment requires at least one allocation"))
            return check

        allocation_total = sum((a.amount for a in allocations), ZERO)
        if total_amount is not None and abs(allocation_total - total_amount) > Tolerances.ALLOCATION:
            check.issues.append(AllocationMismatchError(allocation_total, total_amount))

        requested: dict[int, Decimal] = defaultdict(lambda: ZERO)
        for allocation in allocations:
            if allocation.amount <= 0:
                check.issues.append(
                    ValidationError(f"Allocation amount must be positive: {allocation.amount}")
                )
                continue
            requested[allocation.envelope_id] += allocation.amount

        for envelope_id, amount in requested.items():
            envelope = await self.store.get_envelope(envelope_id)
            if envelope is None:
                check.issues.append(NotFoundError("envelope", envelope_id))
                continue
            check.envelopes[envelope_id] = envelope
            check.requested[envelope_id] = amount

            if envelope.type != EnvelopeType.CASH:
                check.issues.append(
                    ValidationError(
                        f"Envelope {envelope.name} must be a cash envelope to fund a payment"
                    )
                )
                continue

            available = await self.projection.get_available_balance(envelope_id)
            check.available[envelope_id] = available
            if available < amount:
                check.issues.append(InsufficientFundsError(envelope.name, available, amount))

        return check

    # -------------------------------------------------------------------------
    # 시뮬레이션 / 제안
    # -------------------------------------------------------------------------

    async def simulate_payment(
        self,
        credit_card_account_id: int,
        allocations: Sequence[AllocationRequest],
        total_amount: Decimal | int | str | None = None,
    ) -> PaymentSimulation:
        """결제 검증 + 봉투별 결제 전후 잔액 (기록하지 않음)

        total_amount를 생략하면 배분 합계를 총액으로 간주.
        """
        allocations = [
            AllocationRequest(envelope_id=a.envelope_id, amount=to_money(a.amount))
            for a in allocations
        ]
        allocation_total = sum((a.amount for a in allocations), ZERO)
        total = to_money(total_amount) if total_amount is not None else None

        check = await self._check_payment(credit_card_account_id, allocations, total)

        impacts = []
        for envelope_id, amount in check.requested.items():
            if envelope_id not in check.available:
                continue
            envelope = check.envelopes[envelope_id]
            available = check.available[envelope_id]
            impacts.append(
                EnvelopeImpact(
                    envelope_id=envelope_id,
                    envelope_name=envelope.name,
                    current_balance=available,
                    after_payment=available - amount,
                    sufficient_funds=available >= amount,
                )
            )

        return PaymentSimulation(
            valid=not check.issues,
            errors=[str(issue) for issue in check.issues],
            total_amount=total if total is not None else allocation_total,
            envelope_impacts=impacts,
        )

    async def suggest_payment_allocation(
        self,
        credit_card_account_id: int,
        target_amount: Decimal | int | str,
    ) -> PaymentSuggestion:
        """목표 결제액에 대한 현금 봉투 배분 제안"""
        debts = await self.store.fetch_envelope_balances(
            account_id=credit_card_account_id,
            envelope_type=EnvelopeType.DEBT,
        )
        cash = await self.store.fetch_envelope_balances(envelope_type=EnvelopeType.CASH)
        return suggest_allocations(debts, cash, to_money(target_amount))

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_payment(self, payment_id: int) -> CreditCardPayment | None:
        return await self.store.get_payment(payment_id)

    async def get_payment_with_allocations(self, payment_id: int) -> CreditCardPaymentWithAllocations | None:
        payment = await self.store.get_payment(payment_id)
        if payment is None:
            return None
        allocations = await self.store.list_allocations(payment_id)
        return CreditCardPaymentWithAllocations(payment=payment, allocations=allocations)

    async def list_payments(self, credit_card_account_id: int | None = None) -> list[CreditCardPayment]:
        return await self.store.list_payments(credit_card_account_id)

    async def get_unpaid_transactions_by_credit_card(self, credit_card_account_id: int) -> list[TransactionDetails]:
        """신용카드 계좌의 미결제 거래 (오래된 순)"""
        return await self.store.query_transactions(
            TransactionFilter(
                account_id=credit_card_account_id,
                status=TransactionStatus.UNPAID,
            ),
            oldest_first=True,
        )

    async def get_debt_by_envelope_category(self, credit_card_account_id: int | None = None) -> list[BalanceByStatus]:
        """부채 봉투별 미결제 합계 (0이 아닌 것만)"""
        balances = await self.store.fetch_envelope_balances(
            account_id=credit_card_account_id,
            envelope_type=EnvelopeType.DEBT,
        )
        return [b for b in balances if b.unpaid_balance != 0]

    async def get_cash_envelope_balances(self) -> list[BalanceByStatus]:
        return await self.store.fetch_envelope_balances(envelope_type=EnvelopeType.CASH)
