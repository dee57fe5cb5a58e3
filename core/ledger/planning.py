"""
결제 계획 (순수 함수)

DB에 접근하지 않는 결제 알고리즘:
- 현금 봉투 → 부채 봉투 매칭 (resolve_debt_envelope)
- 미결제 거래 선입선출 정산 및 부분 결제 분할 (plan_settlement)
- 결제 배분 제안 (suggest_allocations)

CreditCardPaymentEngine이 조회한 행을 넘겨 계획을 받고, 계획대로 쓰기만 수행.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

from core.constants import Tolerances
from core.ledger.models import ZERO, BalanceByStatus, Envelope, Transaction, to_money
from core.types import is_unassigned_name

CREDIT_CARD_ENVELOPE_PREFIX = "Credit Card"
_PERCENT_QUANT = Decimal("0.01")


# =============================================================================
# 부채 봉투 매칭
# =============================================================================


def resolve_debt_envelope(debt_envelopes: Sequence[Envelope], cash_envelope_name: str) -> Envelope | None:
    """현금 봉투 이름으로 신용카드 계좌의 부채 봉투 선택

    우선순위:
    1. 정확히 "Credit Card {현금 봉투 이름}"
    2. 현금 봉투 이름을 포함하는 첫 봉투 (대소문자 무시, 생성 순)
    3. 미배정(Unassigned) 부채 봉투 (생성 순 첫 번째)

    Args:
        debt_envelopes: 신용카드 계좌의 부채 봉투 목록 (id 오름차순)
        cash_envelope_name: 결제 재원 현금 봉투 이름

    Returns:
        매칭된 부채 봉투 (없으면 None)
    """
    exact_name = f"{CREDIT_CARD_ENVELOPE_PREFIX} {cash_envelope_name}"
    for envelope in debt_envelopes:
        if envelope.name == exact_name:
            return envelope

    needle = cash_envelope_name.casefold()
    for envelope in debt_envelopes:
        if needle in envelope.name.casefold():
            return envelope

    for envelope in debt_envelopes:
        if is_unassigned_name(envelope.name):
            return envelope

    return None


# =============================================================================
# 선입선출 정산
# =============================================================================


@dataclass(frozen=True)
class SettlementStep:
    """미결제 거래 1건의 정산 결과

    Attributes:
        transaction: 원본 미결제 거래
        paid_amount: 결제 처리되는 금액
        remainder: 새 미결제 거래로 남는 금액 (완납이면 0)
    """

    transaction: Transaction
    paid_amount: Decimal
    remainder: Decimal = ZERO

    @property
    def is_split(self) -> bool:
        return self.remainder > 0


@dataclass(frozen=True)
class SettlementPlan:
    """결제 금액 1건의 정산 계획"""

    steps: list[SettlementStep] = field(default_factory=list)
    excess: Decimal = ZERO

    @property
    def settled_ids(self) -> list[int]:
        return [step.transaction.id for step in self.steps]

    @property
    def split_steps(self) -> list[SettlementStep]:
        return [step for step in self.steps if step.is_split]


def plan_settlement(unpaid: Sequence[Transaction], amount: Decimal) -> SettlementPlan:
    """미결제 거래를 오래된 순으로 결제 금액만큼 정산

    - 거래 금액 <= 남은 결제액: 전액 paid
    - 거래 금액 > 남은 결제액: 남은 결제액만큼 paid, 차액은 새 unpaid 거래로 분할
    - 모든 거래 정산 후 남은 결제액이 허용 오차를 넘으면 excess로 보고

    정산 순서는 입력 순서와 무관하게 (date, id) 오름차순. 같은 날짜는 먼저 생성된 거래부터.

    Args:
        unpaid: 미결제 거래
        amount: 결제 금액 (양수)

    Returns:
        정산 계획
    """
    remaining = to_money(amount)
    steps: list[SettlementStep] = []

    for txn in sorted(unpaid, key=lambda t: (t.date, t.id)):
        if remaining <= 0:
            break

        if txn.amount <= remaining:
            steps.append(SettlementStep(transaction=txn, paid_amount=txn.amount))
            remaining -= txn.amount
        else:
            steps.append(
                SettlementStep(
                    transaction=txn,
                    paid_amount=remaining,
                    remainder=txn.amount - remaining,
                )
            )
            remaining = ZERO

    excess = remaining if remaining > Tolerances.EXCESS_PAYMENT else ZERO
    return SettlementPlan(steps=steps, excess=excess)


# =============================================================================
# 결제 배분 제안
# =============================================================================


@dataclass
class SuggestedAllocation:
    """제안된 배분 1건

    Attributes:
        debt_coverage: 매칭된 부채 봉투 대비 커버 비율(%) (이름 매칭이 아니면 None)
    """

    envelope_id: int
    envelope_name: str
    available_balance: Decimal
    suggested_amount: Decimal
    debt_coverage: Decimal | None = None

    def to_dict(self) -> dict:
        return {
            "envelope_id": self.envelope_id,
            "envelope_name": self.envelope_name,
            "available_balance": self.available_balance,
            "suggested_amount": self.suggested_amount,
            "debt_coverage": self.debt_coverage,
        }


@dataclass
class PaymentSuggestion:
    suggested_allocations: list[SuggestedAllocation]
    total_suggested: Decimal
    coverage_percentage: Decimal

    def to_dict(self) -> dict:
        return {
            "suggested_allocations": [a.to_dict() for a in self.suggested_allocations],
            "total_suggested": self.total_suggested,
            "coverage_percentage": self.coverage_percentage,
        }


def _names_match(a: str, b: str) -> bool:
    a, b = a.casefold(), b.casefold()
    return a in b or b in a


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return ZERO
    return (part / whole * 100).quantize(_PERCENT_QUANT)


def suggest_allocations(
    debts: Sequence[BalanceByStatus],
    cash_envelopes: Sequence[BalanceByStatus],
    target_amount: Decimal,
) -> PaymentSuggestion:
    """결제 목표액에 대한 현금 봉투 배분 제안

    1차: 부채 봉투(부채 큰 순)마다 이름이 겹치는 현금 봉투에서 min(잔액, 부채, 남은 목표)
    2차: 남은 목표액을 잔액이 남은 현금 봉투(잔액 큰 순)에서 충당

    Args:
        debts: 부채 봉투 잔액 (available = 미결제 부채)
        cash_envelopes: 현금 봉투 잔액
        target_amount: 결제 목표액

    Returns:
        배분 제안
    """
    target = to_money(target_amount)
    debt_rows = sorted(
        (d for d in debts if d.available_balance > 0),
        key=lambda d: d.available_balance,
        reverse=True,
    )
    cash_rows = sorted(
        (c for c in cash_envelopes if c.available_balance > 0),
        key=lambda c: c.available_balance,
        reverse=True,
    )
    remaining_cash = {c.entity_id: c.available_balance for c in cash_rows}

    suggestions: list[SuggestedAllocation] = []
    by_envelope: dict[int, SuggestedAllocation] = {}
    remaining = target

    for debt in debt_rows:
        if remaining <= 0:
            break
        cash = next(
            (c for c in cash_rows if _names_match(c.name, debt.name) and remaining_cash[c.entity_id] > 0),
            None,
        )
        if cash is None:
            continue

        amount = min(remaining_cash[cash.entity_id], abs(debt.available_balance), remaining)
        suggestion = SuggestedAllocation(
            envelope_id=cash.entity_id,
            envelope_name=cash.name,
            available_balance=cash.available_balance,
            suggested_amount=amount,
            debt_coverage=_percent(amount, abs(debt.available_balance)),
        )
        suggestions.append(suggestion)
        by_envelope.setdefault(cash.entity_id, suggestion)
        remaining_cash[cash.entity_id] -= amount
        remaining -= amount

    for cash in cash_rows:
        if remaining <= 0:
            break
        amount = min(remaining_cash[cash.entity_id], remaining)
        if amount <= 0:
            continue

        existing = by_envelope.get(cash.entity_id)
        if existing is not None:
            existing.suggested_amount += amount
        else:
            suggestion = SuggestedAllocation(
                envelope_id=cash.entity_id,
                envelope_name=cash.name,
                available_balance=cash.available_balance,
                suggested_amount=amount,
            )
            suggestions.append(suggestion)
            by_envelope[cash.entity_id] = suggestion
        remaining_cash[cash.entity_id] -= amount
        remaining -= amount

    total = target - remaining
    return PaymentSuggestion(
        suggested_allocations=suggestions,
        total_suggested=total,
        coverage_percentage=_percent(total, target),
    )
