"""
보상(급여 배분) 계획

충전 목표(FundingTarget)와 현재 부채로 다음 급여일의 권장 이체액을 계산.
잔액 일관성과 무관한 읽기 전용 보고 기능 (FundingTarget CRUD 제외).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_CEILING, Decimal
from typing import Any

from core.ledger.errors import NotFoundError, ValidationError
from core.ledger.models import ZERO, BalanceByStatus, FundingTarget, to_money
from core.ledger.projection import BalanceProjection
from core.ledger.store import LedgerStore
from core.types import AccountType, EnvelopeType, FundingTargetType

logger = logging.getLogger(__name__)

PAYMENT_BUFFER = Decimal("1.1")
W2_SHARE = Decimal("0.75")
DIVIDEND_SHARE = Decimal("0.25")
SUGGESTION_MULTIPLIER = 2
SUGGESTION_LOOKBACK_MONTHS = 3

_MONTHLY_TYPES = frozenset({FundingTargetType.MONTHLY_MINIMUM, FundingTargetType.MONTHLY_STIPEND})


# =============================================================================
# 순수 계산
# =============================================================================


def next_paycheck_date(today: date) -> date:
    """다음 급여일 (1~14일 → 이번 달 15일, 그 외 → 다음 달 1일)"""
    if today.day < 15:
        return today.replace(day=15)
    if today.month == 12:
        return date(today.year + 1, 1, 1)
    return date(today.year, today.month + 1, 1)


def months_before(today: date, months: int) -> date:
    """N개월 전 같은 날 (말일 초과 시 해당 월 말일)"""
    month_index = today.year * 12 + (today.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = today.day
    while True:
        try:
            return date(year, month, day)
        except ValueError:
            day -= 1


def ceil_amount(value: Decimal) -> Decimal:
    """정수 단위 올림"""
    return to_money(value.to_integral_value(rounding=ROUND_CEILING))


def target_shortfall(target: FundingTarget, available: Decimal) -> Decimal:
    """목표 대비 부족액

    월간 목표(monthly_minimum/monthly_stipend)는 목표 - 현재 잔액,
    급여별 목표(per_paycheck)는 매번 목표 전액.
    """
    if target.target_type in _MONTHLY_TYPES:
        return max(ZERO, target.target_amount - available)
    return target.target_amount


def split_payment(total: Decimal) -> tuple[Decimal, Decimal]:
    """권장 이체액을 W2 75% / 배당 25%로 분할"""
    return to_money(total * W2_SHARE), to_money(total * DIVIDEND_SHARE)


# =============================================================================
# 결과 타입
# =============================================================================


@dataclass(frozen=True)
class TargetShortfall:
    envelope_id: int
    envelope_name: str
    target_type: FundingTargetType
    target_amount: Decimal
    current_balance: Decimal
    shortfall: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "envelope_id": self.envelope_id,
            "envelope_name": self.envelope_name,
            "target_type": self.target_type.value,
            "target_amount": self.target_amount,
            "current_balance": self.current_balance,
            "shortfall": self.shortfall,
        }


@dataclass(frozen=True)
class CompensationCalculation:
    """급여일 권장 이체 계산 결과"""

    paycheck_date: date
    total_debt: Decimal
    total_shortfall: Decimal
    recommended_payment: Decimal
    w2_amount: Decimal
    dividend_amount: Decimal
    debt_by_envelope: list[BalanceByStatus] = field(default_factory=list)
    funding_targets: list[TargetShortfall] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "paycheck_date": self.paycheck_date,
            "total_debt": self.total_debt,
            "total_shortfall": self.total_shortfall,
            "recommended_payment": self.recommended_payment,
            "w2_amount": self.w2_amount,
            "dividend_amount": self.dividend_amount,
            "debt_by_envelope": [
                {
                    "envelope_id": d.entity_id,
                    "envelope_name": d.name,
                    "debt_amount": d.available_balance,
                }
                for d in self.debt_by_envelope
            ],
            "funding_targets": [t.to_dict() for t in self.funding_targets],
        }


@dataclass(frozen=True)
class FundingSuggestion:
    envelope_id: int
    envelope_name: str
    suggested_amount: Decimal
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "envelope_id": self.envelope_id,
            "envelope_name": self.envelope_name,
            "suggested_amount": self.suggested_amount,
            "reasoning": self.reasoning,
        }


# =============================================================================
# 서비스
# =============================================================================


class CompensationPlanner:
    """충전 목표 관리 및 급여 배분 계획

    Args:
        store: Ledger 저장소
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self.projection = BalanceProjection(store)

    # -------------------------------------------------------------------------
    # FundingTarget CRUD
    # -------------------------------------------------------------------------

    async def create_funding_target(
        self,
        envelope_id: int,
        target_type: FundingTargetType | str,
        target_amount: Decimal | int | str,
        minimum_amount: Decimal | int | str | None = None,
        description: str | None = None,
        is_active: bool = True,
    ) -> FundingTarget:
        """충전 목표 생성

        Raises:
            NotFoundError: 봉투 없음
            ValidationError: 유형/금액 오류
        """
        try:
            target_type = FundingTargetType(target_type)
        except ValueError as e:
            raise ValidationError(f"Invalid funding target type: {target_type}") from e

        target_amount = to_money(target_amount)
        if target_amount <= 0:
            raise ValidationError(f"Target amount must be positive: {target_amount}")
        if minimum_amount is not None:
            minimum_amount = to_money(minimum_amount)
            if minimum_amount <= 0:
                raise ValidationError(f"Minimum amount must be positive: {minimum_amount}")

        async with self.store.db.transaction():
            if await self.store.get_envelope(envelope_id) is None:
                raise NotFoundError("envelope", envelope_id)
            target_id = await self.store.insert_funding_target(
                envelope_id=envelope_id,
                target_type=target_type.value,
                target_amount=target_amount,
                minimum_amount=minimum_amount,
                description=description,
                is_active=is_active,
            )

        logger.info(
            f"충전 목표 생성: 봉투 {envelope_id} {target_type.value} {target_amount}",
            extra={"funding_target_id": target_id},
        )
        return await self.store.get_funding_target(target_id)

    async def get_funding_target(self, target_id: int) -> FundingTarget | None:
        return await self.store.get_funding_target(target_id)

    async def list_funding_targets(self) -> list[FundingTarget]:
        return await self.store.list_funding_targets()

    async def list_active_funding_targets(self) -> list[FundingTarget]:
        return await self.store.list_funding_targets(active_only=True)

    async def list_funding_targets_by_envelope(self, envelope_id: int) -> list[FundingTarget]:
        return await self.store.list_funding_targets(envelope_id=envelope_id)

    async def list_funding_targets_with_envelope_info(self) -> list[dict[str, Any]]:
        """활성 목표 + 봉투 이름/가용 잔액"""
        balances = {b.entity_id: b for b in await self.projection.get_envelope_balances()}
        result = []
        for target in await self.store.list_funding_targets(active_only=True):
            balance = balances.get(target.envelope_id)
            data = target.to_dict()
            data["envelope_name"] = balance.name if balance else None
            data["available_balance"] = balance.available_balance if balance else ZERO
            result.append(data)
        return result

    async def update_funding_target(
        self,
        target_id: int,
        target_type: FundingTargetType | str | None = None,
        target_amount: Decimal | int | str | None = None,
        minimum_amount: Decimal | int | str | None = None,
        description: str | None = None,
        is_active: bool | None = None,
    ) -> FundingTarget | None:
        fields: dict[str, Any] = {}
        if target_type is not None:
            try:
                fields["target_type"] = FundingTargetType(target_type).value
            except ValueError as e:
                raise ValidationError(f"Invalid funding target type: {target_type}") from e
        if target_amount is not None:
            if to_money(target_amount) <= 0:
                raise ValidationError(f"Target amount must be positive: {target_amount}")
            fields["target_amount"] = target_amount
        if minimum_amount is not None:
            if to_money(minimum_amount) <= 0:
                raise ValidationError(f"Minimum amount must be positive: {minimum_amount}")
            fields["minimum_amount"] = minimum_amount
        if description is not None:
            fields["description"] = description
        if is_active is not None:
            fields["is_active"] = is_active

        async with self.store.db.transaction():
            if await self.store.get_funding_target(target_id) is None:
                return None
            await self.store.update_funding_target(target_id, **fields)

        return await self.store.get_funding_target(target_id)

    async def delete_funding_target(self, target_id: int) -> bool:
        async with self.store.db.transaction():
            return await self.store.delete_funding_target(target_id)

    # -------------------------------------------------------------------------
    # 계획
    # -------------------------------------------------------------------------

    async def get_current_debt_by_envelope(self) -> list[BalanceByStatus]:
        """미결제 부채가 있는 신용카드 부채 봉투 (부채 큰 순)"""
        balances = await self.projection.get_envelope_balances(envelope_type=EnvelopeType.DEBT)
        debts = [
            b for b in balances
            if b.account_type == AccountType.CREDIT_CARD and b.available_balance > 0
        ]
        return sorted(debts, key=lambda b: b.available_balance, reverse=True)

    async def calculate_compensation(
        self,
        paycheck_date: date,
        custom_amount: Decimal | int | str | None = None,
    ) -> CompensationCalculation:
        """급여일 권장 이체액 계산

        권장액 = custom_amount 또는 올림((총 부채 + 목표 부족액 합계) × 1.1)
        """
        debts = await self.get_current_debt_by_envelope()
        total_debt = sum((d.available_balance for d in debts), ZERO)

        balances = {b.entity_id: b for b in await self.projection.get_envelope_balances()}
        shortfalls = []
        for target in await self.store.list_funding_targets(active_only=True):
            balance = balances.get(target.envelope_id)
            available = balance.available_balance if balance else ZERO
            shortfalls.append(
                TargetShortfall(
                    envelope_id=target.envelope_id,
                    envelope_name=balance.name if balance else "",
                    target_type=target.target_type,
                    target_amount=target.target_amount,
                    current_balance=available,
                    shortfall=target_shortfall(target, available),
                )
            )
        total_shortfall = sum((s.shortfall for s in shortfalls), ZERO)

        if custom_amount is not None:
            recommended = to_money(custom_amount)
        else:
            recommended = ceil_amount((total_debt + total_shortfall) * PAYMENT_BUFFER)
        w2_amount, dividend_amount = split_payment(recommended)

        return CompensationCalculation(
            paycheck_date=paycheck_date,
            total_debt=total_debt,
            total_shortfall=total_shortfall,
            recommended_payment=recommended,
            w2_amount=w2_amount,
            dividend_amount=dividend_amount,
            debt_by_envelope=debts,
            funding_targets=shortfalls,
        )

    async def suggest_funding_targets(self, today: date | None = None) -> list[FundingSuggestion]:
        """활성 목표가 없는 현금 봉투에 대해 최근 3개월 평균 지출 × 2 제안"""
        today = today or date.today()
        since = months_before(today, SUGGESTION_LOOKBACK_MONTHS)

        targeted = {t.envelope_id for t in await self.store.list_funding_targets(active_only=True)}
        names = {
            e.id: e.name
            for e in await self.store.list_envelopes(envelope_type=EnvelopeType.CASH)
        }

        suggestions = []
        for row in await self.store.list_outgoing_totals_since(since):
            envelope_id = row["envelope_id"]
            if envelope_id in targeted or row["outgoing_count"] == 0:
                continue
            average = to_money(row["outgoing_total"]) / row["outgoing_count"]
            suggestions.append(
                FundingSuggestion(
                    envelope_id=envelope_id,
                    envelope_name=names.get(envelope_id, ""),
                    suggested_amount=ceil_amount(average * SUGGESTION_MULTIPLIER),
                    reasoning=f"Based on 3-month average spending of ${average:.2f}",
                )
            )

        return sorted(suggestions, key=lambda s: s.suggested_amount, reverse=True)
