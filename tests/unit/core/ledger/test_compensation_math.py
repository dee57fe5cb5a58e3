"""
core/ledger/compensation.py 순수 계산 테스트
"""

from datetime import date
from decimal import Decimal

import pytest

from core.ledger.compensation import (
    ceil_amount,
    months_before,
    next_paycheck_date,
    split_payment,
    target_shortfall,
)
from core.ledger.models import FundingTarget
from core.types import FundingTargetType


def make_target(target_type: FundingTargetType, amount: str) -> FundingTarget:
    return FundingTarget(id=1, envelope_id=1, target_type=target_type, target_amount=Decimal(amount))


@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2024, 3, 1), date(2024, 3, 15)),
        (date(2024, 3, 14), date(2024, 3, 15)),
        (date(2024, 3, 15), date(2024, 4, 1)),
        (date(2024, 12, 20), date(2025, 1, 1)),
    ],
)
def test_next_paycheck_date(today: date, expected: date) -> None:
    assert next_paycheck_date(today) == expected


@pytest.mark.parametrize(
    "today, months, expected",
    [
        (date(2024, 4, 20), 3, date(2024, 1, 20)),
        (date(2024, 2, 10), 3, date(2023, 11, 10)),
        (date(2024, 5, 31), 3, date(2024, 2, 29)),
    ],
)
def test_months_before(today: date, months: int, expected: date) -> None:
    assert months_before(today, months) == expected


def test_ceil_amount() -> None:
    assert ceil_amount(Decimal("331.1")) == Decimal("332.00")
    assert ceil_amount(Decimal("330")) == Decimal("330.00")


class TestTargetShortfall:
    """목표 유형별 부족액"""

    def test_monthly_minimum(self) -> None:
        target = make_target(FundingTargetType.MONTHLY_MINIMUM, "600")

        assert target_shortfall(target, Decimal("500")) == Decimal("100")
        assert target_shortfall(target, Decimal("700")) == Decimal("0")

    def test_monthly_stipend(self) -> None:
        target = make_target(FundingTargetType.MONTHLY_STIPEND, "200")

        assert target_shortfall(target, Decimal("50")) == Decimal("150")

    def test_per_paycheck_full_amount(self) -> None:
        target = make_target(FundingTargetType.PER_PAYCHECK, "50")

        assert target_shortfall(target, Decimal("1000")) == Decimal("50")


def test_split_payment() -> None:
    assert split_payment(Decimal("495")) == (Decimal("371.25"), Decimal("123.75"))
