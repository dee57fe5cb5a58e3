"""
core/ledger/models.py, errors.py 테스트

금액/날짜 정규화와 DB 행 변환
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from core.ledger.errors import InsufficientFundsError, InvalidStatusError, NotFoundError, ValidationError
from core.ledger.models import (
    BalanceByStatus,
    IntegrityDiscrepancy,
    Transaction,
    parse_date,
    to_money,
)
from core.types import AccountType, EnvelopeType, TransactionStatus


class TestToMoney:
    """센트 단위 정규화"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("10"), Decimal("10.00")),
            (5, Decimal("5.00")),
            ("12.345", Decimal("12.35")),
            (0.1 + 0.2, Decimal("0.30")),
            (-2.005, Decimal("-2.01")),
        ],
    )
    def test_quantize(self, value, expected: Decimal) -> None:
        assert to_money(value) == expected

    def test_exponent(self) -> None:
        assert to_money(7).as_tuple().exponent == -2


class TestParseDate:
    def test_variants(self) -> None:
        assert parse_date("2024-01-05") == date(2024, 1, 5)
        assert parse_date("2024-01-05 10:20:30") == date(2024, 1, 5)
        assert parse_date(datetime(2024, 1, 5, 9, 0)) == date(2024, 1, 5)
        assert parse_date(date(2024, 1, 5)) == date(2024, 1, 5)


class TestFromRow:
    """DB 행 → 모델"""

    def test_transaction(self) -> None:
        txn = Transaction.from_row({
            "id": 1,
            "account_id": 2,
            "envelope_id": 3,
            "amount": "-42.5",
            "date": "2024-01-05",
            "status": "pending",
            "description": None,
            "created_at": "2024-01-05 10:00:00",
        })

        assert txn.amount == Decimal("-42.50")
        assert txn.status == TransactionStatus.PENDING
        assert txn.created_at == datetime(2024, 1, 5, 10, 0)
        assert txn.to_dict()["status"] == "pending"

    def test_envelope_balance_row(self) -> None:
        """View의 REAL 합계를 Decimal로 재정규화"""
        balance = BalanceByStatus.from_envelope_row({
            "envelope_id": 5,
            "envelope_name": "Groceries",
            "account_id": 1,
            "account_type": "checking",
            "envelope_type": "cash",
            "not_posted_balance": 0.0,
            "pending_balance": 0.1,
            "cleared_balance": 0.2,
            "unpaid_balance": 0.0,
            "paid_balance": 0.0,
            "total_balance": 0.30000000000000004,
            "available_balance": 0.30000000000000004,
            "transaction_count": 2,
        })

        assert balance.available_balance == Decimal("0.30")
        assert balance.account_type == AccountType.CHECKING
        assert balance.envelope_type == EnvelopeType.CASH
        assert balance.to_dict()["name"] == "Groceries"

    def test_empty_balance(self) -> None:
        empty = BalanceByStatus.empty(99)

        assert empty.available_balance == Decimal("0")
        assert empty.transaction_count == 0


def test_discrepancy_difference() -> None:
    d = IntegrityDiscrepancy(1, "Checking", Decimal("1000.00"), Decimal("950.00"))

    assert d.difference == Decimal("50.00")
    assert d.to_dict()["difference"] == Decimal("50.00")


class TestErrors:
    """예외 메시지와 계층"""

    def test_not_found(self) -> None:
        assert str(NotFoundError("envelope", 7)) == "Envelope 7 not found"

    def test_insufficient_funds_message(self) -> None:
        error = InsufficientFundsError("Groceries", Decimal("50"), Decimal("75.5"))

        assert str(error) == (
            "Insufficient funds in envelope Groceries. Available: 50.00, Requested: 75.50"
        )

    def test_invalid_status_is_validation_error(self) -> None:
        assert issubclass(InvalidStatusError, ValidationError)
