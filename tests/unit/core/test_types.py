"""
core/types.py 테스트

Enum 문자열 직렬화와 계좌 유형별 상태 규칙 확인
"""

import pytest

from core.types import (
    AccountType,
    EnvelopeType,
    FundingTargetType,
    TransactionStatus,
    envelope_type_for,
    is_credit_card,
    is_unassigned_name,
    is_valid_transaction_status,
    settled_status_for,
    unassigned_envelope_name,
    valid_statuses_for,
)


class TestEnums:
    """Enum 값 테스트"""

    def test_account_type_values(self) -> None:
        assert [t.value for t in AccountType] == ["checking", "savings", "credit_card", "cash"]

    def test_str_comparison(self) -> None:
        """Enum은 문자열과 == 비교 가능 (str 상속)"""
        assert AccountType.CREDIT_CARD == "credit_card"
        assert EnvelopeType.DEBT == "debt"
        assert TransactionStatus.NOT_POSTED == "not_posted"

    def test_from_string(self) -> None:
        assert FundingTargetType("per_paycheck") == FundingTargetType.PER_PAYCHECK

    def test_invalid_value(self) -> None:
        with pytest.raises(ValueError):
            TransactionStatus("settled")


class TestStatusRules:
    """계좌 유형별 허용 상태"""

    @pytest.mark.parametrize("account_type", ["checking", "savings", "cash"])
    def test_bank_statuses(self, account_type: str) -> None:
        assert valid_statuses_for(account_type) == {
            TransactionStatus.NOT_POSTED,
            TransactionStatus.PENDING,
            TransactionStatus.CLEARED,
        }

    def test_credit_card_statuses(self) -> None:
        assert valid_statuses_for(AccountType.CREDIT_CARD) == {
            TransactionStatus.UNPAID,
            TransactionStatus.PAID,
        }

    @pytest.mark.parametrize(
        "account_type, status, expected",
        [
            ("checking", "cleared", True),
            ("checking", "unpaid", False),
            ("credit_card", "paid", True),
            ("credit_card", "pending", False),
            ("savings", "bogus", False),
        ],
    )
    def test_is_valid_transaction_status(self, account_type: str, status: str, expected: bool) -> None:
        assert is_valid_transaction_status(account_type, status) is expected

    def test_unknown_account_type(self) -> None:
        with pytest.raises(ValueError):
            valid_statuses_for("brokerage")


class TestDerivedValues:
    """계좌 유형에서 도출되는 값"""

    def test_envelope_type_for(self) -> None:
        assert envelope_type_for("credit_card") == EnvelopeType.DEBT
        assert envelope_type_for(AccountType.SAVINGS) == EnvelopeType.CASH

    def test_settled_status_for(self) -> None:
        assert settled_status_for("credit_card") == TransactionStatus.UNPAID
        assert settled_status_for("checking") == TransactionStatus.CLEARED

    def test_is_credit_card(self) -> None:
        assert is_credit_card("credit_card") is True
        assert is_credit_card(AccountType.CASH) is False


class TestUnassignedNames:
    """미배정 봉투 이름 규칙"""

    def test_name(self) -> None:
        assert unassigned_envelope_name("Checking") == "Unassigned Checking"

    def test_reserved_prefix(self) -> None:
        assert is_unassigned_name("Unassigned Checking")
        assert is_unassigned_name("Unassigned")
        assert not is_unassigned_name("Groceries")
        # 대소문자 구분
        assert not is_unassigned_name("unassigned stuff")
