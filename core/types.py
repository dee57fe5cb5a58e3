"""
타입 정의 모듈

Enum 및 상태 규칙 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class AccountType(str, Enum):
    """계좌 유형"""

    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    CASH = "cash"


class EnvelopeType(str, Enum):
    """봉투 유형

    cash: 자산 추적용 (은행형 계좌)
    debt: 지출/부채 추적용 (신용카드 계좌 전용)
    """

    CASH = "cash"
    DEBT = "debt"


class TransactionStatus(str, Enum):
    """거래 상태

    은행형 계좌: NOT_POSTED → PENDING → CLEARED
    신용카드 계좌: UNPAID → PAID
    """

    NOT_POSTED = "not_posted"
    PENDING = "pending"
    CLEARED = "cleared"
    UNPAID = "unpaid"
    PAID = "paid"


class FundingTargetType(str, Enum):
    """충전 목표 유형"""

    MONTHLY_MINIMUM = "monthly_minimum"
    PER_PAYCHECK = "per_paycheck"
    MONTHLY_STIPEND = "monthly_stipend"


# 계좌 유형별 허용 상태
BANK_STATUSES: frozenset[TransactionStatus] = frozenset({
    TransactionStatus.NOT_POSTED,
    TransactionStatus.PENDING,
    TransactionStatus.CLEARED,
})

CREDIT_CARD_STATUSES: frozenset[TransactionStatus] = frozenset({
    TransactionStatus.UNPAID,
    TransactionStatus.PAID,
})

# 예약된 봉투 이름 접두어 (계좌별 미배정 봉투)
UNASSIGNED_PREFIX = "Unassigned"


def is_credit_card(account_type: AccountType | str) -> bool:
    """신용카드 계좌 여부"""
    return AccountType(account_type) == AccountType.CREDIT_CARD


def valid_statuses_for(account_type: AccountType | str) -> frozenset[TransactionStatus]:
    """계좌 유형에 허용되는 거래 상태 집합

    Args:
        account_type: 계좌 유형

    Returns:
        허용 상태 집합
    """
    if is_credit_card(account_type):
        return CREDIT_CARD_STATUSES
    return BANK_STATUSES


def is_valid_transaction_status(
    account_type: AccountType | str,
    status: TransactionStatus | str,
) -> bool:
    """거래 상태가 계좌 유형에 유효한지 확인

    알 수 없는 상태 문자열은 False.
    """
    try:
        status = TransactionStatus(status)
    except ValueError:
        return False
    return status in valid_statuses_for(account_type)


def envelope_type_for(account_type: AccountType | str) -> EnvelopeType:
    """계좌 유형에서 봉투 유형 도출 (신용카드 → debt, 그 외 → cash)"""
    if is_credit_card(account_type):
        return EnvelopeType.DEBT
    return EnvelopeType.CASH


def settled_status_for(account_type: AccountType | str) -> TransactionStatus:
    """이체 등 내부 이동 거래에 사용하는 확정 상태"""
    if is_credit_card(account_type):
        return TransactionStatus.UNPAID
    return TransactionStatus.CLEARED


def unassigned_envelope_name(account_name: str) -> str:
    """계좌의 미배정 봉투 이름"""
    return f"{UNASSIGNED_PREFIX} {account_name}"


def is_unassigned_name(envelope_name: str) -> bool:
    """예약된 미배정 봉투 이름인지 확인"""
    return envelope_name.startswith(UNASSIGNED_PREFIX)
