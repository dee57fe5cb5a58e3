"""
Ledger 데이터 모델

DB 행을 표준화한 도메인 모델.
모든 금액은 Decimal (센트 단위로 정규화), 날짜는 datetime.date.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from core.types import AccountType, EnvelopeType, FundingTargetType, TransactionStatus

MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0.00")


# =============================================================================
# 변환 헬퍼
# =============================================================================


def to_money(value: Decimal | int | float | str) -> Decimal:
    """금액을 센트 단위 Decimal로 정규화

    float은 str을 거쳐 변환하여 이진 부동소수 오차를 제거.

    Args:
        value: 금액 (Decimal/int/float/str)

    Returns:
        소수 둘째 자리로 반올림된 Decimal
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def to_optional_money(value: Any) -> Decimal | None:
    if value is None:
        return None
    return to_money(value)


def parse_date(value: date | datetime | str) -> date:
    """DB/입력값을 date로 변환 ('YYYY-MM-DD' 또는 'YYYY-MM-DD HH:MM:SS')"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


# =============================================================================
# 엔티티
# =============================================================================


@dataclass(frozen=True)
class Account:
    """계좌

    Attributes:
        id: 계좌 ID
        name: 계좌 이름
        type: 계좌 유형
        initial_balance: 초기 잔액
        current_balance: 생성 시점 캐시 잔액 (실제 잔액은 Projection)
    """

    id: int
    name: str
    type: AccountType
    initial_balance: Decimal
    current_balance: Decimal
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_credit_card(self) -> bool:
        return self.type == AccountType.CREDIT_CARD

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Account":
        return cls(
            id=row["id"],
            name=row["name"],
            type=AccountType(row["type"]),
            initial_balance=to_money(row["initial_balance"]),
            current_balance=to_money(row["current_balance"]),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "initial_balance": self.initial_balance,
            "current_balance": self.current_balance,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class Envelope:
    """봉투 (계좌 잔액의 예산 카테고리별 하위 배분)

    Attributes:
        id: 봉투 ID
        name: 봉투 이름
        account_id: 소속 계좌 ID
        type: cash (은행형 계좌) / debt (신용카드 계좌)
        current_balance: 생성 시점 캐시 잔액
        spending_limit: 지출 한도 (선택)
        description: 설명
    """

    id: int
    name: str
    account_id: int
    type: EnvelopeType
    current_balance: Decimal
    spending_limit: Decimal | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Envelope":
        return cls(
            id=row["id"],
            name=row["name"],
            account_id=row["account_id"],
            type=EnvelopeType(row["type"]),
            current_balance=to_money(row["current_balance"]),
            spending_limit=to_optional_money(row.get("spending_limit")),
            description=row.get("description"),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "account_id": self.account_id,
            "type": self.type.value,
            "current_balance": self.current_balance,
            "spending_limit": self.spending_limit,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class Transaction:
    """거래

    amount는 부호 있는 금액 (0 불가).
    신용카드 계좌에서 양수 unpaid 금액 = 미결제 부채.
    """

    id: int
    account_id: int
    envelope_id: int
    amount: Decimal
    date: date
    status: TransactionStatus
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Transaction":
        return cls(
            id=row["id"],
            account_id=row["account_id"],
            envelope_id=row["envelope_id"],
            amount=to_money(row["amount"]),
            date=parse_date(row["date"]),
            status=TransactionStatus(row["status"]),
            description=row.get("description"),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "envelope_id": self.envelope_id,
            "amount": self.amount,
            "date": self.date,
            "status": self.status.value,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class TransactionDetails:
    """계좌/봉투 이름이 포함된 거래 조회 결과"""

    transaction: Transaction
    account_name: str
    account_type: AccountType
    envelope_name: str
    envelope_type: EnvelopeType

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "TransactionDetails":
        return cls(
            transaction=Transaction.from_row(row),
            account_name=row["account_name"],
            account_type=AccountType(row["account_type"]),
            envelope_name=row["envelope_name"],
            envelope_type=EnvelopeType(row["envelope_type"]),
        )

    def to_dict(self) -> dict[str, Any]:
        data = self.transaction.to_dict()
        data.update({
            "account_name": self.account_name,
            "account_type": self.account_type.value,
            "envelope_name": self.envelope_name,
            "envelope_type": self.envelope_type.value,
        })
        return data


@dataclass(frozen=True)
class EnvelopeTransfer:
    """봉투 간 이체 감사 기록"""

    id: int
    from_envelope_id: int
    to_envelope_id: int
    amount: Decimal
    date: date
    description: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "EnvelopeTransfer":
        return cls(
            id=row["id"],
            from_envelope_id=row["from_envelope_id"],
            to_envelope_id=row["to_envelope_id"],
            amount=to_money(row["amount"]),
            date=parse_date(row["date"]),
            description=row.get("description"),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from_envelope_id": self.from_envelope_id,
            "to_envelope_id": self.to_envelope_id,
            "amount": self.amount,
            "date": self.date,
            "description": self.description,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class AccountTransfer:
    """계좌 간 이체 감사 기록"""

    id: int
    from_account_id: int
    to_account_id: int
    from_envelope_id: int
    to_envelope_id: int
    amount: Decimal
    date: date
    from_transaction_id: int | None = None
    to_transaction_id: int | None = None
    description: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AccountTransfer":
        return cls(
            id=row["id"],
            from_account_id=row["from_account_id"],
            to_account_id=row["to_account_id"],
            from_envelope_id=row["from_envelope_id"],
            to_envelope_id=row["to_envelope_id"],
            amount=to_money(row["amount"]),
            date=parse_date(row["date"]),
            from_transaction_id=row.get("from_transaction_id"),
            to_transaction_id=row.get("to_transaction_id"),
            description=row.get("description"),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "from_envelope_id": self.from_envelope_id,
            "to_envelope_id": self.to_envelope_id,
            "from_transaction_id": self.from_transaction_id,
            "to_transaction_id": self.to_transaction_id,
            "amount": self.amount,
            "date": self.date,
            "description": self.description,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class CreditCardPayment:
    """신용카드 결제 헤더"""

    id: int
    credit_card_account_id: int
    total_amount: Decimal
    date: date
    description: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CreditCardPayment":
        return cls(
            id=row["id"],
            credit_card_account_id=row["credit_card_account_id"],
            total_amount=to_money(row["total_amount"]),
            date=parse_date(row["date"]),
            description=row.get("description"),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "credit_card_account_id": self.credit_card_account_id,
            "total_amount": self.total_amount,
            "date": self.date,
            "description": self.description,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class PaymentAllocation:
    """결제 배분 (현금 봉투 → 결제 금액)

    settled_transaction_ids/split_transaction_ids/excess_amount는
    결제 생성 직후 결과에만 채워지며 DB에는 저장되지 않는다.
    """

    id: int
    payment_id: int
    envelope_id: int
    amount: Decimal
    envelope_name: str | None = None
    debt_envelope_id: int | None = None
    settled_transaction_ids: tuple[int, ...] = ()
    split_transaction_ids: tuple[int, ...] = ()
    excess_amount: Decimal = ZERO
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PaymentAllocation":
        return cls(
            id=row["id"],
            payment_id=row["payment_id"],
            envelope_id=row["envelope_id"],
            amount=to_money(row["amount"]),
            envelope_name=row.get("envelope_name"),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "payment_id": self.payment_id,
            "envelope_id": self.envelope_id,
            "envelope_name": self.envelope_name,
            "amount": self.amount,
            "debt_envelope_id": self.debt_envelope_id,
            "settled_transaction_ids": list(self.settled_transaction_ids),
            "split_transaction_ids": list(self.split_transaction_ids),
            "excess_amount": self.excess_amount,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class CreditCardPaymentWithAllocations:
    """결제 헤더 + 배분 목록"""

    payment: CreditCardPayment
    allocations: list[PaymentAllocation] = field(default_factory=list)

    @property
    def excess_amount(self) -> Decimal:
        """정산 대상 부채를 초과한 결제 금액 합계"""
        return sum((a.excess_amount for a in self.allocations), ZERO)

    def to_dict(self) -> dict[str, Any]:
        data = self.payment.to_dict()
        data["allocations"] = [a.to_dict() for a in self.allocations]
        data["excess_amount"] = self.excess_amount
        return data


@dataclass(frozen=True)
class BalanceByStatus:
    """상태별 잔액 Projection (계좌 또는 봉투 단위)

    Attributes:
        entity_id: 계좌 ID 또는 봉투 ID
        name: 계좌/봉투 이름
        available_balance: 사용 가능 잔액 (상태 규칙 적용)
        total_balance: 모든 상태 합계
    """

    entity_id: int
    name: str
    not_posted_balance: Decimal = ZERO
    pending_balance: Decimal = ZERO
    cleared_balance: Decimal = ZERO
    unpaid_balance: Decimal = ZERO
    paid_balance: Decimal = ZERO
    total_balance: Decimal = ZERO
    available_balance: Decimal = ZERO
    transaction_count: int = 0
    account_id: int | None = None
    account_type: AccountType | None = None
    envelope_type: EnvelopeType | None = None

    @classmethod
    def empty(cls, entity_id: int) -> "BalanceByStatus":
        """존재하지 않는 엔티티용 0 잔액"""
        return cls(entity_id=entity_id, name="")

    @classmethod
    def from_account_row(cls, row: dict[str, Any]) -> "BalanceByStatus":
        return cls(
            entity_id=row["account_id"],
            name=row["account_name"],
            account_id=row["account_id"],
            account_type=AccountType(row["account_type"]),
            **_status_amounts(row),
        )

    @classmethod
    def from_envelope_row(cls, row: dict[str, Any]) -> "BalanceByStatus":
        return cls(
            entity_id=row["envelope_id"],
            name=row["envelope_name"],
            account_id=row["account_id"],
            account_type=AccountType(row["account_type"]),
            envelope_type=EnvelopeType(row["envelope_type"]),
            **_status_amounts(row),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "name": self.name,
            "account_id": self.account_id,
            "account_type": self.account_type.value if self.account_type else None,
            "envelope_type": self.envelope_type.value if self.envelope_type else None,
            "not_posted_balance": self.not_posted_balance,
            "pending_balance": self.pending_balance,
            "cleared_balance": self.cleared_balance,
            "unpaid_balance": self.unpaid_balance,
            "paid_balance": self.paid_balance,
            "total_balance": self.total_balance,
            "available_balance": self.available_balance,
            "transaction_count": self.transaction_count,
        }


def _status_amounts(row: dict[str, Any]) -> dict[str, Any]:
    """View 행의 REAL 합계를 Decimal로 변환"""
    return {
        "not_posted_balance": to_money(row["not_posted_balance"]),
        "pending_balance": to_money(row["pending_balance"]),
        "cleared_balance": to_money(row["cleared_balance"]),
        "unpaid_balance": to_money(row["unpaid_balance"]),
        "paid_balance": to_money(row["paid_balance"]),
        "total_balance": to_money(row["total_balance"]),
        "available_balance": to_money(row["available_balance"]),
        "transaction_count": row["transaction_count"],
    }


@dataclass(frozen=True)
class IntegrityDiscrepancy:
    """계좌 잔액과 봉투 합계 불일치"""

    account_id: int
    account_name: str
    account_balance: Decimal
    envelope_sum: Decimal

    @property
    def difference(self) -> Decimal:
        return self.account_balance - self.envelope_sum

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "account_name": self.account_name,
            "account_balance": self.account_balance,
            "envelope_sum": self.envelope_sum,
            "difference": self.difference,
        }


@dataclass(frozen=True)
class FundingTarget:
    """봉투 보충 목표 (보상 계획 전용)"""

    id: int
    envelope_id: int
    target_type: FundingTargetType
    target_amount: Decimal
    minimum_amount: Decimal | None = None
    description: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "FundingTarget":
        return cls(
            id=row["id"],
            envelope_id=row["envelope_id"],
            target_type=FundingTargetType(row["target_type"]),
            target_amount=to_money(row["target_amount"]),
            minimum_amount=to_optional_money(row.get("minimum_amount")),
            description=row.get("description"),
            is_active=bool(row["is_active"]),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "envelope_id": self.envelope_id,
            "target_type": self.target_type.value,
            "target_amount": self.target_amount,
            "minimum_amount": self.minimum_amount,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
