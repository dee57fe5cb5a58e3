"""
Ledger 예외 정의

모든 사전조건 위반은 쓰기 전에 예외로 거부된다.
저장소 오류 (sqlite3.Error)는 래핑하지 않고 그대로 전파.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Ledger 기본 예외"""

    pass


class NotFoundError(LedgerError):
    """참조한 엔티티가 존재하지 않음

    Attributes:
        entity: 엔티티 종류 (account, envelope, transaction 등)
        entity_id: 조회한 ID
    """

    def __init__(self, entity: str, entity_id: int | str, message: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity.capitalize()} {entity_id} not found")


class ValidationError(LedgerError):
    """입력값/관계 검증 실패"""

    pass


class InvalidStatusError(ValidationError):
    """계좌 유형에 허용되지 않는 거래 상태"""

    def __init__(self, status: str, account_type: str):
        self.status = status
        self.account_type = account_type
        super().__init__(
            f"Invalid status '{status}' for account type '{account_type}'"
        )


class CrossAccountError(ValidationError):
    """서로 다른 계좌의 봉투 간 이체 시도"""

    def __init__(self, from_account_id: int, to_account_id: int):
        self.from_account_id = from_account_id
        self.to_account_id = to_account_id
        super().__init__(
            "Cannot transfer between envelopes in different accounts "
            f"(account {from_account_id} -> account {to_account_id})"
        )


class AllocationMismatchError(ValidationError):
    """배분 합계가 결제 총액과 불일치"""

    def __init__(self, allocation_total: Decimal, total_amount: Decimal):
        self.allocation_total = allocation_total
        self.total_amount = total_amount
        super().__init__(
            f"Allocation total ({allocation_total}) does not match "
            f"payment total ({total_amount})"
        )


class InsufficientFundsError(LedgerError):
    """봉투의 사용 가능 잔액 부족

    Attributes:
        envelope_name: 봉투 이름
        available: 사용 가능 잔액
        requested: 요청 금액
    """

    def __init__(self, envelope_name: str, available: Decimal, requested: Decimal):
        self.envelope_name = envelope_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient funds in envelope {envelope_name}. "
            f"Available: {available:.2f}, Requested: {requested:.2f}"
        )
