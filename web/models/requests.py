"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
"""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from core.types import AccountType, EnvelopeType, FundingTargetType, TransactionStatus


# =========================================================================
# 계좌 / 봉투
# =========================================================================


class AccountCreateRequest(BaseModel):
    """계좌 생성 요청"""

    name: str = Field(..., min_length=1, description="계좌 이름")
    type: AccountType = Field(..., description="계좌 유형")
    initial_balance: Decimal = Field(default=Decimal("0"), description="초기 잔액")
    current_balance: Decimal | None = Field(default=None, description="현재 잔액 (생략 시 초기 잔액)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"name": "Test Checking", "type": "checking", "initial_balance": "1000"},
            ]
        }
    }


class AccountUpdateRequest(BaseModel):
    """계좌 수정 요청"""

    name: str | None = Field(default=None, min_length=1, description="계좌 이름")
    initial_balance: Decimal | None = Field(default=None, description="초기 잔액")
    type: AccountType | None = Field(default=None, description="계좌 유형 (봉투가 없을 때만)")


class EnvelopeCreateRequest(BaseModel):
    """봉투 생성 요청"""

    name: str = Field(..., min_length=1, description="봉투 이름")
    account_id: int = Field(..., description="소속 계좌 ID")
    type: EnvelopeType | None = Field(default=None, description="봉투 유형 (생략 시 계좌 유형에서 도출)")
    current_balance: Decimal = Field(default=Decimal("0"), ge=0, description="시작 잔액 (미배정 봉투에서 충당)")
    spending_limit: Decimal | None = Field(default=None, description="지출 한도")
    description: str | None = Field(default=None, description="설명")


class EnvelopeUpdateRequest(BaseModel):
    """봉투 수정 요청"""

    name: str | None = Field(default=None, min_length=1, description="봉투 이름")
    spending_limit: Decimal | None = Field(default=None, description="지출 한도")
    description: str | None = Field(default=None, description="설명")


# =========================================================================
# 이체
# =========================================================================


class EnvelopeTransferRequest(BaseModel):
    """봉투 간 이체 요청"""

    from_envelope_id: int = Field(..., description="출금 봉투 ID")
    to_envelope_id: int = Field(..., description="입금 봉투 ID")
    amount: Decimal = Field(..., gt=0, description="이체 금액")
    description: str | None = Field(default=None, description="설명")
    date: datetime.date | None = Field(default=None, description="이체 일자 (기본 오늘)")


class AccountTransferRequest(BaseModel):
    """계좌 간 이체 요청"""

    from_account_id: int = Field(..., description="출금 계좌 ID")
    to_account_id: int = Field(..., description="입금 계좌 ID")
    from_envelope_id: int = Field(..., description="출금 봉투 ID")
    to_envelope_id: int = Field(..., description="입금 봉투 ID")
    amount: Decimal = Field(..., gt=0, description="이체 금액")
    date: datetime.date | None = Field(default=None, description="이체 일자 (기본 오늘)")
    description: str | None = Field(default=None, description="설명")


# =========================================================================
# 거래
# =========================================================================


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청"""

    account_id: int = Field(..., description="계좌 ID")
    envelope_id: int = Field(..., description="봉투 ID (계좌 소속)")
    amount: Decimal = Field(..., description="부호 있는 금액 (0 불가)")
    date: datetime.date = Field(..., description="거래 일자")
    status: TransactionStatus = Field(..., description="거래 상태")
    description: str | None = Field(default=None, description="설명")


class TransactionUpdateRequest(BaseModel):
    """거래 수정 요청 (지정한 필드만 변경)"""

    account_id: int | None = None
    envelope_id: int | None = None
    amount: Decimal | None = None
    date: datetime.date | None = None
    status: TransactionStatus | None = None
    description: str | None = None


class BulkTransactionRequest(BaseModel):
    """거래 일괄 생성 요청 (전체 성공 또는 전체 실패)"""

    transactions: list[TransactionCreateRequest] = Field(..., min_length=1)


# =========================================================================
# 신용카드 결제
# =========================================================================


class AllocationItem(BaseModel):
    """결제 배분 항목"""

    envelope_id: int = Field(..., description="현금 봉투 ID")
    amount: Decimal = Field(..., description="배분 금액")


class PaymentCreateRequest(BaseModel):
    """신용카드 결제 요청"""

    credit_card_account_id: int = Field(..., description="신용카드 계좌 ID")
    total_amount: Decimal = Field(..., description="결제 총액")
    date: datetime.date = Field(..., description="결제 일자")
    allocations: list[AllocationItem] = Field(..., description="현금 봉투별 배분")
    description: str | None = Field(default=None, description="설명")


class PaymentSimulateRequest(BaseModel):
    """결제 시뮬레이션 요청"""

    credit_card_account_id: int = Field(..., description="신용카드 계좌 ID")
    allocations: list[AllocationItem] = Field(..., description="현금 봉투별 배분")
    total_amount: Decimal | None = Field(default=None, description="결제 총액 (생략 시 배분 합계)")


# =========================================================================
# 충전 목표 / 보상 계획
# =========================================================================


class FundingTargetCreateRequest(BaseModel):
    """충전 목표 생성 요청"""

    envelope_id: int = Field(..., description="봉투 ID")
    target_type: FundingTargetType = Field(..., description="목표 유형")
    target_amount: Decimal = Field(..., gt=0, description="목표 금액")
    minimum_amount: Decimal | None = Field(default=None, gt=0, description="최소 금액")
    description: str | None = Field(default=None, description="설명")
    is_active: bool = Field(default=True, description="활성 여부")


class FundingTargetUpdateRequest(BaseModel):
    """충전 목표 수정 요청"""

    target_type: FundingTargetType | None = None
    target_amount: Decimal | None = Field(default=None, gt=0)
    minimum_amount: Decimal | None = Field(default=None, gt=0)
    description: str | None = None
    is_active: bool | None = None


class CompensationRequest(BaseModel):
    """급여일 권장 이체 계산 요청"""

    paycheck_date: datetime.date | None = Field(default=None, description="급여일 (기본 다음 급여일)")
    custom_amount: Decimal | None = Field(default=None, gt=0, description="직접 지정한 이체액")
