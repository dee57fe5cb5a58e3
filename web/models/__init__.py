"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountTransferRequest,
    AccountUpdateRequest,
    AllocationItem,
    BulkTransactionRequest,
    CompensationRequest,
    EnvelopeCreateRequest,
    EnvelopeTransferRequest,
    EnvelopeUpdateRequest,
    FundingTargetCreateRequest,
    FundingTargetUpdateRequest,
    PaymentCreateRequest,
    PaymentSimulateRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import DeleteResponse, HealthResponse

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountTransferRequest",
    "AccountUpdateRequest",
    "AllocationItem",
    "BulkTransactionRequest",
    "CompensationRequest",
    "EnvelopeCreateRequest",
    "EnvelopeTransferRequest",
    "EnvelopeUpdateRequest",
    "FundingTargetCreateRequest",
    "FundingTargetUpdateRequest",
    "PaymentCreateRequest",
    "PaymentSimulateRequest",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    # Responses
    "DeleteResponse",
    "HealthResponse",
]
