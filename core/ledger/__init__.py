"""
봉투 예산 Ledger

계좌 잔액 == 봉투 잔액 합계 불변식을 지키는 Ledger 엔진.
잔액은 거래 상태별 Projection으로 계산되며 직접 저장하지 않는다.

사용 예시:
```python
from core.ledger import AccountLifecycle, EnvelopeTransferService, LedgerStore

store = LedgerStore(db)
lifecycle = AccountLifecycle(store)

checking = await lifecycle.create_account("Checking", "checking", Decimal("1000"))
groceries = await lifecycle.create_envelope("Groceries", checking.id, current_balance=Decimal("300"))

unassigned = await store.find_unassigned_envelope(checking.id)
transfers = EnvelopeTransferService(store)
await transfers.transfer_between_envelopes(groceries.id, unassigned.id, Decimal("50"))
```
"""

from core.ledger.compensation import CompensationPlanner
from core.ledger.errors import (
    AllocationMismatchError,
    CrossAccountError,
    InsufficientFundsError,
    InvalidStatusError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from core.ledger.integrity import IntegrityValidator
from core.ledger.lifecycle import AccountLifecycle, AccountWithEnvelopes, RepairResult
from core.ledger.models import (
    Account,
    AccountTransfer,
    BalanceByStatus,
    CreditCardPayment,
    CreditCardPaymentWithAllocations,
    Envelope,
    EnvelopeTransfer,
    FundingTarget,
    IntegrityDiscrepancy,
    PaymentAllocation,
    Transaction,
    TransactionDetails,
    to_money,
)
from core.ledger.payment import AllocationRequest, CreditCardPaymentEngine, PaymentSimulation
from core.ledger.projection import BalanceProjection
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore, TransactionFilter
from core.ledger.transactions import TransactionInput, TransactionPage, TransactionService
from core.ledger.transfer import EnvelopeTransferService

__all__ = [
    # 핵심 클래스
    "LedgerStore",
    "BalanceProjection",
    "EnvelopeTransferService",
    "CreditCardPaymentEngine",
    "IntegrityValidator",
    "AccountLifecycle",
    "TransactionService",
    "CompensationPlanner",
    "init_ledger_schema",
    # 모델
    "Account",
    "Envelope",
    "Transaction",
    "TransactionDetails",
    "EnvelopeTransfer",
    "AccountTransfer",
    "CreditCardPayment",
    "PaymentAllocation",
    "CreditCardPaymentWithAllocations",
    "BalanceByStatus",
    "IntegrityDiscrepancy",
    "FundingTarget",
    "AccountWithEnvelopes",
    "RepairResult",
    "AllocationRequest",
    "PaymentSimulation",
    "TransactionInput",
    "TransactionPage",
    "TransactionFilter",
    "to_money",
    # 예외
    "LedgerError",
    "NotFoundError",
    "ValidationError",
    "InvalidStatusError",
    "CrossAccountError",
    "AllocationMismatchError",
    "InsufficientFundsError",
]
