"""
잔액 Projection 엔진

거래 상태별 잔액을 View에서 조회.
잔액은 저장하지 않고 항상 거래 기록에서 계산된다.

사용 예시:
```python
projection = BalanceProjection(LedgerStore(db))
balance = await projection.get_envelope_balance(envelope_id)
print(balance.available_balance, balance.total_balance)
```
"""

from __future__ import annotations

import logging
from decimal import Decimal

from core.ledger.models import ZERO, BalanceByStatus
from core.ledger.store import LedgerStore
from core.types import AccountType, EnvelopeType

logger = logging.getLogger(__name__)


class BalanceProjection:
    """상태별 잔액 Projection

    available 규칙:
    - 은행형 계좌/현금 봉투: pending + cleared
    - 신용카드 계좌: unpaid + cleared
    - 부채 봉투: unpaid
    - 거래가 하나도 없으면 저장된 current_balance

    Args:
        store: Ledger 저장소
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def get_account_balances(self, account_type: AccountType | None = None) -> list[BalanceByStatus]:
        return await self.store.fetch_account_balances(account_type=account_type)

    async def get_account_balance(self, account_id: int) -> BalanceByStatus:
        """계좌 잔액 (존재하지 않으면 0 잔액)"""
        rows = await self.store.fetch_account_balances(account_id=account_id)
        if not rows:
            return BalanceByStatus.empty(account_id)
        return rows[0]

    async def get_envelope_balances(
        self,
        account_id: int | None = None,
        envelope_type: EnvelopeType | None = None,
    ) -> list[BalanceByStatus]:
        return await self.store.fetch_envelope_balances(
            account_id=account_id,
            envelope_type=envelope_type,
        )

    async def get_envelope_balance(self, envelope_id: int) -> BalanceByStatus:
        """봉투 잔액 (존재하지 않으면 0 잔액)"""
        rows = await self.store.fetch_envelope_balances(envelope_id=envelope_id)
        if not rows:
            return BalanceByStatus.empty(envelope_id)
        return rows[0]

    async def get_available_balance(self, envelope_id: int) -> Decimal:
        """봉투 사용 가능 잔액"""
        balance = await self.get_envelope_balance(envelope_id)
        return balance.available_balance

    async def get_total_balance(self, account_type: AccountType | None = None) -> Decimal:
        """계좌 가용 잔액 합계 (유형 지정 시 해당 유형만)"""
        balances = await self.get_account_balances(account_type)
        return sum((b.available_balance for b in balances), ZERO)
