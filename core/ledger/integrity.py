"""
잔액 무결성 검증

모든 계좌에 대해 계좌 가용 잔액 == 소속 봉투 가용 잔액 합계 (허용 오차 0.01) 확인.
읽기 전용이며 데이터를 수정하지 않는다.
"""

from __future__ import annotations

import logging

from core.constants import Tolerances
from core.ledger.models import IntegrityDiscrepancy, to_money
from core.ledger.projection import BalanceProjection
from core.ledger.store import LedgerStore

logger = logging.getLogger(__name__)


class IntegrityValidator:
    """계좌/봉투 잔액 일관성 검증기

    Args:
        store: Ledger 저장소
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def validate(self) -> list[IntegrityDiscrepancy]:
        """불일치 계좌 목록 (일관되면 빈 리스트)

        단일 쿼리로 계좌 잔액과 봉투 합계를 같은 시점에 읽는다.
        """
        rows = await self.store.fetch_account_envelope_totals()

        discrepancies = []
        for row in rows:
            discrepancy = IntegrityDiscrepancy(
                account_id=row["account_id"],
                account_name=row["account_name"],
                account_balance=to_money(row["account_balance"]),
                envelope_sum=to_money(row["envelope_sum"]),
            )
            if abs(discrepancy.difference) > Tolerances.BALANCE:
                discrepancies.append(discrepancy)

        if discrepancies:
            logger.warning(
                f"잔액 불일치 계좌 {len(discrepancies)}개",
                extra={"account_ids": [d.account_id for d in discrepancies]},
            )
        return discrepancies

    async def is_valid(self) -> bool:
        return not await self.validate()

    async def get_stored_balance_discrepancies(self) -> list[IntegrityDiscrepancy]:
        """저장된 current_balance와 Projection 가용 잔액 비교 (참고용)

        envelope_sum 자리에 저장된 current_balance를 담는다.
        """
        projection = BalanceProjection(self.store)
        balances = {b.entity_id: b for b in await projection.get_account_balances()}

        discrepancies = []
        for account in await self.store.list_accounts():
            balance = balances.get(account.id)
            if balance is None:
                continue
            discrepancy = IntegrityDiscrepancy(
                account_id=account.id,
                account_name=account.name,
                account_balance=balance.available_balance,
                envelope_sum=account.current_balance,
            )
            if abs(discrepancy.difference) > Tolerances.BALANCE:
                discrepancies.append(discrepancy)
        return discrepancies
