"""
거래 서비스

거래 생성/수정/삭제/조회.
상태는 계좌 유형에 맞아야 하고 봉투는 해당 계좌 소속이어야 한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Sequence

from core.ledger.errors import InvalidStatusError, NotFoundError, ValidationError
from core.ledger.models import Account, Transaction, TransactionDetails, to_money
from core.ledger.payment import is_split_description
from core.ledger.store import LedgerStore, TransactionFilter
from core.types import TransactionStatus, is_valid_transaction_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionInput:
    """거래 생성 입력 (일괄 생성용)"""

    account_id: int
    envelope_id: int
    amount: Decimal
    date: date
    status: TransactionStatus | str
    description: str | None = None


@dataclass(frozen=True)
class TransactionPage:
    """필터 조회 결과 (페이지 + 전체 건수)"""

    transactions: list[TransactionDetails] = field(default_factory=list)
    total_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "total_count": self.total_count,
        }


class TransactionService:
    """거래 서비스

    Args:
        store: Ledger 저장소
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def _validate(
        self,
        account_id: int,
        envelope_id: int,
        amount: Decimal,
        status: TransactionStatus | str,
    ) -> Account:
        """계좌 존재, 상태 적합성, 봉투 소속, 금액 검증

        Raises:
            NotFoundError: 계좌/봉투 없음
            InvalidStatusError: 계좌 유형에 맞지 않는 상태
            ValidationError: 봉투 소속 불일치 또는 금액 0
        """
        account = await self.store.get_account(account_id)
        if account is None:
            raise NotFoundError("account", account_id)

        if not is_valid_transaction_status(account.type, status):
            status_value = status.value if isinstance(status, TransactionStatus) else status
            raise InvalidStatusError(status_value, account.type.value)

        envelope = await self.store.get_envelope(envelope_id)
        if envelope is None:
            raise NotFoundError("envelope", envelope_id)
        if envelope.account_id != account_id:
            raise ValidationError("Envelope does not belong to the specified account")

        if amount == 0:
            raise ValidationError("Transaction amount must not be zero")

        return account

    async def create_transaction(
        self,
        account_id: int,
        envelope_id: int,
        amount: Decimal | int | str,
        txn_date: date,
        status: TransactionStatus | str,
        description: str | None = None,
    ) -> Transaction:
        """거래 생성

        Args:
            account_id: 계좌 ID
            envelope_id: 봉투 ID (계좌 소속)
            amount: 부호 있는 금액 (0 불가)
            txn_date: 거래 일자
            status: 거래 상태 (계좌 유형별 허용 상태)
            description: 설명

        Returns:
            생성된 거래
        """
        amount = to_money(amount)
        async with self.store.db.transaction():
            await self._validate(account_id, envelope_id, amount, status)
            transaction_id = await self.store.insert_transaction(
                account_id=account_id,
                envelope_id=envelope_id,
                amount=amount,
                txn_date=txn_date,
                status=TransactionStatus(status),
                description=description,
            )

        logger.info(
            f"거래 생성: {amount} ({TransactionStatus(status).value})",
            extra={"transaction_id": transaction_id, "account_id": account_id, "envelope_id": envelope_id},
        )
        return await self.store.get_transaction(transaction_id)

    async def create_bulk_transactions(self, items: Sequence[TransactionInput]) -> list[Transaction]:
        """일괄 생성 (하나라도 실패하면 전체 롤백)"""
        created_ids: list[int] = []
        async with self.store.db.transaction():
            for item in items:
                amount = to_money(item.amount)
                await self._validate(item.account_id, item.envelope_id, amount, item.status)
                created_ids.append(
                    await self.store.insert_transaction(
                        account_id=item.account_id,
                        envelope_id=item.envelope_id,
                        amount=amount,
                        txn_date=item.date,
                        status=TransactionStatus(item.status),
                        description=item.description,
                    )
                )

        logger.info(f"거래 일괄 생성: {len(created_ids)}건")
        return [await self.store.get_transaction(txn_id) for txn_id in created_ids]

    async def update_transaction(
        self,
        transaction_id: int,
        account_id: int | None = None,
        envelope_id: int | None = None,
        amount: Decimal | int | str | None = None,
        txn_date: date | None = None,
        status: TransactionStatus | str | None = None,
        description: str | None = None,
    ) -> Transaction | None:
        """거래 부분 수정 (수정 후 상태로 전체 재검증)

        Returns:
            수정된 거래 (없으면 None)
        """
        async with self.store.db.transaction():
            current = await self.store.get_transaction(transaction_id)
            if current is None:
                return None

            merged_amount = to_money(amount) if amount is not None else current.amount
            merged_account = account_id if account_id is not None else current.account_id
            merged_envelope = envelope_id if envelope_id is not None else current.envelope_id
            merged_status = status if status is not None else current.status
            await self._validate(merged_account, merged_envelope, merged_amount, merged_status)

            fields: dict[str, Any] = {}
            if account_id is not None:
                fields["account_id"] = account_id
            if envelope_id is not None:
                fields["envelope_id"] = envelope_id
            if amount is not None:
                fields["amount"] = merged_amount
            if txn_date is not None:
                fields["date"] = txn_date
            if status is not None:
                fields["status"] = TransactionStatus(status)
            if description is not None:
                fields["description"] = description

            await self.store.update_transaction(transaction_id, **fields)

        logger.info(f"거래 수정: {transaction_id}", extra={"fields": sorted(fields)})
        return await self.store.get_transaction(transaction_id)

    async def delete_transaction(self, transaction_id: int) -> bool:
        async with self.store.db.transaction():
            deleted = await self.store.delete_transaction(transaction_id)
        if deleted:
            logger.info(f"거래 삭제: {transaction_id}")
        return deleted

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_transaction(self, transaction_id: int) -> Transaction | None:
        return await self.store.get_transaction(transaction_id)

    async def get_transaction_with_details(self, transaction_id: int) -> TransactionDetails | None:
        return await self.store.get_transaction_details(transaction_id)

    async def _list(self, filters: TransactionFilter) -> list[Transaction]:
        details = await self.store.query_transactions(filters)
        return [d.transaction for d in details]

    async def list_transactions(self) -> list[Transaction]:
        """전체 거래 (최신순)"""
        return await self._list(TransactionFilter())

    async def list_transactions_by_account(self, account_id: int) -> list[Transaction]:
        return await self._list(TransactionFilter(account_id=account_id))

    async def list_transactions_by_envelope(self, envelope_id: int) -> list[Transaction]:
        return await self._list(TransactionFilter(envelope_id=envelope_id))

    async def list_transactions_by_status(self, status: TransactionStatus | str) -> list[Transaction]:
        return await self._list(TransactionFilter(status=TransactionStatus(status)))

    async def list_transactions_by_date_range(self, start_date: date, end_date: date) -> list[Transaction]:
        return await self._list(TransactionFilter(start_date=start_date, end_date=end_date))

    async def search_transactions(self, term: str, limit: int = 100) -> list[TransactionDetails]:
        """설명/계좌명/봉투명 검색"""
        return await self.store.query_transactions(TransactionFilter(search=term), limit=limit)

    async def get_transactions_with_filters(
        self,
        account_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        status: TransactionStatus | str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> TransactionPage:
        filters = TransactionFilter(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            status=TransactionStatus(status) if status is not None else None,
            search=search,
        )
        return TransactionPage(
            transactions=await self.store.query_transactions(filters, limit=limit, offset=offset),
            total_count=await self.store.count_transactions(filters),
        )

    async def is_split_transaction(self, transaction_id: int) -> bool:
        """부분 결제 분할로 생성된 거래인지 확인"""
        transaction = await self.store.get_transaction(transaction_id)
        return transaction is not None and is_split_description(transaction.description)
