"""
이체 서비스

봉투 간 이체(같은 계좌 내)와 계좌 간 이체를 원자적으로 처리.
이체는 쌍을 이루는 두 거래 + 감사 기록 1건으로 기록되며,
검증 실패 시 아무것도 기록되지 않는다.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from core.constants import Descriptions
from core.ledger.errors import (
    CrossAccountError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from core.ledger.models import Account, AccountTransfer, Envelope, EnvelopeTransfer, to_money
from core.ledger.projection import BalanceProjection
from core.ledger.store import LedgerStore
from core.types import TransactionStatus, settled_status_for

logger = logging.getLogger(__name__)


class EnvelopeTransferService:
    """봉투/계좌 간 이체 서비스

    Args:
        store: Ledger 저장소
        projection: 잔액 Projection (None이면 store로 생성)
    """

    def __init__(self, store: LedgerStore, projection: BalanceProjection | None = None):
        self.store = store
        self.projection = projection or BalanceProjection(store)

    # -------------------------------------------------------------------------
    # 봉투 간 이체
    # -------------------------------------------------------------------------

    async def transfer_between_envelopes(
        self,
        from_envelope_id: int,
        to_envelope_id: int,
        amount: Decimal | int | str,
        description: str | None = None,
        transfer_date: date | None = None,
    ) -> EnvelopeTransfer:
        """같은 계좌 내 봉투 간 금액 이동

        출금 봉투에 -amount, 입금 봉투에 +amount 거래를 기록하고
        envelope_transfers 감사 기록을 남긴다. 계좌 잔액은 변하지 않는다.

        Args:
            from_envelope_id: 출금 봉투 ID
            to_envelope_id: 입금 봉투 ID
            amount: 이체 금액 (양수)
            description: 설명 (없으면 "Envelope transfer")
            transfer_date: 이체 일자 (기본 오늘)

        Returns:
            생성된 이체 기록

        Raises:
            ValidationError: 금액이 0 이하이거나 같은 봉투인 경우
            NotFoundError: 봉투가 존재하지 않는 경우
            CrossAccountError: 두 봉투의 계좌가 다른 경우
            InsufficientFundsError: 출금 봉투의 사용 가능 잔액 부족
        """
        amount = to_money(amount)
        transfer_date = transfer_date or date.today()
        if amount <= 0:
            raise ValidationError(f"Transfer amount must be positive: {amount}")
        if from_envelope_id == to_envelope_id:
            raise ValidationError("Cannot transfer an envelope to itself")

        async with self.store.db.transaction():
            from_envelope = await self._require_envelope(from_envelope_id)
            to_envelope = await self._require_envelope(to_envelope_id)

            if from_envelope.account_id != to_envelope.account_id:
                raise CrossAccountError(from_envelope.account_id, to_envelope.account_id)

            await self._require_funds(from_envelope, amount)

            account = await self.store.get_account(from_envelope.account_id)
            status = settled_status_for(account.type)
            note = description or Descriptions.ENVELOPE_TRANSFER

            await self.store.insert_transaction(
                account_id=account.id,
                envelope_id=from_envelope.id,
                amount=-amount,
                txn_date=transfer_date,
                status=status,
                description=f"Transfer to {to_envelope.name}: {note}",
            )
            await self.store.insert_transaction(
                account_id=account.id,
                envelope_id=to_envelope.id,
                amount=amount,
                txn_date=transfer_date,
                status=status,
                description=f"Transfer from {from_envelope.name}: {note}",
            )
            transfer_id = await self.store.insert_envelope_transfer(
                from_envelope_id=from_envelope.id,
                to_envelope_id=to_envelope.id,
                amount=amount,
                transfer_date=transfer_date,
                description=description,
            )

        logger.info(
            f"봉투 이체 완료: {from_envelope.name} → {to_envelope.name} {amount}",
            extra={
                "transfer_id": transfer_id,
                "from_envelope_id": from_envelope.id,
                "to_envelope_id": to_envelope.id,
                "amount": str(amount),
            },
        )
        return await self.store.get_envelope_transfer(transfer_id)

    async def get_transfer_history(self, envelope_id: int | None = None) -> list[EnvelopeTransfer]:
        """이체 기록 (최신순, 봉투 지정 시 해당 봉투 관련만)"""
        return await self.store.list_envelope_transfers(envelope_id)

    # -------------------------------------------------------------------------
    # 계좌 간 이체
    # -------------------------------------------------------------------------

    async def create_account_transfer(
        self,
        from_account_id: int,
        to_account_id: int,
        from_envelope_id: int,
        to_envelope_id: int,
        amount: Decimal | int | str,
        transfer_date: date | None = None,
        description: str | None = None,
    ) -> AccountTransfer:
        """은행형 계좌 간 이체

        신용카드 부채 정산은 CreditCardPaymentEngine을 사용해야 하므로 거부.

        Raises:
            ValidationError: 같은 계좌, 신용카드 계좌, 봉투 소속 불일치, 금액 오류
            NotFoundError: 계좌/봉투가 존재하지 않는 경우
            InsufficientFundsError: 출금 봉투의 사용 가능 잔액 부족
        """
        amount = to_money(amount)
        transfer_date = transfer_date or date.today()
        if amount <= 0:
            raise ValidationError(f"Transfer amount must be positive: {amount}")
        if from_account_id == to_account_id:
            raise ValidationError("Cannot transfer to the same account")

        async with self.store.db.transaction():
            from_account = await self._require_bank_account(from_account_id)
            to_account = await self._require_bank_account(to_account_id)

            from_envelope = await self._require_envelope(from_envelope_id)
            to_envelope = await self._require_envelope(to_envelope_id)
            if from_envelope.account_id != from_account.id:
                raise ValidationError("From envelope does not belong to from account")
            if to_envelope.account_id != to_account.id:
                raise ValidationError("To envelope does not belong to to account")

            await self._require_funds(from_envelope, amount)

            note = description or Descriptions.ACCOUNT_TRANSFER
            from_txn_id = await self.store.insert_transaction(
                account_id=from_account.id,
                envelope_id=from_envelope.id,
                amount=-amount,
                txn_date=transfer_date,
                status=TransactionStatus.CLEARED,
                description=f"Transfer to {to_account.name}: {note}",
            )
            to_txn_id = await self.store.insert_transaction(
                account_id=to_account.id,
                envelope_id=to_envelope.id,
                amount=amount,
                txn_date=transfer_date,
                status=TransactionStatus.CLEARED,
                description=f"Transfer from {from_account.name}: {note}",
            )
            transfer_id = await self.store.insert_account_transfer(
                from_account_id=from_account.id,
                to_account_id=to_account.id,
                from_envelope_id=from_envelope.id,
                to_envelope_id=to_envelope.id,
                from_transaction_id=from_txn_id,
                to_transaction_id=to_txn_id,
                amount=amount,
                transfer_date=transfer_date,
                description=description,
            )

        logger.info(
            f"계좌 이체 완료: {from_account.name} → {to_account.name} {amount}",
            extra={"transfer_id": transfer_id, "amount": str(amount)},
        )
        return await self.store.get_account_transfer(transfer_id)

    async def get_account_transfer(self, transfer_id: int) -> AccountTransfer | None:
        return await self.store.get_account_transfer(transfer_id)

    async def list_account_transfers(self) -> list[AccountTransfer]:
        return await self.store.list_account_transfers()

    # -------------------------------------------------------------------------
    # 검증 헬퍼
    # -------------------------------------------------------------------------

    async def _require_envelope(self, envelope_id: int) -> Envelope:
        envelope = await self.store.get_envelope(envelope_id)
        if envelope is None:
            raise NotFoundError("envelope", envelope_id)
        return envelope

    async def _require_bank_account(self, account_id: int) -> Account:
        account = await self.store.get_account(account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        if account.is_credit_card:
            raise ValidationError(
                f"Account transfers are limited to bank accounts; "
                f"use a credit card payment for {account.name}"
            )
        return account

    async def _require_funds(self, envelope: Envelope, amount: Decimal) -> None:
        available = await self.projection.get_available_balance(envelope.id)
        if available < amount:
            logger.warning(
                f"잔액 부족: {envelope.name} (가용 {available}, 요청 {amount})",
                extra={"envelope_id": envelope.id},
            )
            raise InsufficientFundsError(envelope.name, available, amount)
