"""
계좌/봉투 수명주기 관리

계좌 생성 시 미배정(Unassigned) 봉투를 같은 트랜잭션에서 함께 생성하여
"계좌 잔액 == 봉투 합계" 불변식을 생성 시점부터 보장.

- 초기 잔액은 미배정 봉투의 개시 거래(Opening balance)로 기록
- 새 봉투의 시작 잔액은 미배정 봉투에서 이체로 충당
- 봉투 삭제 시 거래는 미배정 봉투로 이동
- 저장된 current_balance는 생성 이후 갱신하지 않음
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from core.constants import Descriptions
from core.ledger.errors import LedgerError, NotFoundError, ValidationError
from core.ledger.models import ZERO, Account, BalanceByStatus, Envelope, to_money
from core.ledger.projection import BalanceProjection
from core.ledger.store import LedgerStore
from core.ledger.transfer import EnvelopeTransferService
from core.types import (
    AccountType,
    EnvelopeType,
    envelope_type_for,
    is_unassigned_name,
    settled_status_for,
    unassigned_envelope_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountWithEnvelopes:
    """계좌 + 봉투 + 잔액 요약"""

    account: Account
    balance: BalanceByStatus
    envelopes: list[BalanceByStatus]

    @property
    def envelope_total(self) -> Decimal:
        return sum((e.available_balance for e in self.envelopes), ZERO)

    @property
    def balance_difference(self) -> Decimal:
        return self.balance.available_balance - self.envelope_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account.to_dict(),
            "balance": self.balance.to_dict(),
            "envelopes": [e.to_dict() for e in self.envelopes],
            "envelope_total": self.envelope_total,
            "balance_difference": self.balance_difference,
        }


@dataclass
class RepairResult:
    """미배정 봉투 복구 결과"""

    created: list[Envelope] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": [e.to_dict() for e in self.created],
            "errors": self.errors,
        }


def _require_name(name: str | None, entity: str) -> str:
    if name is None or not name.strip():
        raise ValidationError(f"{entity.capitalize()} name must not be empty")
    return name.strip()


class AccountLifecycle:
    """계좌/봉투 생성·수정·삭제

    Args:
        store: Ledger 저장소
        transfers: 봉투 이체 서비스 (None이면 store로 생성)
    """

    def __init__(self, store: LedgerStore, transfers: EnvelopeTransferService | None = None):
        self.store = store
        self.projection = BalanceProjection(store)
        self.transfers = transfers or EnvelopeTransferService(store, self.projection)

    # -------------------------------------------------------------------------
    # 계좌
    # -------------------------------------------------------------------------

    async def create_account(
        self,
        name: str,
        account_type: AccountType | str,
        initial_balance: Decimal | int | str = ZERO,
        current_balance: Decimal | int | str | None = None,
    ) -> Account:
        """계좌 + 미배정 봉투 생성 (원자적)

        개시 잔액(current_balance, 없으면 initial_balance)이 0이 아니면
        미배정 봉투에 개시 거래를 기록한다 (은행형: cleared, 신용카드: unpaid).

        Args:
            name: 계좌 이름
            account_type: 계좌 유형
            initial_balance: 초기 잔액
            current_balance: 현재 잔액 (생략 시 initial_balance)

        Returns:
            생성된 계좌

        Raises:
            ValidationError: 이름이 비어 있거나 유형이 잘못된 경우
        """
        name = _require_name(name, "account")
        try:
            account_type = AccountType(account_type)
        except ValueError as e:
            raise ValidationError(f"Invalid account type: {account_type}") from e

        initial_balance = to_money(initial_balance)
        opening = to_money(current_balance) if current_balance is not None else initial_balance

        async with self.store.db.transaction():
            account_id = await self.store.insert_account(name, account_type, initial_balance, opening)
            envelope_id = await self.store.insert_envelope(
                name=unassigned_envelope_name(name),
                account_id=account_id,
                envelope_type=envelope_type_for(account_type),
                current_balance=opening,
                description=f"Unassigned funds for {name}",
            )
            if opening != 0:
                await self.store.insert_transaction(
                    account_id=account_id,
                    envelope_id=envelope_id,
                    amount=opening,
                    txn_date=date.today(),
                    status=settled_status_for(account_type),
                    description=Descriptions.OPENING_BALANCE,
                )

        logger.info(
            f"계좌 생성: {name} ({account_type.value}) 개시 잔액 {opening}",
            extra={"account_id": account_id, "unassigned_envelope_id": envelope_id},
        )
        return await self.store.get_account(account_id)

    async def get_account(self, account_id: int) -> Account | None:
        return await self.store.get_account(account_id)

    async def list_accounts(self) -> list[Account]:
        return await self.store.list_accounts()

    async def list_accounts_by_type(self, account_type: AccountType | str) -> list[Account]:
        return await self.store.list_accounts(AccountType(account_type))

    async def update_account(
        self,
        account_id: int,
        name: str | None = None,
        initial_balance: Decimal | int | str | None = None,
        account_type: AccountType | str | None = None,
    ) -> Account | None:
        """계좌 수정

        이름 변경 시 미배정 봉투 이름도 함께 변경.
        봉투가 있는 계좌의 유형 변경은 봉투 유형과 충돌하므로 거부.

        Returns:
            수정된 계좌 (없으면 None)
        """
        async with self.store.db.transaction():
            account = await self.store.get_account(account_id)
            if account is None:
                return None

            fields: dict[str, Any] = {}
            if name is not None:
                fields["name"] = _require_name(name, "account")
            if initial_balance is not None:
                fields["initial_balance"] = to_money(initial_balance)
            if account_type is not None and AccountType(account_type) != account.type:
                if await self.store.list_envelopes(account_id=account_id):
                    raise ValidationError(
                        f"Cannot change type of account {account.name} while it has envelopes"
                    )
                fields["type"] = AccountType(account_type)

            await self.store.update_account(account_id, **fields)

            if "name" in fields and fields["name"] != account.name:
                unassigned = await self.store.find_unassigned_envelope(account_id)
                if unassigned is not None:
                    await self.store.update_envelope(
                        unassigned.id,
                        name=unassigned_envelope_name(fields["name"]),
                        description=f"Unassigned funds for {fields['name']}",
                    )

        logger.info(f"계좌 수정: {account_id}", extra={"fields": sorted(fields)})
        return await self.store.get_account(account_id)

    async def delete_account(self, account_id: int) -> bool:
        """계좌 삭제 (봉투 → 계좌 순, 원자적)

        거래/이체/결제 기록은 외래 키 CASCADE로 함께 삭제.
        """
        async with self.store.db.transaction():
            if await self.store.get_account(account_id) is None:
                return False
            envelope_count = await self.store.delete_envelopes_by_account(account_id)
            deleted = await self.store.delete_account(account_id)

        logger.info(
            f"계좌 삭제: {account_id}",
            extra={"account_id": account_id, "envelopes": envelope_count},
        )
        return deleted

    async def get_account_with_envelopes(self, account_id: int) -> AccountWithEnvelopes | None:
        account = await self.store.get_account(account_id)
        if account is None:
            return None
        return AccountWithEnvelopes(
            account=account,
            balance=await self.projection.get_account_balance(account_id),
            envelopes=await self.projection.get_envelope_balances(account_id=account_id),
        )

    async def get_total_balance(self) -> Decimal:
        return await self.projection.get_total_balance()

    async def get_balance_by_type(self, account_type: AccountType | str) -> Decimal:
        return await self.projection.get_total_balance(AccountType(account_type))

    # -------------------------------------------------------------------------
    # 봉투
    # -------------------------------------------------------------------------

    async def create_envelope(
        self,
        name: str,
        account_id: int,
        envelope_type: EnvelopeType | str | None = None,
        current_balance: Decimal | int | str = ZERO,
        spending_limit: Decimal | int | str | None = None,
        description: str | None = None,
    ) -> Envelope:
        """봉투 생성

        시작 잔액은 같은 계좌의 미배정 봉투에서 이체하여 충당하므로
        계좌 잔액은 변하지 않는다.

        Raises:
            NotFoundError: 계좌가 존재하지 않는 경우
            ValidationError: 이름/유형/시작 잔액이 잘못된 경우
            InsufficientFundsError: 미배정 봉투 잔액으로 시작 잔액을 충당할 수 없는 경우
        """
        name = _require_name(name, "envelope")
        if is_unassigned_name(name):
            raise ValidationError(f"Envelope names starting with 'Unassigned' are reserved: {name}")

        opening = to_money(current_balance)

        async with self.store.db.transaction():
            account = await self.store.get_account(account_id)
            if account is None:
                raise NotFoundError("account", account_id)

            expected_type = envelope_type_for(account.type)
            if envelope_type is not None and EnvelopeType(envelope_type) != expected_type:
                raise ValidationError(
                    f"Envelope type '{EnvelopeType(envelope_type).value}' does not match "
                    f"account type '{account.type.value}'"
                )
            if opening < 0:
                raise ValidationError(f"Envelope starting balance must not be negative: {opening}")
            if opening > 0 and expected_type == EnvelopeType.DEBT:
                raise ValidationError("Debt envelopes start empty; record unpaid transactions instead")

            envelope_id = await self.store.insert_envelope(
                name=name,
                account_id=account_id,
                envelope_type=expected_type,
                current_balance=opening,
                spending_limit=to_money(spending_limit) if spending_limit is not None else None,
                description=description,
            )

            if opening > 0:
                unassigned = await self.store.find_unassigned_envelope(account_id)
                if unassigned is None:
                    raise ValidationError(
                        f"Account {account.name} has no Unassigned envelope to fund {name}"
                    )
                await self.transfers.transfer_between_envelopes(
                    from_envelope_id=unassigned.id,
                    to_envelope_id=envelope_id,
                    amount=opening,
                    description=Descriptions.INITIAL_FUNDING,
                )

        logger.info(
            f"봉투 생성: {name} (계좌 {account.name})",
            extra={"envelope_id": envelope_id, "account_id": account_id, "opening": str(opening)},
        )
        return await self.store.get_envelope(envelope_id)

    async def get_envelope(self, envelope_id: int) -> Envelope | None:
        return await self.store.get_envelope(envelope_id)

    async def list_envelopes(self) -> list[Envelope]:
        return await self.store.list_envelopes()

    async def list_envelopes_by_account(self, account_id: int) -> list[Envelope]:
        return await self.store.list_envelopes(account_id=account_id)

    async def list_envelopes_by_type(self, envelope_type: EnvelopeType | str) -> list[Envelope]:
        return await self.store.list_envelopes(envelope_type=EnvelopeType(envelope_type))

    async def list_envelopes_with_account(self) -> list[dict[str, Any]]:
        return await self.store.list_envelopes_with_account()

    async def update_envelope(
        self,
        envelope_id: int,
        name: str | None = None,
        spending_limit: Decimal | int | str | None = None,
        description: str | None = None,
    ) -> Envelope | None:
        """봉투 수정 (이름/지출 한도/설명)

        Returns:
            수정된 봉투 (없으면 None)

        Raises:
            ValidationError: 미배정 봉투 이름 변경 또는 예약 접두어로의 변경
        """
        async with self.store.db.transaction():
            envelope = await self.store.get_envelope(envelope_id)
            if envelope is None:
                return None

            fields: dict[str, Any] = {}
            if name is not None and name != envelope.name:
                name = _require_name(name, "envelope")
                if is_unassigned_name(envelope.name):
                    raise ValidationError(f"Cannot rename the Unassigned envelope {envelope.name}")
                if is_unassigned_name(name):
                    raise ValidationError(
                        f"Envelope names starting with 'Unassigned' are reserved: {name}"
                    )
                fields["name"] = name
            if spending_limit is not None:
                fields["spending_limit"] = to_money(spending_limit)
            if description is not None:
                fields["description"] = description

            await self.store.update_envelope(envelope_id, **fields)

        return await self.store.get_envelope(envelope_id)

    async def delete_envelope(self, envelope_id: int) -> bool:
        """봉투 삭제

        거래는 같은 계좌의 미배정 봉투로 옮겨 계좌 잔액을 보존.

        Raises:
            ValidationError: 미배정 봉투 삭제 시도
        """
        async with self.store.db.transaction():
            envelope = await self.store.get_envelope(envelope_id)
            if envelope is None:
                return False
            if is_unassigned_name(envelope.name):
                raise ValidationError(f"Cannot delete the Unassigned envelope {envelope.name}")

            moved = 0
            unassigned = await self.store.find_unassigned_envelope(envelope.account_id)
            if unassigned is not None:
                moved = await self.store.reassign_transactions(envelope.id, unassigned.id)
            deleted = await self.store.delete_envelope(envelope_id)

        logger.info(
            f"봉투 삭제: {envelope.name}",
            extra={"envelope_id": envelope_id, "moved_transactions": moved},
        )
        return deleted

    # -------------------------------------------------------------------------
    # 복구
    # -------------------------------------------------------------------------

    async def create_missing_unassigned_envelopes(self) -> RepairResult:
        """미배정 봉투가 없는 계좌에 복구용 미배정 봉투 생성 (멱등)

        새 봉투의 잔액 = 계좌 가용 잔액 - 기존 봉투 가용 잔액 합계.
        계좌별로 독립 트랜잭션이며, 실패한 계좌는 errors에 기록.
        """
        result = RepairResult()

        for account in await self.store.list_accounts():
            try:
                envelope = await self._repair_account(account)
            except (LedgerError, sqlite3.Error) as e:
                logger.error(f"미배정 봉투 복구 실패: {account.name}: {e}")
                result.errors.append(f"{account.name}: {e}")
                continue
            if envelope is not None:
                result.created.append(envelope)

        logger.info(
            f"미배정 봉투 복구: 생성 {len(result.created)}, 실패 {len(result.errors)}"
        )
        return result

    async def _repair_account(self, account: Account) -> Envelope | None:
        """계좌 하나의 미배정 봉투 복구

        저장된 current_balance만으로 잔액이 잡혀 있던 봉투(거래 0건)와 새 미배정 봉투에
        개시 거래를 기록한다. 계좌에 첫 거래가 생겨도 복구 전 가용 잔액이 그대로 유지된다.
        """
        async with self.store.db.transaction():
            if await self.store.find_unassigned_envelope(account.id) is not None:
                return None

            balance = await self.projection.get_account_balance(account.id)
            envelopes = await self.projection.get_envelope_balances(account_id=account.id)
            allocated = sum((e.available_balance for e in envelopes), ZERO)
            remainder = balance.available_balance - allocated

            envelope_id = await self.store.insert_envelope(
                name=unassigned_envelope_name(account.name),
                account_id=account.id,
                envelope_type=envelope_type_for(account.type),
                current_balance=remainder,
                description=f"Unassigned funds for {account.name}",
            )

            for envelope in envelopes:
                if envelope.transaction_count == 0 and envelope.available_balance != 0:
                    await self._insert_opening_transaction(
                        account, envelope.entity_id, envelope.available_balance
                    )
            if remainder != 0:
                await self._insert_opening_transaction(account, envelope_id, remainder)

        logger.info(
            f"미배정 봉투 생성: {account.name} 잔액 {remainder}",
            extra={"account_id": account.id, "envelope_id": envelope_id},
        )
        return await self.store.get_envelope(envelope_id)

    async def _insert_opening_transaction(self, account: Account, envelope_id: int, amount: Decimal) -> int:
        """개시 거래 기록 (은행형: cleared, 신용카드: unpaid)"""
        return await self.store.insert_transaction(
            account_id=account.id,
            envelope_id=envelope_id,
            amount=amount,
            txn_date=date.today(),
            status=settled_status_for(account.type),
            description=Descriptions.OPENING_BALANCE,
        )
