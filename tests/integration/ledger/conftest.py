"""
Ledger 통합 테스트 fixture

서비스 객체와 자주 쓰는 계좌/봉투 구성을 제공.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.integrity import IntegrityValidator
from core.ledger.lifecycle import AccountLifecycle
from core.ledger.models import Account, Envelope
from core.ledger.payment import CreditCardPaymentEngine
from core.ledger.projection import BalanceProjection
from core.ledger.store import LedgerStore
from core.ledger.transactions import TransactionService
from core.ledger.transfer import EnvelopeTransferService
from core.types import TransactionStatus


@pytest_asyncio.fixture
async def store(db: SQLiteAdapter) -> LedgerStore:
    return LedgerStore(db)


@pytest_asyncio.fixture
async def projection(store: LedgerStore) -> BalanceProjection:
    return BalanceProjection(store)


@pytest_asyncio.fixture
async def lifecycle(store: LedgerStore) -> AccountLifecycle:
    return AccountLifecycle(store)


@pytest_asyncio.fixture
async def transfers(store: LedgerStore) -> EnvelopeTransferService:
    return EnvelopeTransferService(store)


@pytest_asyncio.fixture
async def transactions(store: LedgerStore) -> TransactionService:
    return TransactionService(store)


@pytest_asyncio.fixture
async def payments(store: LedgerStore) -> CreditCardPaymentEngine:
    return CreditCardPaymentEngine(store)


@pytest_asyncio.fixture
async def validator(store: LedgerStore) -> IntegrityValidator:
    return IntegrityValidator(store)


@dataclass
class Household:
    """당좌 계좌 + 신용카드 계좌 구성

    checking: 1000 개시 (Unassigned 500, Groceries 500)
    credit: Credit Card Groceries 부채 봉투에 미결제 300 (100 + 200)
    """

    checking: Account
    groceries: Envelope
    checking_unassigned: Envelope
    credit: Account
    credit_groceries: Envelope
    credit_unassigned: Envelope
    unpaid_ids: list[int]


@pytest_asyncio.fixture
async def household(
    store: LedgerStore,
    lifecycle: AccountLifecycle,
) -> Household:
    checking = await lifecycle.create_account("Checking", "checking", Decimal("1000"))
    groceries = await lifecycle.create_envelope("Groceries", checking.id, current_balance=Decimal("500"))

    credit = await lifecycle.create_account("Visa", "credit_card")
    credit_groceries = await lifecycle.create_envelope("Credit Card Groceries", credit.id)

    unpaid_ids = [
        await store.insert_transaction(
            account_id=credit.id,
            envelope_id=credit_groceries.id,
            amount=Decimal("100"),
            txn_date=date(2024, 1, 5),
            status=TransactionStatus.UNPAID,
            description="Market",
        ),
        await store.insert_transaction(
            account_id=credit.id,
            envelope_id=credit_groceries.id,
            amount=Decimal("200"),
            txn_date=date(2024, 1, 10),
            status=TransactionStatus.UNPAID,
            description="Costco",
        ),
    ]
    await store.db.commit()

    return Household(
        checking=checking,
        groceries=groceries,
        checking_unassigned=await store.find_unassigned_envelope(checking.id),
        credit=credit,
        credit_groceries=credit_groceries,
        credit_unassigned=await store.find_unassigned_envelope(credit.id),
        unpaid_ids=unpaid_ids,
    )
