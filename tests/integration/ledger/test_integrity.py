"""잔액 무결성 검증 통합 테스트"""

from datetime import date
from decimal import Decimal

import pytest

from core.ledger.integrity import IntegrityValidator
from core.ledger.lifecycle import AccountLifecycle
from core.ledger.store import LedgerStore
from core.types import AccountType, EnvelopeType, TransactionStatus


@pytest.mark.asyncio
async def test_consistent_ledger_is_valid(household, validator: IntegrityValidator) -> None:
    assert await validator.validate() == []
    assert await validator.is_valid() is True


@pytest.mark.asyncio
async def test_empty_ledger_is_valid(validator: IntegrityValidator) -> None:
    assert await validator.validate() == []


@pytest.mark.asyncio
async def test_detects_discrepancy(
    store: LedgerStore,
    validator: IntegrityValidator,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """봉투 없이 기록된 계좌 잔액은 불일치로 보고"""
    account_id = await store.insert_account("Broken", AccountType.CHECKING, Decimal("0"), Decimal("0"))
    envelope_id = await store.insert_envelope("Unassigned Broken", account_id, EnvelopeType.CASH)
    await store.insert_transaction(
        account_id, envelope_id, Decimal("100"), date(2024, 1, 1), TransactionStatus.CLEARED
    )
    # 봉투가 없는 계좌
    other_id = await store.insert_account("Orphan", AccountType.SAVINGS, Decimal("50"), Decimal("50"))
    await store.db.commit()

    with caplog.at_level("WARNING"):
        discrepancies = await validator.validate()

    assert [d.account_id for d in discrepancies] == [other_id]
    assert discrepancies[0].account_balance == Decimal("50.00")
    assert discrepancies[0].envelope_sum == Decimal("0.00")
    assert discrepancies[0].difference == Decimal("50.00")
    assert "잔액 불일치" in caplog.text


@pytest.mark.asyncio
async def test_within_tolerance(store: LedgerStore, validator: IntegrityValidator) -> None:
    account_id = await store.insert_account("Close", AccountType.CHECKING, Decimal("0"), Decimal("0.01"))
    await store.insert_envelope("Unassigned Close", account_id, EnvelopeType.CASH, Decimal("0"))
    await store.db.commit()

    assert await validator.is_valid() is True


@pytest.mark.asyncio
async def test_repair_restores_consistency(
    store: LedgerStore,
    lifecycle: AccountLifecycle,
    validator: IntegrityValidator,
) -> None:
    account_id = await store.insert_account("Orphan", AccountType.SAVINGS, Decimal("50"), Decimal("50"))
    await store.db.commit()
    assert await validator.is_valid() is False

    result = await lifecycle.create_missing_unassigned_envelopes()

    assert [e.account_id for e in result.created] == [account_id]
    assert await validator.is_valid() is True


@pytest.mark.asyncio
async def test_stored_balance_discrepancies(
    household,
    store: LedgerStore,
    validator: IntegrityValidator,
) -> None:
    """저장된 current_balance와 계산 잔액 비교"""
    await store.insert_transaction(
        household.checking.id,
        household.groceries.id,
        Decimal("-80"),
        date(2024, 1, 15),
        TransactionStatus.CLEARED,
    )
    await store.db.commit()

    drifted = await validator.get_stored_balance_discrepancies()

    checking = next(d for d in drifted if d.account_id == household.checking.id)
    assert checking.account_balance == Decimal("920.00")
    assert checking.envelope_sum == Decimal("1000.00")
