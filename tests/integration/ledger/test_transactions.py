"""거래 서비스 통합 테스트"""

from datetime import date
from decimal import Decimal

import pytest

from core.ledger.errors import InvalidStatusError, NotFoundError, ValidationError
from core.ledger.store import LedgerStore
from core.ledger.transactions import TransactionInput, TransactionService
from core.types import TransactionStatus


class TestCreateTransaction:
    """거래 생성 검증"""

    @pytest.mark.asyncio
    async def test_create(self, household, transactions: TransactionService) -> None:
        txn = await transactions.create_transaction(
            household.checking.id,
            household.groceries.id,
            Decimal("-42.129"),
            date(2024, 1, 20),
            "pending",
            "Farmers market",
        )

        assert txn.amount == Decimal("-42.13")
        assert txn.status == TransactionStatus.PENDING
        assert txn.date == date(2024, 1, 20)
        assert txn.description == "Farmers market"

    @pytest.mark.asyncio
    async def test_status_must_match_account_type(
        self,
        household,
        transactions: TransactionService,
    ) -> None:
        with pytest.raises(InvalidStatusError, match="Invalid status 'unpaid' for account type 'checking'"):
            await transactions.create_transaction(
                household.checking.id, household.groceries.id, 10, date(2024, 1, 1), "unpaid"
            )

        with pytest.raises(InvalidStatusError):
            await transactions.create_transaction(
                household.credit.id, household.credit_groceries.id, 10, date(2024, 1, 1), "pending"
            )

    @pytest.mark.asyncio
    async def test_envelope_must_belong_to_account(
        self,
        household,
        transactions: TransactionService,
    ) -> None:
        with pytest.raises(ValidationError, match="does not belong"):
            await transactions.create_transaction(
                household.checking.id, household.credit_groceries.id, 10, date(2024, 1, 1), "cleared"
            )

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, household, transactions: TransactionService) -> None:
        with pytest.raises(ValidationError):
            await transactions.create_transaction(
                household.checking.id, household.groceries.id, 0, date(2024, 1, 1), "cleared"
            )

    @pytest.mark.asyncio
    async def test_missing_account_and_envelope(
        self,
        household,
        transactions: TransactionService,
    ) -> None:
        with pytest.raises(NotFoundError):
            await transactions.create_transaction(999, household.groceries.id, 5, date(2024, 1, 1), "cleared")
        with pytest.raises(NotFoundError):
            await transactions.create_transaction(household.checking.id, 999, 5, date(2024, 1, 1), "cleared")

    @pytest.mark.asyncio
    async def test_bulk_is_all_or_nothing(
        self,
        household,
        store: LedgerStore,
        transactions: TransactionService,
    ) -> None:
        before = await store.count_transactions()
        items = [
            TransactionInput(household.checking.id, household.groceries.id, Decimal("-5"), date(2024, 1, 2), "cleared"),
            TransactionInput(household.checking.id, household.groceries.id, Decimal("-6"), date(2024, 1, 3), "paid"),
        ]

        with pytest.raises(InvalidStatusError):
            await transactions.create_bulk_transactions(items)

        assert await store.count_transactions() == before

        created = await transactions.create_bulk_transactions(items[:1])
        assert [t.amount for t in created] == [Decimal("-5.00")]


class TestUpdateDeleteTransaction:
    """거래 수정/삭제"""

    @pytest.mark.asyncio
    async def test_status_transition(self, household, transactions: TransactionService) -> None:
        txn = await transactions.create_transaction(
            household.checking.id, household.groceries.id, -20, date(2024, 1, 4), "not_posted"
        )

        updated = await transactions.update_transaction(txn.id, status="cleared")

        assert updated.status == TransactionStatus.CLEARED
        assert updated.amount == Decimal("-20.00")

    @pytest.mark.asyncio
    async def test_update_revalidates(self, household, transactions: TransactionService) -> None:
        txn = await transactions.create_transaction(
            household.checking.id, household.groceries.id, -20, date(2024, 1, 4), "cleared"
        )

        with pytest.raises(InvalidStatusError):
            await transactions.update_transaction(txn.id, status="paid")
        with pytest.raises(ValidationError):
            await transactions.update_transaction(txn.id, amount=0)

        unchanged = await transactions.get_transaction(txn.id)
        assert unchanged.status == TransactionStatus.CLEARED

    @pytest.mark.asyncio
    async def test_update_missing(self, transactions: TransactionService) -> None:
        assert await transactions.update_transaction(404, description="x") is None

    @pytest.mark.asyncio
    async def test_delete(self, household, transactions: TransactionService) -> None:
        txn = await transactions.create_transaction(
            household.checking.id, household.groceries.id, -20, date(2024, 1, 4), "cleared"
        )

        assert await transactions.delete_transaction(txn.id) is True
        assert await transactions.delete_transaction(txn.id) is False
        assert await transactions.get_transaction(txn.id) is None


class TestQueries:
    """조회/검색/페이지네이션"""

    @pytest.mark.asyncio
    async def test_filters_and_paging(self, household, transactions: TransactionService) -> None:
        for day in range(1, 6):
            await transactions.create_transaction(
                household.checking.id,
                household.groceries.id,
                -day,
                date(2023, 6, day),
                "cleared",
                f"Bakery {day}",
            )

        page = await transactions.get_transactions_with_filters(
            start_date=date(2023, 6, 2),
            end_date=date(2023, 6, 4),
            limit=2,
        )

        assert page.total_count == 3
        assert [t.transaction.date for t in page.transactions] == [date(2023, 6, 4), date(2023, 6, 3)]

        second = await transactions.get_transactions_with_filters(
            start_date=date(2023, 6, 2), end_date=date(2023, 6, 4), limit=2, offset=2
        )
        assert [t.transaction.date for t in second.transactions] == [date(2023, 6, 2)]

    @pytest.mark.asyncio
    async def test_search_matches_description_and_names(
        self,
        household,
        transactions: TransactionService,
    ) -> None:
        by_description = await transactions.search_transactions("costco")
        by_envelope = await transactions.search_transactions("Credit Card Groceries")

        assert [t.transaction.description for t in by_description] == ["Costco"]
        assert len(by_envelope) == 2
        assert by_envelope[0].envelope_name == "Credit Card Groceries"
        assert by_envelope[0].account_name == "Visa"

    @pytest.mark.asyncio
    async def test_list_by_status_and_account(self, household, transactions: TransactionService) -> None:
        unpaid = await transactions.list_transactions_by_status(TransactionStatus.UNPAID)
        credit = await transactions.list_transactions_by_account(household.credit.id)
        ranged = await transactions.list_transactions_by_date_range(date(2024, 1, 6), date(2024, 1, 31))

        assert {t.id for t in unpaid} == set(household.unpaid_ids)
        assert {t.id for t in credit} == set(household.unpaid_ids)
        assert [t.id for t in ranged] == [household.unpaid_ids[1]]

    @pytest.mark.asyncio
    async def test_details_and_split_flag(
        self,
        household,
        store: LedgerStore,
        transactions: TransactionService,
    ) -> None:
        split_id = await store.insert_transaction(
            household.credit.id,
            household.credit_groceries.id,
            Decimal("25"),
            date(2024, 1, 10),
            TransactionStatus.UNPAID,
            "Costco (Remaining after partial payment)",
        )
        await store.db.commit()

        details = await transactions.get_transaction_with_details(household.unpaid_ids[0])

        assert details.account_name == "Visa"
        assert details.envelope_name == "Credit Card Groceries"
        assert await transactions.is_split_transaction(split_id) is True
        assert await transactions.is_split_transaction(household.unpaid_ids[0]) is False
