"""충전 목표 / 보상 계획 통합 테스트"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from core.ledger.compensation import CompensationPlanner
from core.ledger.errors import NotFoundError, ValidationError
from core.ledger.store import LedgerStore
from core.types import FundingTargetType, TransactionStatus


@pytest_asyncio.fixture
async def planner(store: LedgerStore) -> CompensationPlanner:
    return CompensationPlanner(store)


class TestFundingTargets:
    """충전 목표 CRUD"""

    @pytest.mark.asyncio
    async def test_create_and_list(self, household, planner: CompensationPlanner) -> None:
        target = await planner.create_funding_target(
            household.groceries.id, "monthly_minimum", Decimal("600"), description="Food budget"
        )

        assert target.target_type == FundingTargetType.MONTHLY_MINIMUM
        assert target.target_amount == Decimal("600.00")
        assert target.is_active is True
        assert [t.id for t in await planner.list_active_funding_targets()] == [target.id]
        assert [t.id for t in await planner.list_funding_targets_by_envelope(household.groceries.id)] == [target.id]

        info = await planner.list_funding_targets_with_envelope_info()
        assert info[0]["envelope_name"] == "Groceries"
        assert info[0]["available_balance"] == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_validation(self, household, planner: CompensationPlanner) -> None:
        with pytest.raises(ValidationError):
            await planner.create_funding_target(household.groceries.id, "yearly", 100)
        with pytest.raises(ValidationError):
            await planner.create_funding_target(household.groceries.id, "per_paycheck", 0)
        with pytest.raises(NotFoundError):
            await planner.create_funding_target(999, "per_paycheck", 100)

    @pytest.mark.asyncio
    async def test_update_and_delete(self, household, planner: CompensationPlanner) -> None:
        target = await planner.create_funding_target(household.groceries.id, "per_paycheck", 100)

        updated = await planner.update_funding_target(target.id, target_amount=150, is_active=False)

        assert updated.target_amount == Decimal("150.00")
        assert updated.is_active is False
        assert await planner.list_active_funding_targets() == []
        assert await planner.update_funding_target(999, target_amount=1) is None

        assert await planner.delete_funding_target(target.id) is True
        assert await planner.get_funding_target(target.id) is None


class TestCompensation:
    """급여일 권장 이체 계산"""

    @pytest.mark.asyncio
    async def test_recommended_payment(self, household, planner: CompensationPlanner) -> None:
        """(부채 300 + 부족액 100 + 급여별 50) × 1.1 = 495"""
        await planner.create_funding_target(household.groceries.id, "monthly_minimum", 600)
        await planner.create_funding_target(household.checking_unassigned.id, "per_paycheck", 50)

        result = await planner.calculate_compensation(date(2024, 2, 15))

        assert result.total_debt == Decimal("300.00")
        assert result.total_shortfall == Decimal("150.00")
        assert result.recommended_payment == Decimal("495.00")
        assert result.w2_amount == Decimal("371.25")
        assert result.dividend_amount == Decimal("123.75")
        assert [d.name for d in result.debt_by_envelope] == ["Credit Card Groceries"]

    @pytest.mark.asyncio
    async def test_custom_amount(self, household, planner: CompensationPlanner) -> None:
        result = await planner.calculate_compensation(date(2024, 2, 1), custom_amount=Decimal("1000"))

        assert result.recommended_payment == Decimal("1000.00")
        assert result.w2_amount == Decimal("750.00")
        assert result.dividend_amount == Decimal("250.00")

    @pytest.mark.asyncio
    async def test_rounds_up(self, household, planner: CompensationPlanner) -> None:
        """301 × 1.1 = 331.1 → 332 (정수 단위 올림)"""
        await household_extra_charge(planner.store, household, Decimal("1"))

        result = await planner.calculate_compensation(date(2024, 2, 1))

        assert result.recommended_payment == Decimal("332.00")

    @pytest.mark.asyncio
    async def test_suggest_funding_targets(
        self,
        household,
        store: LedgerStore,
        planner: CompensationPlanner,
    ) -> None:
        """최근 3개월 평균 지출 × 2, 목표가 있는 봉투 제외"""
        today = date(2024, 4, 20)
        for day, amount in [(1, "-30"), (10, "-50")]:
            await store.insert_transaction(
                household.checking.id,
                household.groceries.id,
                Decimal(amount),
                date(2024, 3, day),
                TransactionStatus.CLEARED,
            )
        await store.db.commit()

        suggestions = await planner.suggest_funding_targets(today=today)

        groceries = next(s for s in suggestions if s.envelope_id == household.groceries.id)
        assert groceries.suggested_amount == Decimal("80.00")
        assert "40.00" in groceries.reasoning

        await planner.create_funding_target(household.groceries.id, "monthly_minimum", 100)
        remaining = await planner.suggest_funding_targets(today=today)
        assert all(s.envelope_id != household.groceries.id for s in remaining)


async def household_extra_charge(store: LedgerStore, household, amount: Decimal) -> None:
    await store.insert_transaction(
        household.credit.id,
        household.credit_groceries.id,
        amount,
        date(2024, 1, 12),
        TransactionStatus.UNPAID,
    )
    await store.db.commit()
