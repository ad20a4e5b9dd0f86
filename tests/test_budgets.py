from datetime import datetime, timezone
from decimal import Decimal

import pytest

from groupsplit.db.models import Budget, Expense
from groupsplit.services.budgets import BudgetNotFoundError, budget_usage, get_group_budget, record_expense


class StubRepo:
    def __init__(self, budgets: dict[int, Budget], fail: bool = False) -> None:
        self.budgets = budgets
        self.fail = fail
        self.saved: list[tuple[int, Decimal]] = []

    async def get_budget(self, budget_id):
        if self.fail:
            raise ConnectionError("db is down")
        return self.budgets.get(budget_id)

    async def set_budget_spent(self, budget_id, spent):
        self.saved.append((budget_id, spent))


def make_expense(budget_id, amount="25", group_id=1):
    return Expense(
        id=9,
        group_id=group_id,
        payer_id=1,
        amount=Decimal(amount),
        date=datetime(2026, 10, 1, tzinfo=timezone.utc),
        budget_id=budget_id,
    )


def make_budget(spent="50", limit="100"):
    return Budget(id=3, group_id=1, category="Food", limit=Decimal(limit), spent=Decimal(spent))


def test_budget_usage():
    assert budget_usage(make_budget("50", "200")) == 25
    assert budget_usage(make_budget("300", "100")) == 100
    assert budget_usage(make_budget("10", "0")) == 0


@pytest.mark.asyncio
async def test_record_expense_updates_spent():
    repo = StubRepo({3: make_budget()})

    budget = await record_expense(repo, make_expense(3))

    assert budget is not None
    assert budget.spent == Decimal("75")
    assert repo.saved == [(3, Decimal("75"))]


@pytest.mark.asyncio
async def test_record_expense_without_budget():
    repo = StubRepo({3: make_budget()})

    assert await record_expense(repo, make_expense(None)) is None
    assert repo.saved == []


@pytest.mark.asyncio
async def test_record_expense_unknown_or_foreign_budget():
    repo = StubRepo({3: make_budget()})

    assert await record_expense(repo, make_expense(4)) is None
    assert await record_expense(repo, make_expense(3, group_id=2)) is None
    assert repo.saved == []


@pytest.mark.asyncio
async def test_record_expense_failure_does_not_raise():
    repo = StubRepo({3: make_budget()}, fail=True)

    assert await record_expense(repo, make_expense(3)) is None


@pytest.mark.asyncio
async def test_get_group_budget():
    repo = StubRepo({3: make_budget()})

    budget = await get_group_budget(repo, 3, 1)

    assert budget.category == "Food"


@pytest.mark.asyncio
async def test_get_group_budget_missing():
    repo = StubRepo({3: make_budget()})

    with pytest.raises(BudgetNotFoundError, match="Budget #999 not found in group #1"):
        await get_group_budget(repo, 999, 1)


@pytest.mark.asyncio
async def test_get_group_budget_of_other_group():
    repo = StubRepo({3: make_budget()})

    with pytest.raises(BudgetNotFoundError):
        await get_group_budget(repo, 3, 2)
