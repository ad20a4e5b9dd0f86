from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol

from groupsplit.db.models import Budget, Expense
from groupsplit.logging import get_logger


HUNDRED = Decimal("100")


class BudgetNotFoundError(LookupError):
    pass


class BudgetRepository(Protocol):
    async def get_budget(self, budget_id: int) -> Optional[Budget]: ...

    async def set_budget_spent(self, budget_id: int, spent: Decimal) -> None: ...


def budget_usage(budget: Budget) -> Decimal:
    """Percentage of the limit already spent, capped at 100."""
    if budget.limit <= 0:
        return Decimal("0")
    return min(budget.spent / budget.limit * HUNDRED, HUNDRED)


async def get_group_budget(repo: BudgetRepository, budget_id: int, group_id: int) -> Budget:
    """Load a budget, requiring it to belong to ``group_id``."""
    budget = await repo.get_budget(budget_id)
    if budget is None or budget.group_id != group_id:
        raise BudgetNotFoundError(f"Budget #{budget_id} not found in group #{group_id}")
    return budget


async def record_expense(repo: BudgetRepository, expense: Expense) -> Optional[Budget]:
    """Add the expense amount to the budget it is tagged with.

    Failures to update the budget are logged and do not propagate; the
    expense is already stored at this point.
    """
    if expense.budget_id is None:
        return None

    log = get_logger(__name__)
    try:
        budget = await repo.get_budget(expense.budget_id)
        if budget is None or budget.group_id != expense.group_id:
            log.warning("budget.not_found", budget_id=expense.budget_id, expense_id=expense.id)
            return None
        budget.spent += expense.amount
        await repo.set_budget_spent(budget.id, budget.spent)
    except Exception:
        log.exception("budget.update_failed", budget_id=expense.budget_id, expense_id=expense.id)
        return None

    log.info("budget.spent_updated", budget_id=budget.id, spent=str(budget.spent))
    return budget
