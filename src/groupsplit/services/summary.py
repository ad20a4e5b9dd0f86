from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Protocol

from groupsplit.db.models import Expense, Group, Payment
from groupsplit.logging import get_logger
from groupsplit.services.balances import (
    Balance,
    compute_balances,
    total_completed_payments,
    total_expenses,
)
from groupsplit.services.settlement import Settlement, plan_settlements


CENT = Decimal("0.01")


class GroupNotFoundError(LookupError):
    pass


class SummaryRepository(Protocol):
    async def get_group(self, group_id: int) -> Optional[Group]: ...

    async def list_group_expenses(self, group_id: int) -> list[Expense]: ...

    async def list_group_payments(self, group_id: int) -> list[Payment]: ...


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _money(amount: Decimal) -> str:
    return str(to_cents(amount))


@dataclass(slots=True)
class GroupSummary:
    group: Group
    balances: dict[int, Balance]
    settlements: list[Settlement] = field(default_factory=list)
    total_expenses: Decimal = Decimal("0")
    total_payments: Decimal = Decimal("0")

    def as_dict(self) -> dict[str, Any]:
        return {
            "balances": [
                {
                    "userId": balance.user_id,
                    "paid": _money(balance.paid),
                    "owes": _money(balance.owes),
                    "net": _money(balance.net),
                }
                for balance in self.balances.values()
            ],
            "settlements": [
                {
                    "from": settlement.from_user,
                    "to": settlement.to_user,
                    "amount": _money(settlement.amount),
                }
                for settlement in self.settlements
            ],
            "totalExpenses": _money(self.total_expenses),
            "totalPayments": _money(self.total_payments),
        }


def summarize(group: Group, expenses: list[Expense], payments: list[Payment]) -> GroupSummary:
    expenses = [expense for expense in expenses if expense.group_id == group.id]
    payments = [payment for payment in payments if payment.group_id == group.id]

    balances = compute_balances(group.participants, expenses, payments)
    return GroupSummary(
        group=group,
        balances=balances,
        settlements=plan_settlements(balances),
        total_expenses=total_expenses(expenses),
        total_payments=total_completed_payments(payments),
    )


async def build_group_summary(repo: SummaryRepository, group_id: int) -> GroupSummary:
    group = await repo.get_group(group_id)
    if group is None:
        raise GroupNotFoundError(f"Group {group_id} not found")

    expenses = await repo.list_group_expenses(group_id)
    payments = await repo.list_group_payments(group_id)

    summary = summarize(group, expenses, payments)
    get_logger(__name__).info(
        "summary.built",
        group_id=group_id,
        participants=len(group.participants),
        expenses=len(expenses),
        payments=len(payments),
        settlements=len(summary.settlements),
    )
    return summary
