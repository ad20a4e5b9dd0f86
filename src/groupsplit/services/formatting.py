from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from groupsplit.db.models import Budget, Payment, PaymentStatus
from groupsplit.services.balances import is_settled
from groupsplit.services.budgets import budget_usage
from groupsplit.services.summary import GroupSummary, to_cents


STATUS_LABELS = {
    PaymentStatus.PENDING: "pending",
    PaymentStatus.COMPLETED: "completed",
    PaymentStatus.CANCELLED: "cancelled",
}


def format_money(amount: Decimal, currency: str) -> str:
    return f"{to_cents(amount)} {currency}"


def display_name(user_id: int, names: Mapping[int, str]) -> str:
    return names.get(user_id, f"user #{user_id}")


def format_summary(summary: GroupSummary, names: Mapping[int, str], currency: str) -> str:
    lines = [
        f"#{summary.group.id} {summary.group.name}",
        f"Total spent: {format_money(summary.total_expenses, currency)}",
        f"Settled payments: {format_money(summary.total_payments, currency)}",
        "",
        "Balances:",
    ]
    if not summary.balances:
        lines.append("No participants yet.")
    for user_id, balance in summary.balances.items():
        if is_settled(balance.net):
            state = "settled"
        elif balance.net > 0:
            state = f"is owed {format_money(balance.net, currency)}"
        else:
            state = f"owes {format_money(-balance.net, currency)}"
        lines.append(f"• {display_name(user_id, names)}: {state}")

    lines.append("")
    if summary.settlements:
        lines.append("Suggested transfers:")
        for settlement in summary.settlements:
            lines.append(
                f"• {display_name(settlement.from_user, names)} → "
                f"{display_name(settlement.to_user, names)}: "
                f"{format_money(settlement.amount, currency)}"
            )
    else:
        lines.append("Everyone is settled up.")
    return "\n".join(lines)


def format_budget(budget: Budget, currency: str) -> str:
    usage = budget_usage(budget).quantize(Decimal("1"))
    return (
        f"#{budget.id} {budget.category} ({budget.period.value}): "
        f"{format_money(budget.spent, currency)} / {format_money(budget.limit, currency)} ({usage}%)"
    )


def format_payment(payment: Payment, names: Mapping[int, str], currency: str) -> str:
    return (
        f"Payment #{payment.id}: {display_name(payment.from_user_id, names)} → "
        f"{display_name(payment.to_user_id, names)} "
        f"{format_money(payment.amount, currency)} [{STATUS_LABELS[payment.status]}]"
    )
