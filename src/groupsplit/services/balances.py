from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from groupsplit.db.models import Expense, Participant, Payment, PaymentStatus


EPSILON = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(slots=True)
class Balance:
    user_id: int
    paid: Decimal = ZERO
    owes: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.paid - self.owes


def is_settled(amount: Decimal) -> bool:
    return abs(amount) <= EPSILON


def _apply_expense(balances: dict[int, Balance], expense: Expense) -> None:
    payer = balances.get(expense.payer_id)
    if payer is not None:
        payer.paid += expense.amount

    if expense.split_details:
        for detail in expense.split_details:
            balance = balances.get(detail.user_id)
            if balance is not None:
                balance.owes += detail.amount_assigned
        return

    # The payer's own share is not added to their owes, so an even split
    # records (N - 1) / N of the amount as debt.
    share = expense.amount / Decimal(max(len(balances), 1))
    for user_id, balance in balances.items():
        if user_id != expense.payer_id:
            balance.owes += share


def _apply_payment(balances: dict[int, Balance], payment: Payment) -> None:
    debtor = balances.get(payment.from_user_id)
    if debtor is not None:
        debtor.paid += payment.amount

    creditor = balances.get(payment.to_user_id)
    if creditor is not None:
        creditor.owes -= payment.amount


def compute_balances(
    participants: Sequence[Participant],
    expenses: Iterable[Expense],
    payments: Iterable[Payment],
    *,
    group_id: Optional[int] = None,
) -> dict[int, Balance]:
    """Net position of every participant of a group.

    Positive ``net`` means the group owes the participant money, negative
    means the participant owes the group. Records referencing users that are
    not current participants only count for the sides that are.

    When ``group_id`` is given, expenses and payments of other groups are
    skipped.
    """
    balances: dict[int, Balance] = {}
    for participant in participants:
        balances.setdefault(participant.user_id, Balance(user_id=participant.user_id))

    if not balances:
        return balances

    for expense in expenses:
        if group_id is not None and expense.group_id != group_id:
            continue
        _apply_expense(balances, expense)

    for payment in payments:
        if payment.status != PaymentStatus.COMPLETED:
            continue
        if group_id is not None and payment.group_id != group_id:
            continue
        _apply_payment(balances, payment)

    return balances


def total_expenses(expenses: Iterable[Expense]) -> Decimal:
    return sum((expense.amount for expense in expenses), ZERO)


def total_completed_payments(payments: Iterable[Payment]) -> Decimal:
    return sum(
        (payment.amount for payment in payments if payment.status == PaymentStatus.COMPLETED),
        ZERO,
    )
