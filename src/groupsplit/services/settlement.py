from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Mapping

from groupsplit.services.balances import EPSILON, Balance, is_settled


@dataclass(frozen=True, slots=True)
class Settlement:
    from_user: int
    to_user: int
    amount: Decimal


def plan_settlements(balances: Mapping[int, Balance]) -> List[Settlement]:
    """Greedy matching of the largest debt against the largest credit.

    Sorting is stable, so equal balances keep the mapping's order.
    """
    creditors: list[tuple[int, Decimal]] = []
    debtors: list[tuple[int, Decimal]] = []

    for user_id, balance in balances.items():
        net = balance.net
        if net > EPSILON:
            creditors.append((user_id, net))
        elif net < -EPSILON:
            debtors.append((user_id, net))

    debtors.sort(key=lambda x: x[1])
    creditors.sort(key=lambda x: x[1], reverse=True)

    settlements: list[Settlement] = []
    i, j = 0, 0

    while i < len(debtors) and j < len(creditors):
        debt_id, debt_net = debtors[i]
        cred_id, cred_net = creditors[j]

        transfer_amount = min(-debt_net, cred_net)
        if transfer_amount > EPSILON:
            settlements.append(Settlement(from_user=debt_id, to_user=cred_id, amount=transfer_amount))

        debt_net += transfer_amount
        cred_net -= transfer_amount

        if is_settled(debt_net):
            i += 1
        else:
            debtors[i] = (debt_id, debt_net)

        if is_settled(cred_net):
            j += 1
        else:
            creditors[j] = (cred_id, cred_net)

    return settlements

