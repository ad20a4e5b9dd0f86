from datetime import datetime, timezone
from decimal import Decimal

from groupsplit.db.models import (
    Expense,
    Participant,
    ParticipantRole,
    Payment,
    PaymentStatus,
    SplitDetail,
)
from groupsplit.services.balances import compute_balances, total_completed_payments, total_expenses

A, B, C, D = 1, 2, 3, 4
GROUP_ID = 10


def make_expense(payer_id, amount, splits=(), group_id=GROUP_ID, expense_id=1):
    return Expense(
        id=expense_id,
        group_id=group_id,
        payer_id=payer_id,
        amount=Decimal(amount),
        date=datetime(2026, 10, 1, tzinfo=timezone.utc),
        split_details=tuple(SplitDetail(user_id=u, amount_assigned=Decimal(a)) for u, a in splits),
    )


def make_payment(from_user, to_user, amount, status=PaymentStatus.COMPLETED, group_id=GROUP_ID):
    return Payment(
        id=1,
        group_id=group_id,
        from_user_id=from_user,
        to_user_id=to_user,
        amount=Decimal(amount),
        status=status,
    )


def participants(*user_ids):
    roles = [ParticipantRole.ADMIN] + [ParticipantRole.MEMBER] * (len(user_ids) - 1)
    return [Participant(user_id=u, role=r) for u, r in zip(user_ids, roles)]


def test_even_split_scenario():
    balances = compute_balances(participants(A, B, C), [make_expense(A, "90")], [])

    assert (balances[A].paid, balances[A].owes, balances[A].net) == (90, 0, 90)
    assert (balances[B].paid, balances[B].owes, balances[B].net) == (0, 30, -30)
    assert (balances[C].paid, balances[C].owes, balances[C].net) == (0, 30, -30)
    assert sum(b.net for b in balances.values()) == 30


def test_completed_payment_scenario():
    balances = compute_balances(
        participants(A, B, C),
        [make_expense(A, "90")],
        [make_payment(B, A, "30")],
    )

    assert balances[B].paid == 30
    assert balances[B].net == 0
    assert balances[A].owes == -30
    assert balances[A].net == 120
    assert balances[C].net == -30


def test_even_split_leaves_payer_share_out_of_owes():
    amount = Decimal("100")
    balances = compute_balances(participants(A, B, C, D), [make_expense(B, amount)], [])

    assert balances[B].paid == amount
    assert balances[B].owes == 0
    others = sum(balances[u].owes for u in (A, C, D))
    assert others == 3 * amount / 4


def test_explicit_split_nets_to_zero():
    expense = make_expense(A, "100", splits=[(A, "20"), (B, "50"), (C, "30")])
    balances = compute_balances(participants(A, B, C), [expense], [])

    assert balances[A].net == 80
    assert balances[B].net == -50
    assert balances[C].net == -30
    assert sum(b.net for b in balances.values()) == 0


def test_explicit_split_imbalance_propagates():
    expense = make_expense(A, "100", splits=[(B, "30"), (C, "30")])
    balances = compute_balances(participants(A, B, C), [expense], [])

    assert sum(b.net for b in balances.values()) == 40


def test_payment_moves_both_nets():
    base = compute_balances(participants(A, B, C), [make_expense(A, "90")], [])
    after = compute_balances(
        participants(A, B, C),
        [make_expense(A, "90")],
        [make_payment(C, B, "12.5")],
    )

    # The payer is credited on the paid side and the recipient's owes is
    # reduced, so both nets move up by the payment amount.
    assert after[C].net - base[C].net == Decimal("12.5")
    assert after[B].net - base[B].net == Decimal("12.5")
    assert after[A].net == base[A].net


def test_pending_and_cancelled_payments_are_ignored():
    base = compute_balances(participants(A, B), [make_expense(A, "40")], [])
    after = compute_balances(
        participants(A, B),
        [make_expense(A, "40")],
        [
            make_payment(B, A, "20", status=PaymentStatus.PENDING),
            make_payment(B, A, "500", status=PaymentStatus.CANCELLED),
        ],
    )

    assert {u: b.net for u, b in after.items()} == {u: b.net for u, b in base.items()}


def test_no_participants_gives_empty_result():
    assert compute_balances([], [make_expense(A, "90")], [make_payment(B, A, "10")]) == {}


def test_single_participant_pays_for_themselves():
    balances = compute_balances(participants(A), [make_expense(A, "25")], [])

    assert balances[A].paid == 25
    assert balances[A].owes == 0


def test_unknown_users_are_ignored():
    balances = compute_balances(
        participants(A, B),
        [
            make_expense(D, "60"),
            make_expense(A, "10", splits=[(A, "5"), (D, "5")], expense_id=2),
        ],
        [make_payment(D, A, "7")],
    )

    # D is not a participant: their paid amount is dropped but the even split
    # still charges every participant.
    assert D not in balances
    assert balances[A].paid == 10
    assert balances[A].owes == Decimal("30") + Decimal("5") - Decimal("7")
    assert balances[B].owes == 30


def test_other_group_records_are_skipped_when_group_given():
    balances = compute_balances(
        participants(A, B),
        [make_expense(A, "20"), make_expense(B, "100", group_id=99, expense_id=2)],
        [make_payment(B, A, "50", group_id=99)],
        group_id=GROUP_ID,
    )

    assert balances[A].net == 20
    assert balances[B].net == -10


def test_negative_amount_flows_through():
    balances = compute_balances(participants(A, B), [make_expense(A, "-10")], [])

    assert balances[A].net == -10
    assert balances[B].net == 5


def test_balances_keep_participant_order():
    balances = compute_balances(participants(C, A, B), [], [])

    assert list(balances) == [C, A, B]


def test_compute_balances_is_repeatable():
    people = participants(A, B, C)
    expenses = [make_expense(A, "90"), make_expense(B, "33.33", expense_id=2)]
    payments = [make_payment(C, A, "10")]

    first = compute_balances(people, expenses, payments)
    second = compute_balances(people, expenses, payments)

    assert first == second
    assert expenses[0].amount == Decimal("90")


def test_totals():
    expenses = [make_expense(A, "90"), make_expense(B, "10.50", expense_id=2)]
    payments = [
        make_payment(B, A, "30"),
        make_payment(C, A, "15", status=PaymentStatus.PENDING),
    ]

    assert total_expenses(expenses) == Decimal("100.50")
    assert total_completed_payments(payments) == Decimal("30")
    assert total_expenses([]) == 0
