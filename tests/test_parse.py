from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from groupsplit.utils.parse import (
    parse_amount,
    parse_expense_args,
    parse_expense_datetime,
    parse_id,
    parse_positive_amount,
    parse_split_tokens,
    split_command_args,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [("12", "12"), ("12.5", "12.5"), ("12,50", "12.50"), (" 1 000.25 ", "1000.25"), ("-3", "-3")],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == Decimal(expected)


@pytest.mark.parametrize("text", ["", "abc", "1.234", "1.2.3", "12$"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_parse_positive_amount():
    assert parse_positive_amount("0.01") == Decimal("0.01")
    with pytest.raises(ValueError):
        parse_positive_amount("0")


def test_parse_id():
    assert parse_id("#12") == 12
    with pytest.raises(ValueError):
        parse_id("x1")


def test_split_command_args():
    assert split_command_args("/pay 1 | @bob | 30", "pay") == ["1", "@bob", "30"]
    assert split_command_args("/pay@GroupSplitBot 1|@bob", "pay") == ["1", "@bob"]
    assert split_command_args("/pay", "pay") == []
    with pytest.raises(ValueError):
        split_command_args("/other 1", "pay")


def test_parse_split_tokens():
    assert parse_split_tokens("@alice=30 bob=12,50") == {
        "alice": Decimal("30"),
        "bob": Decimal("12.50"),
    }
    with pytest.raises(ValueError):
        parse_split_tokens("@alice")
    with pytest.raises(ValueError):
        parse_split_tokens("@alice=1 @alice=2")


def test_parse_expense_datetime():
    moscow = ZoneInfo("Europe/Moscow")
    assert parse_expense_datetime("2026-10-01 12:30", moscow) == datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc)
    assert parse_expense_datetime("2026-10-01 UTC", moscow) == datetime(2026, 10, 1, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        parse_expense_datetime("2026-10-01 12:30 Mars/Base", moscow)
    with pytest.raises(ValueError):
        parse_expense_datetime("01.10.2026", moscow)


def test_parse_expense_args_full():
    args = parse_expense_args(
        ["3", "90", "Dinner", "@alice=30 @bob=60", "budget=7", "date=2026-10-01 UTC"],
        ZoneInfo("Europe/Moscow"),
    )

    assert args.group_id == 3
    assert args.amount == Decimal("90")
    assert args.description == "Dinner"
    assert args.splits == {"alice": Decimal("30"), "bob": Decimal("60")}
    assert args.budget_id == 7
    assert args.spent_at == datetime(2026, 10, 1, tzinfo=timezone.utc)


def test_parse_expense_args_even_split():
    args = parse_expense_args(["3", "45.5", "Taxi"], ZoneInfo("UTC"))

    assert args.splits == {}
    assert args.budget_id is None
    assert args.spent_at is None


def test_parse_expense_args_requires_three_parts():
    with pytest.raises(ValueError):
        parse_expense_args(["3", "45"], ZoneInfo("UTC"))
    with pytest.raises(ValueError):
        parse_expense_args(["3", "-45", "Refund"], ZoneInfo("UTC"))


def test_parse_split_tokens_ignores_username_case():
    assert parse_split_tokens("@Alice=5") == {"alice": Decimal("5")}
    with pytest.raises(ValueError):
        parse_split_tokens("@Alice=1 @alice=2")


def test_parse_expense_args_rejects_user_repeated_across_segments():
    with pytest.raises(ValueError, match="Duplicate split entry for @alice"):
        parse_expense_args(["1", "10", "Lunch", "@alice=3", "@alice=7"], ZoneInfo("UTC"))
    with pytest.raises(ValueError):
        parse_expense_args(["1", "10", "Lunch", "@alice=3 @bob=2", "@Alice=5"], ZoneInfo("UTC"))
