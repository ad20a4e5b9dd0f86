from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


AMOUNT_RE = re.compile(r"^-?\d+(?:[.,]\d{1,2})?$")
SPLIT_RE = re.compile(r"^@?(?P<username>[A-Za-z0-9_]{1,64})=(?P<amount>\S+)$")


def parse_amount(text: str) -> Decimal:
    """Parse a money amount such as ``12``, ``12.5`` or ``12,50``.

    Only up to two fractional digits are accepted.
    """
    value = text.strip().replace(" ", "")
    if not AMOUNT_RE.match(value):
        raise ValueError(f"Invalid amount: {text!r}")
    try:
        return Decimal(value.replace(",", "."))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {text!r}") from exc


def parse_positive_amount(text: str) -> Decimal:
    amount = parse_amount(text)
    if amount <= 0:
        raise ValueError("Amount must be positive")
    return amount


def parse_id(text: str) -> int:
    value = text.strip().lstrip("#")
    if not value.isdigit():
        raise ValueError(f"Invalid id: {text!r}")
    return int(value)


def split_command_args(text: str, command: str) -> list[str]:
    """``/cmd a | b | c`` -> ``["a", "b", "c"]``."""
    body = text.split(maxsplit=1)
    if not body or body[0].lstrip("/").split("@")[0] != command.lstrip("/"):
        raise ValueError(f"Expected /{command.lstrip('/')} command")
    if len(body) == 1:
        return []
    return [part.strip() for part in body[1].split("|")]


def parse_split_tokens(text: str) -> dict[str, Decimal]:
    """``@alice=30 @bob=12.50`` -> ``{"alice": Decimal("30"), "bob": Decimal("12.50")}``."""
    result: dict[str, Decimal] = {}
    for token in text.split():
        match = SPLIT_RE.match(token)
        if not match:
            raise ValueError(f"Invalid split entry: {token!r}")
        username = match.group("username").lower()
        if username in result:
            raise ValueError(f"Duplicate split entry for @{username}")
        result[username] = parse_amount(match.group("amount"))
    return result


def parse_expense_datetime(value: str, default_tz: ZoneInfo) -> datetime:
    parts = value.strip().split()
    if not parts:
        raise ValueError("Expected 'YYYY-MM-DD [HH:MM] [TZ]'")

    date_part = parts[0]
    time_part = parts[1] if len(parts) > 1 and ":" in parts[1] else "00:00"
    tz_name = parts[-1] if len(parts) > 1 and ":" not in parts[-1] else default_tz.key

    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError("Unknown timezone") from exc

    naive = datetime.strptime(f"{date_part} {time_part}", "%Y-%m-%d %H:%M")
    aware = naive.replace(tzinfo=tz)
    return aware.astimezone(ZoneInfo("UTC"))


@dataclass(slots=True)
class ExpenseArgs:
    group_id: int
    amount: Decimal
    description: str
    splits: dict[str, Decimal] = field(default_factory=dict)
    budget_id: Optional[int] = None
    spent_at: Optional[datetime] = None


def parse_expense_args(parts: list[str], default_tz: ZoneInfo) -> ExpenseArgs:
    """``<group> | <amount> | <description> [| @u=1 @v=2] [| budget=<id>] [| date=YYYY-MM-DD]``."""
    if len(parts) < 3:
        raise ValueError("Expected at least group, amount and description")

    args = ExpenseArgs(
        group_id=parse_id(parts[0]),
        amount=parse_positive_amount(parts[1]),
        description=parts[2],
    )
    for extra in parts[3:]:
        if not extra:
            continue
        if extra.startswith("budget="):
            args.budget_id = parse_id(extra.removeprefix("budget="))
        elif extra.startswith("date="):
            args.spent_at = parse_expense_datetime(extra.removeprefix("date="), default_tz)
        else:
            for username, amount in parse_split_tokens(extra).items():
                if username in args.splits:
                    raise ValueError(f"Duplicate split entry for @{username}")
                args.splits[username] = amount
    return args
