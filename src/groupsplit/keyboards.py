from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup


def balances_keyboard(group_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="Refresh", callback_data=f"balances:{group_id}"),
                InlineKeyboardButton(text="Payments", callback_data=f"payments:{group_id}"),
            ],
            [InlineKeyboardButton(text="Budgets", callback_data=f"budgets:{group_id}")],
        ]
    )


def payment_keyboard(payment_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="Confirm received", callback_data=f"payment_confirm:{payment_id}"),
                InlineKeyboardButton(text="Cancel", callback_data=f"payment_cancel:{payment_id}"),
            ]
        ]
    )


def parse_callback_id(data: str | None, prefix: str) -> int | None:
    if not data or not data.startswith(f"{prefix}:"):
        return None
    _, _, raw_id = data.partition(":")
    return int(raw_id) if raw_id.isdigit() else None
