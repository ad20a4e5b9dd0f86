from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from groupsplit.config import Settings
from groupsplit.db.repo import GroupSplitRepository
from groupsplit.keyboards import parse_callback_id, payment_keyboard
from groupsplit.logging import get_logger
from groupsplit.services.authz import AuthorizationError, assert_group_participant
from groupsplit.services.formatting import format_payment
from groupsplit.services.payments import (
    PaymentNotFoundError,
    PaymentStateError,
    cancel_payment,
    confirm_payment,
    validate_payment,
)
from groupsplit.utils.parse import parse_id, parse_positive_amount, split_command_args

payments_router = Router()


@payments_router.message(Command("pay"))
async def cmd_pay(message: Message, repo: GroupSplitRepository, settings: Settings) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = split_command_args(message.text, "pay")
    if len(parts) < 3:
        await message.answer("Usage: /pay <group_id> | @username | <amount> [| method] [| note]")
        return

    try:
        group_id = parse_id(parts[0])
        amount = parse_positive_amount(parts[2])
    except ValueError as exc:
        await message.answer(str(exc))
        return

    method = parts[3] if len(parts) > 3 and parts[3] else None
    note = parts[4] if len(parts) > 4 and parts[4] else None

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    recipient = await repo.get_user_by_username(parts[1])
    if not recipient:
        await message.answer(f"{parts[1]} has not started the bot yet.")
        return

    try:
        await assert_group_participant(repo.db, user_id, group_id)
        await assert_group_participant(repo.db, recipient["id"], group_id)
        validate_payment(user_id, recipient["id"], amount)
    except AuthorizationError:
        await message.answer("Both payer and recipient must be participants of the group.")
        return
    except ValueError as exc:
        await message.answer(str(exc))
        return

    payment = await repo.create_payment(group_id, user_id, recipient["id"], amount, method, note)
    get_logger(__name__).info("payment.created", payment_id=payment.id, group_id=group_id)

    names = await repo.get_display_names([payment.from_user_id, payment.to_user_id])
    await message.answer(
        f"{format_payment(payment, names, settings.currency)}\n"
        "It counts towards balances once the recipient confirms it.",
        reply_markup=payment_keyboard(payment.id),
    )


@payments_router.message(Command("payments"))
async def cmd_payments(message: Message, repo: GroupSplitRepository, settings: Settings) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = message.text.split()
    if len(parts) < 2:
        await message.answer("Usage: /payments <group_id>")
        return

    try:
        group_id = parse_id(parts[1])
    except ValueError:
        await message.answer("Invalid group_id")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_participant(repo.db, user_id, group_id)
    except AuthorizationError as exc:
        await message.answer(str(exc))
        return

    await message.answer(await build_payments_message(repo, group_id, settings.currency))


async def build_payments_message(repo: GroupSplitRepository, group_id: int, currency: str) -> str:
    payments = await repo.list_group_payments(group_id)
    if not payments:
        return f"No payments recorded in group #{group_id}."

    user_ids = [p.from_user_id for p in payments] + [p.to_user_id for p in payments]
    names = await repo.get_display_names(user_ids)
    return "\n".join(format_payment(payment, names, currency) for payment in payments)


@payments_router.callback_query(F.data.startswith("payments:"))
async def cb_payments(callback: CallbackQuery, repo: GroupSplitRepository, settings: Settings) -> None:
    user = callback.from_user
    group_id = parse_callback_id(callback.data, "payments")
    if not user or not callback.message or group_id is None:
        await callback.answer()
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_participant(repo.db, user_id, group_id)
    except AuthorizationError as exc:
        await callback.answer(str(exc), show_alert=True)
        return

    await callback.answer()
    await callback.message.answer(await build_payments_message(repo, group_id, settings.currency))


@payments_router.callback_query(F.data.startswith("payment_confirm:") | F.data.startswith("payment_cancel:"))
async def cb_payment_status(callback: CallbackQuery, repo: GroupSplitRepository, settings: Settings) -> None:
    user = callback.from_user
    if not user or not callback.data:
        await callback.answer()
        return

    action, _, _ = callback.data.partition(":")
    payment_id = parse_callback_id(callback.data, action)
    if payment_id is None:
        await callback.answer()
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        if action == "payment_confirm":
            payment = await confirm_payment(repo, payment_id, user_id)
        else:
            payment = await cancel_payment(repo, payment_id, user_id)
    except (AuthorizationError, PaymentNotFoundError, PaymentStateError) as exc:
        await callback.answer(str(exc), show_alert=True)
        return

    names = await repo.get_display_names([payment.from_user_id, payment.to_user_id])
    await callback.answer(f"Payment {payment.status.value}")
    if callback.message:
        await callback.message.answer(format_payment(payment, names, settings.currency))
