from __future__ import annotations

from decimal import Decimal

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from groupsplit.config import Settings
from groupsplit.db.models import BudgetPeriod, SplitDetail
from groupsplit.db.repo import GroupSplitRepository
from groupsplit.keyboards import parse_callback_id
from groupsplit.logging import get_logger
from groupsplit.services.authz import AuthorizationError, assert_group_admin, assert_group_participant
from groupsplit.services.budgets import BudgetNotFoundError, get_group_budget, record_expense
from groupsplit.services.formatting import format_budget, format_money
from groupsplit.utils.parse import parse_expense_args, parse_id, parse_positive_amount, split_command_args

expenses_router = Router()


async def _resolve_splits(repo: GroupSplitRepository, splits: dict[str, Decimal]) -> list[SplitDetail]:
    details: list[SplitDetail] = []
    for username, amount in splits.items():
        user = await repo.get_user_by_username(username)
        if not user:
            raise ValueError(f"@{username} has not started the bot yet.")
        details.append(SplitDetail(user_id=user["id"], amount_assigned=amount))
    return details


@expenses_router.message(Command("addexpense"))
async def cmd_addexpense(message: Message, repo: GroupSplitRepository, settings: Settings) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    try:
        args = parse_expense_args(split_command_args(message.text, "addexpense"), settings.zoneinfo)
    except ValueError as exc:
        await message.answer(
            f"{exc}\nUsage: /addexpense <group_id> | <amount> | <description> "
            "[| @user=amount ...] [| budget=<id>] [| date=YYYY-MM-DD]"
        )
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_participant(repo.db, user_id, args.group_id)
        if args.budget_id is not None:
            await get_group_budget(repo, args.budget_id, args.group_id)
        split_details = await _resolve_splits(repo, args.splits)
    except (AuthorizationError, BudgetNotFoundError, ValueError) as exc:
        await message.answer(str(exc))
        return

    expense = await repo.create_expense(
        group_id=args.group_id,
        payer_id=user_id,
        amount=args.amount,
        description=args.description,
        spent_at=args.spent_at,
        budget_id=args.budget_id,
        split_details=split_details,
    )
    get_logger(__name__).info("expense.created", expense_id=expense.id, group_id=expense.group_id)

    msg = f"Expense added: #{expense.id} {expense.description} {format_money(expense.amount, settings.currency)}"
    if split_details:
        assigned = sum((detail.amount_assigned for detail in split_details), Decimal("0"))
        if assigned != expense.amount:
            msg += f"\nWarning: split amounts add up to {format_money(assigned, settings.currency)}."
    else:
        msg += "\nSplit evenly between the group."

    budget = await record_expense(repo, expense)
    if budget is not None:
        msg += f"\nBudget: {format_budget(budget, settings.currency)}"

    await message.answer(msg)


@expenses_router.message(Command("budget"))
async def cmd_budget(message: Message, repo: GroupSplitRepository, settings: Settings) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = split_command_args(message.text, "budget")
    if len(parts) < 3:
        await message.answer("Usage: /budget <group_id> | <category> | <limit> [| weekly|monthly|yearly]")
        return

    try:
        group_id = parse_id(parts[0])
        limit = parse_positive_amount(parts[2])
        period = BudgetPeriod(parts[3].lower()) if len(parts) > 3 and parts[3] else BudgetPeriod.MONTHLY
    except ValueError as exc:
        await message.answer(str(exc))
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_admin(repo.db, user_id, group_id)
    except AuthorizationError as exc:
        await message.answer(str(exc))
        return

    budget = await repo.create_budget(group_id, parts[1], limit, period)
    await message.answer(f"Budget created: {format_budget(budget, settings.currency)}")


async def build_budgets_message(repo: GroupSplitRepository, group_id: int, currency: str) -> str:
    budgets = await repo.list_group_budgets(group_id)
    if not budgets:
        return f"Group #{group_id} has no budgets."
    return "\n".join([f"Budgets of group #{group_id}:", *(format_budget(b, currency) for b in budgets)])


@expenses_router.message(Command("budgets"))
async def cmd_budgets(message: Message, repo: GroupSplitRepository, settings: Settings) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = message.text.split()
    try:
        group_id = parse_id(parts[1]) if len(parts) > 1 else None
    except ValueError:
        group_id = None
    if group_id is None:
        await message.answer("Usage: /budgets <group_id>")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_participant(repo.db, user_id, group_id)
    except AuthorizationError as exc:
        await message.answer(str(exc))
        return

    await message.answer(await build_budgets_message(repo, group_id, settings.currency))


@expenses_router.callback_query(F.data.startswith("budgets:"))
async def cb_budgets(callback: CallbackQuery, repo: GroupSplitRepository, settings: Settings) -> None:
    user = callback.from_user
    group_id = parse_callback_id(callback.data, "budgets")
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
    await callback.message.answer(await build_budgets_message(repo, group_id, settings.currency))


@expenses_router.message(Command("delexpense"))
async def cmd_delexpense(message: Message, repo: GroupSplitRepository) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = message.text.split()
    try:
        expense_id = parse_id(parts[1]) if len(parts) > 1 else None
    except ValueError:
        expense_id = None
    if expense_id is None:
        await message.answer("Usage: /delexpense <expense_id>")
        return

    expense = await repo.get_expense(expense_id)
    if not expense:
        await message.answer("Expense not found")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    if expense["payer_id"] != user_id:
        try:
            await assert_group_admin(repo.db, user_id, expense["group_id"])
        except AuthorizationError:
            await message.answer("Only the payer or a group admin can delete this expense.")
            return

    await repo.delete_expense(expense_id)
    get_logger(__name__).info("expense.deleted", expense_id=expense_id, actor_id=user_id)
    await message.answer(f"Expense #{expense_id} deleted.")


@expenses_router.message(Command("editbudget"))
async def cmd_editbudget(message: Message, repo: GroupSplitRepository, settings: Settings) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = split_command_args(message.text, "editbudget")
    if len(parts) < 2:
        await message.answer("Usage: /editbudget <budget_id> | <limit> [| weekly|monthly|yearly]")
        return

    try:
        budget_id = parse_id(parts[0])
        limit = parse_positive_amount(parts[1])
        period = BudgetPeriod(parts[2].lower()) if len(parts) > 2 and parts[2] else None
    except ValueError as exc:
        await message.answer(str(exc))
        return

    budget = await repo.get_budget(budget_id)
    if budget is None:
        await message.answer("Budget not found")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_admin(repo.db, user_id, budget.group_id)
    except AuthorizationError as exc:
        await message.answer(str(exc))
        return

    updated = await repo.update_budget(budget_id, limit, period)
    if updated is None:
        await message.answer("Budget not found")
        return
    get_logger(__name__).info("budget.updated", budget_id=budget_id, actor_id=user_id)
    await message.answer(f"Budget updated: {format_budget(updated, settings.currency)}")


@expenses_router.message(Command("delbudget"))
async def cmd_delbudget(message: Message, repo: GroupSplitRepository) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = message.text.split()
    try:
        budget_id = parse_id(parts[1]) if len(parts) > 1 else None
    except ValueError:
        budget_id = None
    if budget_id is None:
        await message.answer("Usage: /delbudget <budget_id>")
        return

    budget = await repo.get_budget(budget_id)
    if budget is None:
        await message.answer("Budget not found")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_admin(repo.db, user_id, budget.group_id)
    except AuthorizationError as exc:
        await message.answer(str(exc))
        return

    # expenses keep their rows; budget_id is cleared by the foreign key
    await repo.delete_budget(budget_id)
    get_logger(__name__).info("budget.deleted", budget_id=budget_id, actor_id=user_id)
    await message.answer(f"Budget #{budget_id} deleted.")
