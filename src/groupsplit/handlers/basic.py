from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from groupsplit.db.repo import GroupSplitRepository

basic_router = Router()


HELP_TEXT = (
    "GroupSplit keeps track of shared expenses.\n\n"
    "/newgroup <name> [| description] — create a group\n"
    "/addmember <group_id> | @username [admin] — add a participant\n"
    "/groups — your groups\n"
    "/addexpense <group_id> | <amount> | <description> [| @user=amount ...] [| budget=<id>] [| date=YYYY-MM-DD]\n"
    "/pay <group_id> | @username | <amount> [| method] [| note] — record a payment\n"
    "/payments <group_id> — payments of a group\n"
    "/balances <group_id> — who owes whom\n"
    "/budget <group_id> | <category> | <limit> [| weekly|monthly|yearly]\n"
    "/delexpense <expense_id> — delete an expense\n"
    "/budgets <group_id> — budget usage\n"
    "/editbudget <budget_id> | <limit> [| weekly|monthly|yearly] — change a budget\n"
    "/delbudget <budget_id> — delete a budget\n"
    "/removemember <group_id> | @username — remove a participant (or leave)\n"
    "/delgroup <group_id> — delete a group"
)


@basic_router.message(CommandStart())
async def cmd_start(message: Message, repo: GroupSplitRepository) -> None:
    user = message.from_user
    if not user:
        return

    await repo.ensure_user(user.id, user.username, user.full_name)
    await message.answer(f"Hi, {user.first_name}!\n\n{HELP_TEXT}")


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.message(Command("groups"))
async def cmd_groups(message: Message, repo: GroupSplitRepository) -> None:
    user = message.from_user
    if not user:
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    groups = await repo.list_user_groups(user_id)
    if not groups:
        await message.answer("You are not in any group yet. Create one with /newgroup <name>.")
        return

    lines = ["Your groups:"]
    for group in groups:
        suffix = " (admin)" if group["role"] == "admin" else ""
        lines.append(f"#{group['id']} {group['name']}{suffix}")
    await message.answer("\n".join(lines))
