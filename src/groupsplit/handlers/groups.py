from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from groupsplit.config import Settings
from groupsplit.db.models import ParticipantRole
from groupsplit.db.repo import GroupSplitRepository
from groupsplit.keyboards import balances_keyboard, parse_callback_id
from groupsplit.logging import get_logger
from groupsplit.services.authz import AuthorizationError, assert_group_admin, assert_group_participant
from groupsplit.services.formatting import format_summary
from groupsplit.services.membership import MembershipError, remove_member
from groupsplit.services.summary import GroupNotFoundError, build_group_summary
from groupsplit.utils.parse import parse_id, split_command_args

groups_router = Router()


async def build_balances_message(repo: GroupSplitRepository, group_id: int, currency: str) -> str:
    summary = await build_group_summary(repo, group_id)
    user_ids = [*summary.balances]
    names = await repo.get_display_names(user_ids)
    return format_summary(summary, names, currency)


@groups_router.message(Command("newgroup"))
async def cmd_newgroup(message: Message, repo: GroupSplitRepository) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = split_command_args(message.text, "newgroup")
    if not parts or not parts[0]:
        await message.answer("Usage: /newgroup <name> [| description]")
        return

    name = parts[0]
    description = parts[1] if len(parts) > 1 and parts[1] else None
    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    group_id = await repo.create_group(user_id, name, description)
    get_logger(__name__).info("group.created", group_id=group_id, owner_id=user_id)
    await message.answer(f"Group created: #{group_id} {name}\nAdd people with /addmember {group_id} | @username")


@groups_router.message(Command("addmember"))
async def cmd_addmember(message: Message, repo: GroupSplitRepository) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = split_command_args(message.text, "addmember")
    if len(parts) < 2:
        await message.answer("Usage: /addmember <group_id> | @username [admin]")
        return

    try:
        group_id = parse_id(parts[0])
    except ValueError:
        await message.answer("Invalid group_id")
        return

    target = parts[1].split()
    role = ParticipantRole.ADMIN if len(target) > 1 and target[1].lower() == "admin" else ParticipantRole.MEMBER

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_admin(repo.db, user_id, group_id)
    except AuthorizationError as exc:
        await message.answer(str(exc))
        return

    member = await repo.get_user_by_username(target[0])
    if not member:
        await message.answer(f"{target[0]} has not started the bot yet.")
        return

    await repo.add_participant(group_id, member["id"], role)
    await message.answer(f"{target[0]} added to group #{group_id} as {role.value}.")


@groups_router.message(Command("balances"))
async def cmd_balances(message: Message, repo: GroupSplitRepository, settings: Settings) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = message.text.split()
    if len(parts) < 2:
        await message.answer("Usage: /balances <group_id>")
        return

    try:
        group_id = parse_id(parts[1])
    except ValueError:
        await message.answer("Invalid group_id")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_participant(repo.db, user_id, group_id)
        text = await build_balances_message(repo, group_id, settings.currency)
    except (AuthorizationError, GroupNotFoundError) as exc:
        await message.answer(str(exc))
        return

    await message.answer(text, reply_markup=balances_keyboard(group_id))


@groups_router.callback_query(F.data.startswith("balances:"))
async def cb_balances(callback: CallbackQuery, repo: GroupSplitRepository, settings: Settings) -> None:
    user = callback.from_user
    group_id = parse_callback_id(callback.data, "balances")
    if not user or not callback.message or group_id is None:
        await callback.answer()
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_participant(repo.db, user_id, group_id)
        text = await build_balances_message(repo, group_id, settings.currency)
    except (AuthorizationError, GroupNotFoundError) as exc:
        await callback.answer(str(exc), show_alert=True)
        return

    await callback.answer()
    await callback.message.answer(text, reply_markup=balances_keyboard(group_id))


@groups_router.message(Command("removemember"))
async def cmd_removemember(message: Message, repo: GroupSplitRepository) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = split_command_args(message.text, "removemember")
    if len(parts) < 2 or not parts[1]:
        await message.answer("Usage: /removemember <group_id> | @username")
        return

    try:
        group_id = parse_id(parts[0])
    except ValueError:
        await message.answer("Invalid group_id")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    member = await repo.get_user_by_username(parts[1])
    if not member:
        await message.answer(f"{parts[1]} has not started the bot yet.")
        return

    try:
        await remove_member(repo, user_id, group_id, member["id"])
    except (AuthorizationError, MembershipError) as exc:
        await message.answer(str(exc))
        return

    await message.answer(f"{parts[1]} removed from group #{group_id}.")


@groups_router.message(Command("delgroup"))
async def cmd_delgroup(message: Message, repo: GroupSplitRepository) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    parts = message.text.split()
    try:
        group_id = parse_id(parts[1]) if len(parts) > 1 else None
    except ValueError:
        group_id = None
    if group_id is None:
        await message.answer("Usage: /delgroup <group_id>")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    try:
        await assert_group_admin(repo.db, user_id, group_id)
    except AuthorizationError as exc:
        await message.answer(str(exc))
        return

    await repo.delete_group(group_id)
    get_logger(__name__).info("group.deleted", group_id=group_id, actor_id=user_id)
    await message.answer(f"Group #{group_id} deleted.")
