from __future__ import annotations

from typing import Protocol

from groupsplit.logging import get_logger
from groupsplit.services.authz import AuthorizationError, Repository, get_participant_role


class MembershipError(ValueError):
    pass


class MembershipRepository(Protocol):
    db: Repository

    async def remove_participant(self, group_id: int, user_id: int) -> bool: ...

    async def count_group_admins(self, group_id: int) -> int: ...


async def remove_member(repo: MembershipRepository, actor_id: int, group_id: int, member_id: int) -> None:
    """Remove ``member_id`` from the group.

    Admins may remove anyone, members may only leave themselves. The last
    admin of a group cannot be removed. Expenses the member paid stay in
    the group but no longer count towards balances.
    """
    if actor_id != member_id and await get_participant_role(repo.db, actor_id, group_id) != "admin":
        raise AuthorizationError("Only a group admin can remove other participants.")

    role = await get_participant_role(repo.db, member_id, group_id)
    if role is None:
        raise MembershipError("This user is not a participant of the group.")
    if role == "admin" and await repo.count_group_admins(group_id) <= 1:
        raise MembershipError("The last admin of a group cannot be removed.")

    await repo.remove_participant(group_id, member_id)
    get_logger(__name__).info("group.member_removed", group_id=group_id, member_id=member_id, actor_id=actor_id)
