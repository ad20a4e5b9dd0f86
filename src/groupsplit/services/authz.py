from __future__ import annotations

from typing import Protocol


class Repository(Protocol):
    async def fetchval(self, query: str, *args: object) -> object: ...


class AuthorizationError(PermissionError):
    pass


async def get_participant_role(repo: Repository, user_id: int, group_id: int) -> str | None:
    role = await repo.fetchval(
        """
        SELECT gp.role
        FROM group_participants gp
        JOIN groups g ON g.id = gp.group_id
        WHERE gp.group_id = $1 AND gp.user_id = $2 AND g.deleted_at IS NULL
        """,
        group_id,
        user_id,
    )
    return str(role) if role is not None else None


async def is_group_admin(repo: Repository, user_id: int, group_id: int) -> bool:
    return await get_participant_role(repo, user_id, group_id) == "admin"


async def assert_group_participant(repo: Repository, user_id: int, group_id: int) -> None:
    if await get_participant_role(repo, user_id, group_id) is None:
        raise AuthorizationError("You are not a participant of this group.")


async def assert_group_admin(repo: Repository, user_id: int, group_id: int) -> None:
    if not await is_group_admin(repo, user_id, group_id):
        raise AuthorizationError("Only a group admin can do this.")
