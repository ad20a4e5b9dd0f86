import pytest

from groupsplit.services.authz import (
    AuthorizationError,
    assert_group_admin,
    assert_group_participant,
    get_participant_role,
    is_group_admin,
)


class StubRepo:
    def __init__(self, roles: dict[tuple[int, int], str]) -> None:
        self.roles = roles

    async def fetchval(self, query: str, *args: object) -> object:
        assert "group_participants" in query
        group_id, user_id = args
        return self.roles.get((group_id, user_id))


ROLES = {(1, 42): "admin", (1, 100): "member", (2, 100): "admin"}


@pytest.mark.asyncio
async def test_get_participant_role():
    repo = StubRepo(ROLES)
    assert await get_participant_role(repo, 100, 1) == "member"
    assert await get_participant_role(repo, 7, 1) is None


@pytest.mark.asyncio
async def test_is_group_admin():
    repo = StubRepo(ROLES)
    assert await is_group_admin(repo, 42, 1) is True
    assert await is_group_admin(repo, 100, 1) is False
    assert await is_group_admin(repo, 100, 2) is True


@pytest.mark.asyncio
async def test_assert_group_admin_denied():
    repo = StubRepo(ROLES)
    with pytest.raises(AuthorizationError):
        await assert_group_admin(repo, 100, 1)


@pytest.mark.asyncio
async def test_assert_group_participant():
    repo = StubRepo(ROLES)
    await assert_group_participant(repo, 100, 1)


@pytest.mark.asyncio
async def test_assert_group_participant_denied():
    repo = StubRepo(ROLES)
    with pytest.raises(AuthorizationError):
        await assert_group_participant(repo, 42, 2)
