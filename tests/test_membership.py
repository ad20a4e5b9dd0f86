import pytest

from groupsplit.services.authz import AuthorizationError
from groupsplit.services.membership import MembershipError, remove_member


class StubDB:
    def __init__(self, roles: dict[int, str]) -> None:
        self.roles = roles

    async def fetchval(self, query: str, *args: object) -> object:
        return self.roles.get(args[1])


class StubRepo:
    def __init__(self, roles: dict[int, str]) -> None:
        self.db = StubDB(roles)
        self.removed: list[tuple[int, int]] = []

    async def remove_participant(self, group_id, user_id):
        self.removed.append((group_id, user_id))
        self.db.roles.pop(user_id, None)
        return True

    async def count_group_admins(self, group_id):
        return sum(1 for role in self.db.roles.values() if role == "admin")


@pytest.mark.asyncio
async def test_admin_removes_member():
    repo = StubRepo({1: "admin", 2: "member"})

    await remove_member(repo, 1, 7, 2)

    assert repo.removed == [(7, 2)]


@pytest.mark.asyncio
async def test_member_leaves_group():
    repo = StubRepo({1: "admin", 2: "member"})

    await remove_member(repo, 2, 7, 2)

    assert repo.removed == [(7, 2)]


@pytest.mark.asyncio
async def test_member_cannot_remove_others():
    repo = StubRepo({1: "admin", 2: "member", 3: "member"})

    with pytest.raises(AuthorizationError):
        await remove_member(repo, 2, 7, 3)
    assert repo.removed == []


@pytest.mark.asyncio
async def test_remove_unknown_user():
    repo = StubRepo({1: "admin"})

    with pytest.raises(MembershipError):
        await remove_member(repo, 1, 7, 5)


@pytest.mark.asyncio
async def test_last_admin_stays():
    repo = StubRepo({1: "admin", 2: "member"})

    with pytest.raises(MembershipError):
        await remove_member(repo, 1, 7, 1)
    assert repo.removed == []


@pytest.mark.asyncio
async def test_admin_removed_when_another_admin_remains():
    repo = StubRepo({1: "admin", 2: "admin"})

    await remove_member(repo, 2, 7, 1)

    assert repo.removed == [(7, 1)]
