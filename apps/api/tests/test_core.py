"""
Tests for the authorization decision core, against in-memory lookups.
"""

from dataclasses import dataclass, field

import pytest

from permipulse.core.auth.engine import (
    DENY_NOT_FOUND,
    DENY_PROTECTED_ACCOUNT,
    AuthorizationCore,
    is_owner,
)
from permipulse.core.auth.interfaces import (
    DENY_HIERARCHY,
    DENY_MISSING_PERMISSION,
    DENY_NOT_OWNER,
    DENY_ROLE_REQUIRED,
    DENY_UNKNOWN_ACTOR,
    Identity,
    UserLookup,
)
from permipulse.core.auth.permissions import PermissionName, PermissionSet
from permipulse.core.auth.roles import Role


@dataclass
class FakeUser:
    id: int
    role: Role
    grants: set[PermissionName] = field(default_factory=set)

    @property
    def permission_set(self) -> PermissionSet:
        return PermissionSet(self.grants)


@dataclass
class FakePost:
    id: int
    user_id: int


class FakeUserLookup(UserLookup):
    def __init__(self, *users: FakeUser):
        self.users = {u.id: u for u in users}
        self.calls = 0

    async def get_user(self, user_id):
        self.calls += 1
        return self.users.get(int(user_id))


ADMIN = FakeUser(1, Role.ADMIN)
SUB = FakeUser(2, Role.SUB_ADMIN)
USER = FakeUser(3, Role.USER)
OTHER = FakeUser(4, Role.USER)


def identity(user: FakeUser) -> Identity:
    return Identity(id=user.id, role=user.role)


@pytest.fixture
def lookup() -> FakeUserLookup:
    SUB.grants.clear()
    return FakeUserLookup(ADMIN, SUB, USER, OTHER)


@pytest.fixture
def core(lookup: FakeUserLookup) -> AuthorizationCore:
    return AuthorizationCore(users=lookup)


# ============================================================
# PREDICATES
# ============================================================

def test_is_owner_compares_ids_across_types():
    assert is_owner(Identity(5, Role.USER), 5)
    assert is_owner(Identity(5, Role.USER), "5")
    assert not is_owner(Identity(5, Role.USER), 6)
    assert not is_owner(Identity(5, Role.USER), None)


def test_static_role(core: AuthorizationCore):
    assert core.has_static_role(identity(SUB), [Role.ADMIN, Role.SUB_ADMIN])

    decision = core.check_static_role(identity(USER), [Role.ADMIN, Role.SUB_ADMIN])
    assert not decision
    assert decision.code == DENY_ROLE_REQUIRED
    assert "ADMIN, SUB_ADMIN" in decision.reason


@pytest.mark.asyncio
@pytest.mark.parametrize("permission", list(PermissionName))
async def test_admin_has_every_grant_without_lookup(
    core: AuthorizationCore,
    lookup: FakeUserLookup,
    permission: PermissionName,
):
    assert await core.has_grant(identity(ADMIN), permission)
    assert lookup.calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("permission", list(PermissionName))
async def test_user_never_has_grants(core: AuthorizationCore, permission: PermissionName):
    USER.grants.add(permission)
    try:
        decision = await core.check_grant(identity(USER), permission)
    finally:
        USER.grants.clear()

    assert not decision
    assert decision.code == DENY_MISSING_PERMISSION


@pytest.mark.asyncio
async def test_sub_admin_grant_is_read_live(core: AuthorizationCore):
    decision = await core.check_grant(identity(SUB), PermissionName.CREATE_USER)
    assert not decision
    assert decision.reason == "Missing required permission [CREATE_USER]"

    SUB.grants.add(PermissionName.CREATE_USER)
    assert await core.has_grant(identity(SUB), PermissionName.CREATE_USER)

    SUB.grants.discard(PermissionName.CREATE_USER)
    assert not await core.has_grant(identity(SUB), PermissionName.CREATE_USER)


@pytest.mark.asyncio
async def test_grant_denied_when_actor_record_is_gone():
    core = AuthorizationCore(users=FakeUserLookup())

    decision = await core.check_grant(Identity(99, Role.SUB_ADMIN), PermissionName.CREATE_USER)

    assert not decision
    assert decision.code == DENY_UNKNOWN_ACTOR


@pytest.mark.asyncio
async def test_stale_sub_admin_token_after_demotion(core: AuthorizationCore, lookup: FakeUserLookup):
    demoted = FakeUser(5, Role.USER, {PermissionName.UPDATE_POST})
    lookup.users[demoted.id] = demoted

    decision = await core.check_grant(Identity(5, Role.SUB_ADMIN), PermissionName.UPDATE_POST)

    assert not decision
    assert decision.code == DENY_MISSING_PERMISSION


# ============================================================
# POSTS
# ============================================================

@pytest.mark.asyncio
async def test_post_mutation_owner_and_admin(core: AuthorizationCore):
    post = FakePost(id=10, user_id=USER.id)

    assert await core.can_mutate_post(identity(USER), post, PermissionName.UPDATE_POST)
    assert await core.can_mutate_post(identity(ADMIN), post, PermissionName.DELETE_POST)


@pytest.mark.asyncio
async def test_post_mutation_other_user_denied(core: AuthorizationCore):
    decision = await core.check_post_mutation(
        identity(OTHER),
        FakePost(id=10, user_id=USER.id),
        PermissionName.UPDATE_POST,
    )

    assert not decision
    assert decision.code == DENY_NOT_OWNER


@pytest.mark.asyncio
async def test_sub_admin_owner_needs_no_grant(core: AuthorizationCore):
    own = FakePost(id=11, user_id=SUB.id)
    foreign = FakePost(id=12, user_id=USER.id)

    assert await core.can_mutate_post(identity(SUB), own, PermissionName.UPDATE_POST)
    assert not await core.can_mutate_post(identity(SUB), foreign, PermissionName.UPDATE_POST)

    SUB.grants.add(PermissionName.UPDATE_POST)
    assert await core.can_mutate_post(identity(SUB), foreign, PermissionName.UPDATE_POST)
    # Update grant does not imply delete
    assert not await core.can_mutate_post(identity(SUB), foreign, PermissionName.DELETE_POST)


@pytest.mark.asyncio
async def test_missing_post_is_not_found(core: AuthorizationCore):
    decision = await core.check_post_mutation(identity(ADMIN), None, PermissionName.UPDATE_POST)

    assert not decision
    assert decision.code == DENY_NOT_FOUND


# ============================================================
# USER ADMINISTRATION
# ============================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("target", [ADMIN, SUB, USER])
async def test_user_never_administers(core: AuthorizationCore, target: FakeUser):
    decision = await core.check_user_admin(identity(OTHER), target, PermissionName.UPDATE_USER)

    assert not decision
    assert decision.code == DENY_ROLE_REQUIRED


@pytest.mark.asyncio
async def test_sub_admin_administers_users_only_with_grant(core: AuthorizationCore):
    assert not await core.can_mutate_user_admin(identity(SUB), USER, PermissionName.UPDATE_USER)

    SUB.grants.add(PermissionName.UPDATE_USER)
    assert await core.can_mutate_user_admin(identity(SUB), USER, PermissionName.UPDATE_USER)

    peer = FakeUser(6, Role.SUB_ADMIN)
    decision = await core.check_user_admin(identity(SUB), peer, PermissionName.UPDATE_USER)
    assert not decision
    assert decision.code == DENY_HIERARCHY


@pytest.mark.asyncio
async def test_admin_account_is_never_deletable(core: AuthorizationCore):
    SUB.grants.add(PermissionName.DELETE_USER)

    for actor in (ADMIN, SUB, USER):
        decision = await core.check_user_deletion(identity(actor), ADMIN)
        assert not decision
        assert decision.code == DENY_PROTECTED_ACCOUNT


@pytest.mark.asyncio
async def test_user_deletion_follows_admin_rules(core: AuthorizationCore):
    assert await core.check_user_deletion(identity(ADMIN), SUB)
    assert not await core.check_user_deletion(identity(SUB), USER)

    SUB.grants.add(PermissionName.DELETE_USER)
    assert await core.check_user_deletion(identity(SUB), USER)


@pytest.mark.asyncio
async def test_missing_target_is_not_found(core: AuthorizationCore):
    decision = await core.check_user_deletion(identity(ADMIN), None)

    assert not decision
    assert decision.code == DENY_NOT_FOUND


# ============================================================
# ROLE CHANGES
# ============================================================

def test_role_change_rules(core: AuthorizationCore):
    applied = core.check_role_change(identity(ADMIN), USER, Role.SUB_ADMIN)
    assert applied and applied.metadata["apply"] is True

    unchanged = core.check_role_change(identity(ADMIN), USER, Role.USER)
    assert unchanged and unchanged.metadata["apply"] is False

    ignored = core.check_role_change(identity(SUB), USER, Role.SUB_ADMIN)
    assert ignored and ignored.metadata["apply"] is False

    to_admin = core.check_role_change(identity(ADMIN), USER, Role.ADMIN)
    assert not to_admin and to_admin.code == DENY_HIERARCHY

    admin_target = core.check_role_change(identity(ADMIN), ADMIN, Role.USER)
    assert not admin_target and admin_target.code == DENY_PROTECTED_ACCOUNT
