"""
Authorization decision core.

Every check takes the actor as an explicit ``Identity`` and returns a
``PolicyDecision``; nothing here raises for an expected denial. Guards in
``dependencies.py`` turn denials into ``Forbidden``.

Decision order for every dynamic check:
1. ADMIN bypass (``_admin_bypass``, the only place it is decided)
2. Ownership, where the action targets a post
3. Role-specific rule (SUB_ADMIN grant + hierarchy, USER denied)

Any lookup that comes back empty denies. The core does not hold state
between calls; grants are re-read on every check, so a revocation takes
effect on the next request. A grant revoked between the check and the
mutation of the *same* request is not re-checked.

Usage:
    core = AuthorizationCore(users=SqlUserLookup(db))
    decision = await core.check_post_mutation(identity, post, PermissionName.UPDATE_POST)
    if not decision:
        ...
"""

from typing import Any, Iterable

import structlog

from .interfaces import (
    DENY_HIERARCHY,
    DENY_MISSING_PERMISSION,
    DENY_NOT_OWNER,
    DENY_ROLE_REQUIRED,
    DENY_UNKNOWN_ACTOR,
    Identity,
    PolicyDecision,
    PostRecord,
    UserLookup,
    UserRecord,
)
from .permissions import PermissionName
from .roles import Role, UnhandledRole, can_act_admin_on, can_assign_role
from .tokens import identity_from_token

logger = structlog.get_logger()

DENY_NOT_FOUND = "not_found"
DENY_PROTECTED_ACCOUNT = "protected_account"


def is_owner(identity: Identity, owner_id: Any) -> bool:
    """
    Check if the actor owns a resource.

    Ids may arrive as ``int`` from storage and ``str`` from the transport
    layer; both are compared as integers.
    """
    if owner_id is None:
        return False
    try:
        return int(identity.id) == int(owner_id)
    except (TypeError, ValueError):
        return str(identity.id) == str(owner_id)


def has_static_role(identity: Identity, allowed_roles: Iterable[Role]) -> bool:
    """Check if the actor's role is one of ``allowed_roles``."""
    return identity.role in frozenset(allowed_roles)


class AuthorizationCore:
    """
    Combines role hierarchy, grants and ownership into allow/deny.

    Args:
        users: lookup used to resolve the actor's current grants
    """

    def __init__(self, users: UserLookup):
        self.users = users

    # ============================================================
    # AUTHENTICATION
    # ============================================================

    def is_authenticated(self, token: str | None) -> Identity:
        """
        Validate a bearer token.

        Raises:
            Unauthenticated: missing, malformed, expired or forged token
        """
        return identity_from_token(token)

    # ============================================================
    # PREDICATES
    # ============================================================

    def has_static_role(self, identity: Identity, allowed_roles: Iterable[Role]) -> bool:
        return has_static_role(identity, allowed_roles)

    def is_owner(self, identity: Identity, owner_id: Any) -> bool:
        return is_owner(identity, owner_id)

    async def has_grant(self, identity: Identity, permission: PermissionName) -> bool:
        return (await self.check_grant(identity, permission)).allowed

    async def can_mutate_post(
        self,
        identity: Identity,
        post: PostRecord | None,
        required_grant: PermissionName,
    ) -> bool:
        return (await self.check_post_mutation(identity, post, required_grant)).allowed

    async def can_mutate_user_admin(
        self,
        identity: Identity,
        target: UserRecord | None,
        required_grant: PermissionName,
    ) -> bool:
        return (await self.check_user_admin(identity, target, required_grant)).allowed

    def can_change_role(self, identity: Identity) -> bool:
        """Role fields in update requests are honoured for ADMIN actors only."""
        return identity.role is Role.ADMIN

    # ============================================================
    # DECISIONS
    # ============================================================

    def _admin_bypass(self, identity: Identity) -> PolicyDecision | None:
        if identity.role is Role.ADMIN:
            return PolicyDecision.allow("Admin access")
        return None

    def check_static_role(
        self,
        identity: Identity,
        allowed_roles: Iterable[Role],
    ) -> PolicyDecision:
        allowed_roles = frozenset(allowed_roles)
        if has_static_role(identity, allowed_roles):
            decision = PolicyDecision.allow(f"Role {identity.role} allowed")
        else:
            names = ", ".join(sorted(r.value for r in allowed_roles))
            decision = PolicyDecision.deny(
                f"Higher role required: one of [{names}]",
                code=DENY_ROLE_REQUIRED,
            )
        return self._trace("role", identity, decision)

    async def check_grant(
        self,
        identity: Identity,
        permission: PermissionName,
    ) -> PolicyDecision:
        """
        Check a named permission.

        ADMIN always passes without consulting grants. USER never passes.
        SUB_ADMIN passes only if its stored record is still a SUB_ADMIN
        holding the grant.
        """
        decision = self._admin_bypass(identity)
        if decision is None:
            decision = await self._grant_decision(identity, permission)
        decision.metadata["permission"] = permission.value
        return self._trace("grant", identity, decision)

    async def _grant_decision(
        self,
        identity: Identity,
        permission: PermissionName,
    ) -> PolicyDecision:
        missing = PolicyDecision.deny(
            f"Missing required permission [{permission.value}]",
            code=DENY_MISSING_PERMISSION,
        )

        if identity.role is Role.USER:
            return missing
        if identity.role is not Role.SUB_ADMIN:
            raise UnhandledRole(identity.role)

        record = await self.users.get_user(identity.id)
        if record is None:
            return PolicyDecision.deny("Actor account not found", code=DENY_UNKNOWN_ACTOR)
        if record.role is not Role.SUB_ADMIN:
            return missing
        if permission in record.permission_set:
            return PolicyDecision.allow(f"Has permission: {permission.value}")
        return missing

    async def check_post_mutation(
        self,
        identity: Identity,
        post: PostRecord | None,
        required_grant: PermissionName,
    ) -> PolicyDecision:
        """ADMIN, the post's owner, or a SUB_ADMIN holding ``required_grant``."""
        if post is None:
            decision = PolicyDecision.deny("Post not found", code=DENY_NOT_FOUND)
            return self._trace("post", identity, decision)

        decision = self._admin_bypass(identity)
        if decision is None and is_owner(identity, post.user_id):
            decision = PolicyDecision.allow("Resource owner")
        if decision is None:
            if identity.role is Role.SUB_ADMIN:
                decision = await self._grant_decision(identity, required_grant)
            elif identity.role is Role.USER:
                decision = PolicyDecision.deny(
                    "Not authorized to modify this post",
                    code=DENY_NOT_OWNER,
                )
            else:
                raise UnhandledRole(identity.role)

        decision.metadata.update(post_id=post.id, permission=required_grant.value)
        return self._trace("post", identity, decision)

    async def check_user_admin(
        self,
        identity: Identity,
        target: UserRecord | None,
        required_grant: PermissionName,
    ) -> PolicyDecision:
        """
        Administrative mutation of another account.

        ADMIN: always. SUB_ADMIN: needs ``required_grant`` and a USER target.
        USER: never.
        """
        if target is None:
            decision = PolicyDecision.deny("User not found", code=DENY_NOT_FOUND)
            return self._trace("user_admin", identity, decision)

        decision = self._admin_bypass(identity)
        if decision is None:
            if identity.role is Role.SUB_ADMIN:
                decision = await self._grant_decision(identity, required_grant)
                if decision.allowed and not can_act_admin_on(identity.role, target.role):
                    decision = PolicyDecision.deny(
                        "Sub-admins can only manage regular users",
                        code=DENY_HIERARCHY,
                    )
            elif identity.role is Role.USER:
                decision = PolicyDecision.deny(
                    "Higher role required",
                    code=DENY_ROLE_REQUIRED,
                )
            else:
                raise UnhandledRole(identity.role)

        decision.metadata.update(
            target_id=target.id,
            target_role=target.role.value,
            permission=required_grant.value,
        )
        return self._trace("user_admin", identity, decision)

    async def check_user_deletion(
        self,
        identity: Identity,
        target: UserRecord | None,
    ) -> PolicyDecision:
        """Like ``check_user_admin`` with DELETE_USER, but ADMIN accounts are never deletable."""
        if target is not None and target.role is Role.ADMIN:
            decision = PolicyDecision.deny(
                "Cannot delete admin users",
                code=DENY_PROTECTED_ACCOUNT,
            )
            decision.metadata["target_id"] = target.id
            return self._trace("user_delete", identity, decision)
        return await self.check_user_admin(identity, target, PermissionName.DELETE_USER)

    def check_role_change(
        self,
        identity: Identity,
        target: UserRecord,
        new_role: Role | None,
    ) -> PolicyDecision:
        """
        Decide what happens to a role field in an update request.

        ``metadata["apply"]`` tells the caller whether to write the role.
        Non-ADMIN actors are allowed through with ``apply=False``: the field
        is ignored, not an error.
        """
        if new_role is None or new_role is target.role:
            decision = PolicyDecision.allow("No role change")
            decision.metadata["apply"] = False
        elif not self.can_change_role(identity):
            decision = PolicyDecision.allow("Role change ignored for non-admin actor")
            decision.metadata["apply"] = False
        elif target.role is Role.ADMIN:
            decision = PolicyDecision.deny(
                "The admin account's role cannot be changed",
                code=DENY_PROTECTED_ACCOUNT,
            )
        elif not can_assign_role(identity.role, new_role):
            decision = PolicyDecision.deny(
                f"Role {new_role.value} cannot be assigned",
                code=DENY_HIERARCHY,
            )
        else:
            decision = PolicyDecision.allow(f"Role change to {new_role.value}")
            decision.metadata["apply"] = True
        return self._trace("role_change", identity, decision)

    # ============================================================
    # TRACING
    # ============================================================

    def _trace(
        self,
        check: str,
        identity: Identity,
        decision: PolicyDecision,
    ) -> PolicyDecision:
        log = logger.debug if decision.allowed else logger.info
        log(
            "authz.decision",
            check=check,
            actor_id=identity.id,
            actor_role=identity.role.value,
            allowed=decision.allowed,
            reason=decision.reason,
            code=decision.code,
            **decision.metadata,
        )
        return decision
