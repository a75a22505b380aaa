"""
Authorization module - roles, grants and the decision core.

Layers:
=======

Role hierarchy (static)
-----------------------
    from permipulse.core.auth import Role, can_act_admin_on

    can_act_admin_on(Role.SUB_ADMIN, Role.USER)   # True

Grants (dynamic)
----------------
    from permipulse.core.auth import PermissionName

    await GrantStore(db).grant(sub_admin.id, PermissionName.UPDATE_POST)

Decisions
---------
    core = AuthorizationCore(users=SqlUserLookup(db))
    decision = await core.check_post_mutation(identity, post, PermissionName.UPDATE_POST)
    if not decision:
        ...  # decision.reason, decision.code

Request guards live in ``permipulse.core.auth.dependencies`` and are
imported from there directly, since they depend on the persistence layer.
"""

from .engine import AuthorizationCore, has_static_role, is_owner
from .interfaces import Identity, PolicyDecision, PostLookup, UserLookup
from .permissions import PermissionName, PermissionSet, UnknownPermission, parse_permission
from .roles import ADMIN_ROLES, Role, UnhandledRole, can_act_admin_on, can_assign_role, parse_role
from .tokens import create_access_token, decode_access_token, identity_from_token

__all__ = [
    # Roles
    "Role",
    "ADMIN_ROLES",
    "UnhandledRole",
    "can_act_admin_on",
    "can_assign_role",
    "parse_role",
    # Permissions
    "PermissionName",
    "PermissionSet",
    "UnknownPermission",
    "parse_permission",
    # Core
    "AuthorizationCore",
    "Identity",
    "PolicyDecision",
    "UserLookup",
    "PostLookup",
    "has_static_role",
    "is_owner",
    # Tokens
    "create_access_token",
    "decode_access_token",
    "identity_from_token",
]
