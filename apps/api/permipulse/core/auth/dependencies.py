"""
Request guards as FastAPI dependencies.

Every protected route runs up to three stages, in this order:

1. Authentication - ``get_identity`` (401 Unauthenticated)
2. Static role - ``require(roles=...)`` (403 Forbidden)
3. Dynamic permission / ownership - ``require(grant=...)``,
   ``post_mutation_guard``, ``user_admin_guard``, ``user_deletion_guard``
   (403 Forbidden, 404 when the target does not exist)

Guards only read; they never mutate state.

Usage:
    from permipulse.core.auth import CurrentIdentity, AdminIdentity, require

    @router.get("/me")
    async def handler(identity: CurrentIdentity):
        ...

    @router.post("/create-user")
    async def handler(identity: Identity = Depends(require(roles=[Role.SUB_ADMIN], grant=PermissionName.CREATE_USER))):
        ...

    @router.put("/{post_id}")
    async def handler(post: Post = Depends(post_mutation_guard(PermissionName.UPDATE_POST))):
        ...
"""

from typing import Annotated, Callable, Iterable

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from permipulse.api.dependencies.database import get_db
from permipulse.core.errors import Forbidden, NotFound, Unauthenticated
from permipulse.models.post import Post
from permipulse.models.user import User
from permipulse.services.lookups import SqlPostLookup, SqlUserLookup

from .engine import DENY_NOT_FOUND, AuthorizationCore
from .interfaces import Identity, PolicyDecision
from .permissions import PermissionName
from .roles import ADMIN_ROLES, Role


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def enforce(decision: PolicyDecision) -> None:
    """Turn a denied decision into the matching error."""
    if decision.allowed:
        return
    if decision.code == DENY_NOT_FOUND:
        raise NotFound(decision.reason or "Not found")
    raise Forbidden(decision.reason or "Permission denied", code=decision.code)


# ============================================================
# CORE + AUTHENTICATION
# ============================================================

async def get_authorization_core(
    db: AsyncSession = Depends(get_db),
) -> AuthorizationCore:
    """Authorization core bound to the request's session."""
    return AuthorizationCore(users=SqlUserLookup(db))


async def get_identity(
    token: str | None = Depends(oauth2_scheme),
    core: AuthorizationCore = Depends(get_authorization_core),
) -> Identity:
    """
    Authentication guard.

    Raises:
        Unauthenticated: missing, malformed, expired or forged token
    """
    identity = core.is_authenticated(token)
    structlog.contextvars.bind_contextvars(
        actor_id=identity.id,
        actor_role=identity.role.value,
    )
    return identity


async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Load the actor's own account.

    Raises:
        Unauthenticated: the token outlived the account
    """
    user = await SqlUserLookup(db).get_user(identity.id)
    if user is None:
        raise Unauthenticated("User not found")
    return user


# ============================================================
# STATIC ROLE + GRANT
# ============================================================

def require(
    roles: Iterable[Role] | None = None,
    grant: PermissionName | None = None,
) -> Callable:
    """
    Guard factory: optional static role check, then optional grant check.

    ADMIN passes any grant check (but not a role check that excludes it).
    """
    allowed = frozenset(roles) if roles is not None else None

    async def guard(
        identity: Identity = Depends(get_identity),
        core: AuthorizationCore = Depends(get_authorization_core),
    ) -> Identity:
        if allowed is not None:
            enforce(core.check_static_role(identity, allowed))
        if grant is not None:
            enforce(await core.check_grant(identity, grant))
        return identity

    return guard


def require_roles(*roles: Role) -> Callable:
    """Static role guard."""
    return require(roles=roles)


def require_grant(permission: PermissionName) -> Callable:
    """Dynamic permission guard (ADMIN bypasses)."""
    return require(grant=permission)


# ============================================================
# RESOURCE GUARDS
# ============================================================

def post_mutation_guard(permission: PermissionName) -> Callable:
    """
    Guard for ``/{post_id}`` routes: ADMIN, owner, or SUB_ADMIN with ``permission``.

    Returns the loaded post.
    """

    async def guard(
        post_id: int,
        identity: Identity = Depends(get_identity),
        core: AuthorizationCore = Depends(get_authorization_core),
        db: AsyncSession = Depends(get_db),
    ) -> Post:
        post = await SqlPostLookup(db).get_post(post_id)
        enforce(await core.check_post_mutation(identity, post, permission))
        return post

    return guard


def user_admin_guard(permission: PermissionName) -> Callable:
    """
    Guard for ``/users/{user_id}`` admin routes.

    ADMIN always; SUB_ADMIN with ``permission`` on USER targets only.
    Returns the loaded target user.
    """

    async def guard(
        user_id: int,
        identity: Identity = Depends(get_identity),
        core: AuthorizationCore = Depends(get_authorization_core),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        target = await SqlUserLookup(db).get_user(user_id)
        enforce(await core.check_user_admin(identity, target, permission))
        return target

    return guard


def user_deletion_guard() -> Callable:
    """``user_admin_guard(DELETE_USER)`` that also refuses ADMIN targets for everyone."""

    async def guard(
        user_id: int,
        identity: Identity = Depends(get_identity),
        core: AuthorizationCore = Depends(get_authorization_core),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        target = await SqlUserLookup(db).get_user(user_id)
        enforce(await core.check_user_deletion(identity, target))
        return target

    return guard


# ============================================================
# TYPE ALIASES FOR CLEAN SIGNATURES
# ============================================================

# Authenticated actor (any role)
CurrentIdentity = Annotated[Identity, Depends(get_identity)]

# Authenticated actor's own account
CurrentUser = Annotated[User, Depends(get_current_user)]

# ADMIN only
AdminIdentity = Annotated[Identity, Depends(require_roles(Role.ADMIN))]

# ADMIN or SUB_ADMIN
StaffIdentity = Annotated[Identity, Depends(require_roles(*ADMIN_ROLES))]
