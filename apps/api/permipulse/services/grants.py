"""
Grant store - which named permissions a SUB_ADMIN holds.

Usage:
    grants = GrantStore(db)
    await grants.grant(sub_admin_id, PermissionName.CREATE_USER)
    await grants.revoke(sub_admin_id, PermissionName.CREATE_USER)
    names = await grants.list_grants(sub_admin_id)
"""

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from permipulse.core.auth.permissions import PermissionName, PermissionSet
from permipulse.core.auth.roles import Role
from permipulse.core.errors import NotFound, ValidationError
from permipulse.models.user import User

from .lookups import SqlUserLookup
from .permission import PermissionRegistry

logger = structlog.get_logger()


class GrantStore:
    """
    Many-to-many association between SUB_ADMIN users and permissions.

    Every call is flushed immediately. Grants are only accepted for
    SUB_ADMIN accounts; revoking works on any account so stale rows can
    always be cleaned up.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.registry = PermissionRegistry(db)
        self.users = SqlUserLookup(db)

    async def _get_user(self, user_id: int | str) -> User:
        user = await self.users.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def grant(self, user_id: int | str, permission: PermissionName | str) -> PermissionSet:
        """
        Give ``permission`` to a SUB_ADMIN. Granting twice is a no-op.

        Raises:
            NotFound: user does not exist
            ValidationError: user is not a SUB_ADMIN, or unknown permission
        """
        user = await self._get_user(user_id)
        if user.role is not Role.SUB_ADMIN:
            raise ValidationError("Permissions can only be granted to sub-admins")

        perm = await self.registry.ensure_permission(permission)
        if perm not in user.permissions:
            user.permissions.append(perm)
            await self.db.flush()
            logger.info("grant.added", user_id=user.id, permission=perm.name)

        return user.permission_set

    async def revoke(self, user_id: int | str, permission: PermissionName | str) -> PermissionSet:
        """
        Take ``permission`` away. Revoking a missing grant is not an error.

        Raises:
            NotFound: user does not exist
            ValidationError: unknown permission
        """
        user = await self._get_user(user_id)
        perm = await self.registry.ensure_permission(permission)

        if perm in user.permissions:
            user.permissions.remove(perm)
            await self.db.flush()
            logger.info("grant.removed", user_id=user.id, permission=perm.name)

        return user.permission_set

    async def set_enabled(
        self,
        user_id: int | str,
        permission: PermissionName | str,
        enabled: bool,
    ) -> PermissionSet:
        """Grant or revoke depending on ``enabled``."""
        if enabled:
            return await self.grant(user_id, permission)
        return await self.revoke(user_id, permission)

    async def list_grants(self, user_id: int | str) -> PermissionSet:
        """
        Get the permissions held by a user.

        Raises:
            NotFound: user does not exist
        """
        user = await self._get_user(user_id)
        return user.permission_set

    async def clear(self, user: User) -> None:
        """Drop every grant of ``user`` (demotion)."""
        if user.permissions:
            user.permissions.clear()
            await self.db.flush()
            logger.info("grant.cleared", user_id=user.id)
