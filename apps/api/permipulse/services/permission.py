"""
Permission registry.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from permipulse.core.auth.permissions import (
    PermissionName,
    UnknownPermission,
    parse_permission,
)
from permipulse.core.errors import ValidationError
from permipulse.models.permission import Permission

logger = structlog.get_logger()


class PermissionRegistry:
    """
    Canonical set of named permissions.

    Usage:
        registry = PermissionRegistry(db)
        perm = await registry.ensure_permission("CREATE_USER")
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, name: PermissionName) -> Permission | None:
        """Get permission row by name."""
        stmt = select(Permission).where(Permission.name == name.value)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure_permission(self, name: PermissionName | str) -> Permission:
        """
        Return the permission row for ``name``, creating it on first use.

        Idempotent: concurrent callers converge on the same row through
        the unique constraint on ``permissions.name``.

        Raises:
            ValidationError: ``name`` is not a known permission
        """
        try:
            permission = parse_permission(name)
        except UnknownPermission as e:
            raise ValidationError(str(e)) from e

        existing = await self.get(permission)
        if existing is not None:
            return existing

        insert = self._insert_ignore()
        if insert is not None:
            stmt = insert.values(name=permission.value).on_conflict_do_nothing(
                index_elements=["name"],
            )
            await self.db.execute(stmt)
        else:
            self.db.add(Permission(name=permission.value))
            await self.db.flush()

        created = await self.get(permission)
        logger.info("permission.registered", permission=permission.value)
        return created

    async def list_permissions(self) -> list[Permission]:
        """List all registered permissions."""
        result = await self.db.execute(select(Permission).order_by(Permission.name))
        return list(result.scalars().all())

    def _insert_ignore(self):
        """Dialect insert supporting ON CONFLICT DO NOTHING, if any."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            return None
        return insert(Permission)
