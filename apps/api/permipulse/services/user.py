"""
User service.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from permipulse.core.auth.roles import Role
from permipulse.core.errors import Conflict, Forbidden, NotFound, ValidationError
from permipulse.models.post import Post
from permipulse.models.user import User

from .auth import hash_password
from .grants import GrantStore
from .lookups import coerce_id

logger = structlog.get_logger()


class UserService:
    """
    User management service.

    Authorization happens before these methods are called; they only
    enforce data invariants (unique email, protected admin account).
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int | str) -> User | None:
        """Get user by ID."""
        user_id = coerce_id(user_id)
        if user_id is None:
            return None
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email."""
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_users(self) -> list[User]:
        """List all users with their permissions."""
        stmt = select(User).order_by(User.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_posts(self, user_id: int) -> int:
        stmt = select(func.count()).select_from(Post).where(Post.user_id == user_id)
        return await self.db.scalar(stmt) or 0

    async def count_admins(self) -> int:
        stmt = select(func.count()).select_from(User).where(User.role == Role.ADMIN)
        return await self.db.scalar(stmt) or 0

    async def stats(self) -> dict[str, int]:
        """Aggregate counters for the dashboards."""
        total_users = await self.db.scalar(select(func.count()).select_from(User)) or 0
        total_posts = await self.db.scalar(select(func.count()).select_from(Post)) or 0
        return {"total_users": total_users, "total_posts": total_posts}

    # ============================================================
    # CREATION
    # ============================================================

    async def create(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        """
        Create an account on behalf of an administrator.

        Raises:
            Conflict: email already registered
            ValidationError: ADMIN requested
        """
        if role is Role.ADMIN:
            raise ValidationError("ADMIN accounts cannot be created here")
        if await self.get_by_email(email) is not None:
            raise Conflict("Email already registered")

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            permissions=[],
        )
        self.db.add(user)
        await self.db.flush()

        logger.info("user.created", user_id=user.id, role=user.role.value)
        return user

    async def create_sub_admin(self, name: str, email: str, password: str) -> User:
        """Create a SUB_ADMIN with no grants."""
        return await self.create(name, email, password, role=Role.SUB_ADMIN)

    # ============================================================
    # ADMIN MUTATIONS
    # ============================================================

    async def admin_update(
        self,
        user: User,
        name: str | None = None,
        email: str | None = None,
        role: Role | None = None,
    ) -> User:
        """
        Apply an administrative update.

        ``role`` must already be cleared by the caller if the actor may not
        change it. Leaving SUB_ADMIN drops all grants.

        Raises:
            Conflict: email taken by another account
        """
        if name:
            user.name = name

        if email and email != user.email:
            other = await self.get_by_email(email)
            if other is not None and other.id != user.id:
                raise Conflict("Email already registered")
            user.email = email

        if role is not None and role is not user.role:
            if user.role is Role.SUB_ADMIN:
                await GrantStore(self.db).clear(user)
            logger.info(
                "user.role_changed",
                user_id=user.id,
                old_role=user.role.value,
                new_role=role.value,
            )
            user.role = role

        await self.db.flush()
        logger.info("user.updated", user_id=user.id)
        return user

    async def _delete(self, user: User) -> None:
        await self.db.execute(delete(Post).where(Post.user_id == user.id))
        await self.db.delete(user)
        await self.db.flush()

    async def _demote(self, user: User) -> None:
        await GrantStore(self.db).clear(user)
        user.role = Role.USER
        await self.db.flush()

    async def admin_delete(self, user: User) -> str:
        """
        Remove an account on behalf of an administrator.

        A sub-admin that authored posts is demoted to USER with grants
        cleared so the posts keep their owner. Any other account is
        deleted together with its posts.

        Returns:
            "demoted" or "deleted"

        Raises:
            Forbidden: target is an ADMIN
        """
        if user.role is Role.ADMIN:
            raise Forbidden("Cannot delete admin users", code="protected_account")

        if user.role is Role.SUB_ADMIN and await self.count_posts(user.id) > 0:
            await self._demote(user)
            logger.info("user.sub_admin_demoted", user_id=user.id)
            return "demoted"

        role = user.role
        await self._delete(user)
        logger.info("user.deleted", user_id=user.id, role=role.value)
        return "deleted"

    async def remove_sub_admin(self, user_id: int | str) -> str:
        """
        Remove a sub-admin.

        A sub-admin that authored posts is demoted to USER with grants
        cleared so the posts keep their owner; otherwise the account is
        deleted.

        Returns:
            "demoted" or "deleted"

        Raises:
            NotFound: no such user
            ValidationError: user is not a sub-admin
        """
        user = await self.get_by_id(user_id)
        if user is None:
            raise NotFound("Sub-admin not found")
        if user.role is not Role.SUB_ADMIN:
            raise ValidationError("User is not a sub-admin")

        if await self.count_posts(user.id) > 0:
            await self._demote(user)
            logger.info("user.sub_admin_demoted", user_id=user.id)
            return "demoted"

        await self._delete(user)
        logger.info("user.sub_admin_deleted", user_id=user.id)
        return "deleted"

    # ============================================================
    # SELF SERVICE
    # ============================================================

    async def update_profile(
        self,
        user: User,
        name: str | None = None,
        password: str | None = None,
    ) -> User:
        """Update own name and/or password."""
        if name:
            user.name = name
        if password:
            user.password_hash = hash_password(password)

        await self.db.flush()
        logger.info("user.profile_updated", user_id=user.id)
        return user

    async def delete_self(self, user: User) -> None:
        """
        Delete own account.

        Raises:
            Conflict: the account is the only ADMIN
        """
        if user.role is Role.ADMIN and await self.count_admins() <= 1:
            raise Conflict("Cannot delete the only administrator account.")
        await self._delete(user)
        logger.info("user.self_deleted", user_id=user.id)
