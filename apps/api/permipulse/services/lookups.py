"""
SQL-backed lookups consumed by the authorization core.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from permipulse.core.auth.interfaces import PostLookup, UserLookup
from permipulse.models.post import Post
from permipulse.models.user import User


def coerce_id(value: int | str) -> int | None:
    """Ids from path params or token claims may be strings."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SqlUserLookup(UserLookup):
    """Loads users with their granted permissions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int | str) -> User | None:
        user_id = coerce_id(user_id)
        if user_id is None:
            return None
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()


class SqlPostLookup(PostLookup):
    """Loads posts with their owner id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_post(self, post_id: int | str) -> Post | None:
        post_id = coerce_id(post_id)
        if post_id is None:
            return None
        stmt = select(Post).where(Post.id == post_id)
        result = await self.db.execute(stmt)
        return result.unique().scalar_one_or_none()
