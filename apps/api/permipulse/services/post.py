"""
Post service.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from permipulse.models.post import Post
from permipulse.models.user import User

logger = structlog.get_logger()


class PostService:
    """Post CRUD. Callers authorize before update/delete."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, author: User, title: str, content: str) -> Post:
        """Create a post owned by ``author``."""
        post = Post(title=title, content=content, user_id=author.id, author=author)
        self.db.add(post)
        await self.db.flush()

        logger.info("post.created", post_id=post.id, user_id=author.id)
        return post

    async def list_for_user(self, user_id: int) -> list[Post]:
        """List posts owned by a user."""
        stmt = select(Post).where(Post.user_id == user_id).order_by(Post.id)
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def list_all(self) -> list[Post]:
        """List every post, newest first."""
        stmt = select(Post).order_by(Post.id.desc())
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def update(
        self,
        post: Post,
        title: str | None = None,
        content: str | None = None,
    ) -> Post:
        """Update title and/or content. The owner never changes."""
        if title is not None:
            post.title = title
        if content is not None:
            post.content = content

        await self.db.flush()
        logger.info("post.updated", post_id=post.id)
        return post

    async def delete(self, post: Post) -> None:
        """Delete a post."""
        await self.db.delete(post)
        await self.db.flush()
        logger.info("post.deleted", post_id=post.id)
