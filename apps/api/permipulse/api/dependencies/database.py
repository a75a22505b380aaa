"""
Database dependencies.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from permipulse.core.errors import AppError
from permipulse.models.database import async_session_factory

logger = structlog.get_logger()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request.

    Committed when the handler returns; rolled back on any error,
    including expected ones (403, 409, ...) so a half-applied mutation
    never persists.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            if not isinstance(e, AppError):
                logger.warning("db.rollback", error=type(e).__name__)
            raise
