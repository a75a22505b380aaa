"""
Service dependencies.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from permipulse.services.auth import AuthService
from permipulse.services.grants import GrantStore
from permipulse.services.post import PostService
from permipulse.services.user import UserService


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Get auth service instance (for signup/login)."""
    return AuthService(db)


async def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Get user service instance."""
    return UserService(db)


async def get_post_service(db: AsyncSession = Depends(get_db)) -> PostService:
    """Get post service instance."""
    return PostService(db)


async def get_grant_store(db: AsyncSession = Depends(get_db)) -> GrantStore:
    """Get grant store instance."""
    return GrantStore(db)
