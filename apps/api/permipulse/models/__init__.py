"""
Database models.
"""

from .base import Base, CreatedAtMixin, TimestampMixin, utc_now
from .permission import Permission, user_permissions
from .user import User
from .post import Post

__all__ = [
    # Base
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "utc_now",
    # Models
    "Permission",
    "user_permissions",
    "User",
    "Post",
]
