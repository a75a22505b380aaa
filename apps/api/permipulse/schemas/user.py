"""
User schemas.
"""

from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from permipulse.core.auth.roles import Role
from permipulse.core.config import settings


class UserResponse(BaseModel):
    """User response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role
    permissions: list[str] = Field(default_factory=list, validation_alias="permission_names")
    created_at: datetime


class UserSummary(BaseModel):
    """Minimal user info returned after creation."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role


class UserCreate(BaseModel):
    """Account created by an administrator."""
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=settings.auth.password_min_length, max_length=128)


class AdminUserUpdate(BaseModel):
    """Administrative update. ``role`` is ignored unless the actor is ADMIN."""
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    role: Role | None = None


class ProfileUpdate(BaseModel):
    """Self-service profile update."""
    name: str | None = Field(None, min_length=1, max_length=255)
    password: str | None = Field(None, min_length=settings.auth.password_min_length, max_length=128)


class UserCreatedResponse(BaseModel):
    message: str
    user: UserSummary


class UserUpdatedResponse(BaseModel):
    message: str
    user: UserResponse


class UserDeletedResponse(BaseModel):
    """``action`` is "demoted" when a sub-admin with posts was kept as USER."""
    message: str
    action: Literal["demoted", "deleted"]
    deleted_user: UserSummary
