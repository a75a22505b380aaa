"""
Authentication schemas.
"""

from pydantic import BaseModel, EmailStr, Field

from permipulse.core.auth.roles import Role
from permipulse.core.config import settings

from .user import UserResponse, UserSummary


class SignupRequest(BaseModel):
    """Signup request. ``role`` defaults to USER."""
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=settings.auth.password_min_length, max_length=128)
    role: Role = Role.USER


class SignupResponse(BaseModel):
    message: str
    user: UserSummary


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Access token with the authenticated user."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
