"""
Post schemas.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from permipulse.core.auth.roles import Role


class PostAuthor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    role: Role


class PostResponse(BaseModel):
    """Post with its author's name and role."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    user_id: int
    created_at: datetime
    author: PostAuthor


class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(default="", max_length=20000)


class PostUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, max_length=20000)
