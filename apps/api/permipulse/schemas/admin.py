"""
Administration schemas.
"""

from typing import Literal
from pydantic import BaseModel

from permipulse.core.auth.permissions import PermissionName


class StatsResponse(BaseModel):
    total_users: int
    total_posts: int


class RemoveSubAdminRequest(BaseModel):
    sub_admin_id: int


class RemoveSubAdminResponse(BaseModel):
    message: str
    action: Literal["demoted", "deleted"]


class TogglePermissionRequest(BaseModel):
    """Grant (``is_enabled=True``) or revoke a permission."""
    sub_admin_id: int
    permission_name: PermissionName
    is_enabled: bool


class PermissionsResponse(BaseModel):
    message: str | None = None
    user_id: int
    permissions: list[str]
