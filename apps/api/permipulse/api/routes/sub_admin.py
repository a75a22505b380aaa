"""
Sub-admin routes.
"""

from fastapi import APIRouter, Depends, status

from permipulse.core.auth.dependencies import require
from permipulse.core.auth.interfaces import Identity
from permipulse.core.auth.permissions import PermissionName
from permipulse.core.auth.roles import Role
from permipulse.schemas.user import UserCreate, UserCreatedResponse, UserSummary
from permipulse.services.user import UserService
from permipulse.api.dependencies.services import get_user_service

router = APIRouter()


@router.post(
    "/create-user",
    response_model=UserCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    data: UserCreate,
    _: Identity = Depends(require(roles=[Role.SUB_ADMIN], grant=PermissionName.CREATE_USER)),
    user_service: UserService = Depends(get_user_service),
):
    """Create a regular user (SUB_ADMIN granted CREATE_USER only)."""
    user = await user_service.create(data.name, data.email, data.password)
    return UserCreatedResponse(
        message="User created by Sub-Admin",
        user=UserSummary.model_validate(user),
    )
