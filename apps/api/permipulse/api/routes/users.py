"""
Self-service profile routes.
"""

from fastapi import APIRouter, Depends

from permipulse.core.auth.dependencies import CurrentUser
from permipulse.schemas.common import MessageResponse
from permipulse.schemas.user import ProfileUpdate, UserResponse, UserUpdatedResponse
from permipulse.services.user import UserService
from permipulse.api.dependencies.services import get_user_service

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser):
    """Get current user profile."""
    return UserResponse.model_validate(current_user)


@router.put("/me", response_model=UserUpdatedResponse)
async def update_me(
    data: ProfileUpdate,
    current_user: CurrentUser,
    user_service: UserService = Depends(get_user_service),
):
    """Update own name and/or password."""
    user = await user_service.update_profile(
        current_user,
        name=data.name,
        password=data.password,
    )
    return UserUpdatedResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.delete("/me", response_model=MessageResponse)
async def delete_me(
    current_user: CurrentUser,
    user_service: UserService = Depends(get_user_service),
):
    """Delete own account. The only ADMIN cannot delete itself."""
    await user_service.delete_self(current_user)
    return MessageResponse(message="Account deleted successfully")
