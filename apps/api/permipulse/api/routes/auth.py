"""
Authentication routes.
"""

from fastapi import APIRouter, Depends, status

from permipulse.schemas.auth import LoginRequest, SignupRequest, SignupResponse, TokenResponse
from permipulse.schemas.user import UserResponse, UserSummary
from permipulse.services.auth import AuthService
from permipulse.api.dependencies.services import get_auth_service

router = APIRouter()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Register a new account.

    The first ADMIN may register here; once one exists, ADMIN signups
    are rejected with 409.
    """
    user = await auth_service.signup(
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
    )
    return SignupResponse(
        message="User registered successfully",
        user=UserSummary.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Login with email and password."""
    result = await auth_service.login(email=data.email, password=data.password)
    return TokenResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        user=UserResponse.model_validate(result.user),
    )
