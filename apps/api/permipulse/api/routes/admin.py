"""
Administration routes.

Static role checks use ``AdminIdentity`` / ``StaffIdentity``; everything a
SUB_ADMIN may do with a grant goes through the dynamic guards.
"""

from fastapi import APIRouter, Depends, status

from permipulse.core.auth.dependencies import (
    AdminIdentity,
    CurrentIdentity,
    StaffIdentity,
    enforce,
    get_authorization_core,
    require_grant,
    user_admin_guard,
    user_deletion_guard,
)
from permipulse.core.auth.engine import AuthorizationCore
from permipulse.core.auth.interfaces import Identity
from permipulse.core.auth.permissions import PermissionName
from permipulse.models.user import User
from permipulse.schemas.admin import (
    PermissionsResponse,
    RemoveSubAdminRequest,
    RemoveSubAdminResponse,
    StatsResponse,
    TogglePermissionRequest,
)
from permipulse.schemas.user import (
    AdminUserUpdate,
    UserCreate,
    UserCreatedResponse,
    UserDeletedResponse,
    UserResponse,
    UserSummary,
    UserUpdatedResponse,
)
from permipulse.services.grants import GrantStore
from permipulse.services.user import UserService
from permipulse.api.dependencies.services import get_grant_store, get_user_service

router = APIRouter()


# ============================================================
# READ
# ============================================================

@router.get("/users", response_model=list[UserResponse])
async def list_users(
    _: StaffIdentity,
    user_service: UserService = Depends(get_user_service),
):
    """List all users with their grants (ADMIN, SUB_ADMIN)."""
    users = await user_service.list_users()
    return [UserResponse.model_validate(u) for u in users]


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    _: StaffIdentity,
    user_service: UserService = Depends(get_user_service),
):
    """User and post counters (ADMIN, SUB_ADMIN)."""
    return StatsResponse(**await user_service.stats())


# ============================================================
# ACCOUNT CREATION
# ============================================================

@router.post(
    "/create-sub-admin",
    response_model=UserCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_sub_admin(
    data: UserCreate,
    _: AdminIdentity,
    user_service: UserService = Depends(get_user_service),
):
    """Create a sub-admin with no grants (ADMIN only)."""
    user = await user_service.create_sub_admin(data.name, data.email, data.password)
    return UserCreatedResponse(
        message="Sub-Admin created by Admin",
        user=UserSummary.model_validate(user),
    )


@router.post(
    "/create-user",
    response_model=UserCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    data: UserCreate,
    identity: Identity = Depends(require_grant(PermissionName.CREATE_USER)),
    user_service: UserService = Depends(get_user_service),
):
    """Create a regular user (ADMIN, or SUB_ADMIN granted CREATE_USER)."""
    user = await user_service.create(data.name, data.email, data.password)
    return UserCreatedResponse(
        message=f"User created by {'Admin' if identity.is_admin else 'Sub-Admin'}",
        user=UserSummary.model_validate(user),
    )


# ============================================================
# USER MUTATIONS
# ============================================================

@router.put("/users/{user_id}", response_model=UserUpdatedResponse)
async def update_user(
    data: AdminUserUpdate,
    identity: CurrentIdentity,
    target: User = Depends(user_admin_guard(PermissionName.UPDATE_USER)),
    core: AuthorizationCore = Depends(get_authorization_core),
    user_service: UserService = Depends(get_user_service),
):
    """
    Update a user's name, email or role.

    Sub-admins (with UPDATE_USER) may only update regular users and
    cannot change roles; a role in their request is ignored.
    """
    decision = core.check_role_change(identity, target, data.role)
    enforce(decision)

    user = await user_service.admin_update(
        target,
        name=data.name,
        email=data.email,
        role=data.role if decision.metadata.get("apply") else None,
    )
    return UserUpdatedResponse(
        message="User updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.delete("/users/{user_id}", response_model=UserDeletedResponse)
async def delete_user(
    target: User = Depends(user_deletion_guard()),
    user_service: UserService = Depends(get_user_service),
):
    """
    Delete a user and their posts.

    Admin accounts are never deletable. A sub-admin with authored posts
    is demoted to USER instead, so its posts keep their owner.
    """
    summary = UserSummary.model_validate(target)
    action = await user_service.admin_delete(target)
    if action == "demoted":
        return UserDeletedResponse(
            message="Sub-admin demoted to user",
            action=action,
            deleted_user=UserSummary.model_validate(target),
        )
    return UserDeletedResponse(
        message="User deleted successfully",
        action=action,
        deleted_user=summary,
    )


# ============================================================
# SUB-ADMIN MANAGEMENT (ADMIN ONLY)
# ============================================================

@router.delete("/remove-sub-admin", response_model=RemoveSubAdminResponse)
async def remove_sub_admin(
    data: RemoveSubAdminRequest,
    _: AdminIdentity,
    user_service: UserService = Depends(get_user_service),
):
    """Delete a sub-admin, or demote it to USER if it authored posts."""
    action = await user_service.remove_sub_admin(data.sub_admin_id)
    message = "Sub-admin demoted to user" if action == "demoted" else "Sub-admin removed"
    return RemoveSubAdminResponse(message=message, action=action)


@router.patch("/allow-subadmin-user-creation", response_model=PermissionsResponse)
async def toggle_sub_admin_permission(
    data: TogglePermissionRequest,
    _: AdminIdentity,
    grants: GrantStore = Depends(get_grant_store),
):
    """Grant or revoke one named permission for a sub-admin."""
    current = await grants.set_enabled(data.sub_admin_id, data.permission_name, data.is_enabled)
    verb = "granted to" if data.is_enabled else "revoked from"
    return PermissionsResponse(
        message=f"Permission [{data.permission_name.value}] {verb} Sub-Admin ID {data.sub_admin_id}",
        user_id=data.sub_admin_id,
        permissions=current.sorted_names(),
    )


@router.get("/sub-admins/{user_id}/permissions", response_model=PermissionsResponse)
async def list_sub_admin_permissions(
    user_id: int,
    _: AdminIdentity,
    grants: GrantStore = Depends(get_grant_store),
):
    """List the permissions currently granted to a user."""
    current = await grants.list_grants(user_id)
    return PermissionsResponse(user_id=user_id, permissions=current.sorted_names())
