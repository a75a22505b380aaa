"""
Post routes.

Any authenticated user may create and read posts. Updating or deleting
needs ownership, ADMIN, or a SUB_ADMIN grant (see ``post_mutation_guard``).
"""

from fastapi import APIRouter, Depends, status

from permipulse.core.auth.dependencies import CurrentIdentity, CurrentUser, post_mutation_guard
from permipulse.core.auth.permissions import PermissionName
from permipulse.models.post import Post
from permipulse.schemas.common import MessageResponse
from permipulse.schemas.post import PostCreate, PostResponse, PostUpdate
from permipulse.services.post import PostService
from permipulse.api.dependencies.services import get_post_service

router = APIRouter()


@router.post("/create-post", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    current_user: CurrentUser,
    post_service: PostService = Depends(get_post_service),
):
    """Create a post owned by the caller."""
    post = await post_service.create(current_user, data.title, data.content)
    return PostResponse.model_validate(post)


@router.get("", response_model=list[PostResponse])
async def list_my_posts(
    identity: CurrentIdentity,
    post_service: PostService = Depends(get_post_service),
):
    """List the caller's own posts."""
    posts = await post_service.list_for_user(identity.id)
    return [PostResponse.model_validate(p) for p in posts]


@router.get("/all", response_model=list[PostResponse])
async def list_all_posts(
    _: CurrentIdentity,
    post_service: PostService = Depends(get_post_service),
):
    """List every post, newest first."""
    posts = await post_service.list_all()
    return [PostResponse.model_validate(p) for p in posts]


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    data: PostUpdate,
    post: Post = Depends(post_mutation_guard(PermissionName.UPDATE_POST)),
    post_service: PostService = Depends(get_post_service),
):
    """Update a post (owner, ADMIN, or SUB_ADMIN with UPDATE_POST)."""
    post = await post_service.update(post, title=data.title, content=data.content)
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post: Post = Depends(post_mutation_guard(PermissionName.DELETE_POST)),
    post_service: PostService = Depends(get_post_service),
):
    """Delete a post (owner, ADMIN, or SUB_ADMIN with DELETE_POST)."""
    await post_service.delete(post)
    return MessageResponse(message="Post deleted successfully")
