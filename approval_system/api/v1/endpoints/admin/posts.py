import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.api.dependencies import get_current_user
from approval_system.core.config import settings
from approval_system.core.database import get_async_session
from approval_system.models.auth.user import User
from approval_system.schemas.auth.post import PostAssignRequest, PostCreate, PostResponse, PostUpdate
from approval_system.schemas.auth.user import UserResponse
from approval_system.schemas.common.pagination import MessageResponse, PaginatedResponse
from approval_system.services.auth.post_service import PostService
from approval_system.services.auth.user_service import UserService, user_to_dict

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=PaginatedResponse[PostResponse])
async def get_posts(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    post_code: Optional[str] = Query(None),
    post_name: Optional[str] = Query(None),
    status_filter: Optional[int] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
):
    return await PostService(session).get_posts(
        page_index=page_index,
        page_size=page_size,
        post_code=post_code,
        post_name=post_name,
        status_filter=status_filter,
    )


@router.get("/all", response_model=List[PostResponse])
async def get_all_posts(session: AsyncSession = Depends(get_async_session)):
    return await PostService(session).get_all_posts()


@router.post("/assign", response_model=UserResponse)
async def assign_post(
    data: PostAssignRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Move a user onto a post"""
    user = await UserService(session).assign_post(data.user_id, data.post_id, assigned_by=current_user.id)
    return user_to_dict(user)


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await PostService(session).create_post(data, created_by=current_user.id)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, session: AsyncSession = Depends(get_async_session)):
    return await PostService(session).get_post_detail(post_id)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    data: PostUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await PostService(session).update_post(post_id, data, updated_by=current_user.id)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await PostService(session).delete_post(post_id, deleted_by=current_user.id)
    return {"message": "Post deleted successfully"}
