import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.api.dependencies import get_current_user
from approval_system.core.config import settings
from approval_system.core.database import get_async_session
from approval_system.core.exceptions import NotFoundError
from approval_system.models.auth.user import User
from approval_system.schemas.auth.user import UserCreate, UserResponse, UserStatusUpdate, UserUpdate
from approval_system.schemas.common.pagination import MessageResponse, PaginatedResponse
from approval_system.services.auth.user_service import UserService, user_to_dict
from approval_system.utils.validators.auth_validators import require_auth_validation

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=PaginatedResponse[UserResponse])
async def get_users(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    username: Optional[str] = Query(None),
    real_name: Optional[str] = Query(None),
    dept_id: Optional[int] = Query(None),
    status_filter: Optional[int] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
):
    """Get users list with pagination (admin only)"""
    return await UserService(session).get_users(
        page_index=page_index,
        page_size=page_size,
        username=username,
        real_name=real_name,
        dept_id=dept_id,
        status_filter=status_filter,
    )


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_create: UserCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Create new user (admin only)"""
    require_auth_validation(
        email=user_create.email,
        password=user_create.password,
        username=user_create.username,
        phone=user_create.phone,
    )
    user = await UserService(session).create_user(user_create, created_by=current_user.id)
    return user_to_dict(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, session: AsyncSession = Depends(get_async_session)):
    user = await UserService(session).get_user(user_id)
    if not user or user.is_deleted:
        raise NotFoundError("User not found")
    return user_to_dict(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_update: UserUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    user = await UserService(session).update_user(user_id, user_update, updated_by=current_user.id)
    return user_to_dict(user)


@router.put("/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: int,
    data: UserStatusUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Enable or disable an account"""
    user = await UserService(session).update_status(user_id, data.status, updated_by=current_user.id)
    return user_to_dict(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await UserService(session).delete_user(user_id, deleted_by=current_user.id)
    return {"message": "User deleted successfully"}
