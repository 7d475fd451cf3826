import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.api.dependencies import get_current_user
from approval_system.core.config import settings
from approval_system.core.database import get_async_session
from approval_system.models.auth.user import User
from approval_system.schemas.common.pagination import MessageResponse, PaginatedResponse
from approval_system.schemas.organization.department import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentTree,
    DepartmentUpdate,
)
from approval_system.services.organization.department_service import DepartmentService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=PaginatedResponse[DepartmentResponse])
async def get_departments(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    dept_name: Optional[str] = Query(None),
    parent_id: Optional[int] = Query(None),
    status_filter: Optional[int] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
):
    return await DepartmentService(session).get_departments(
        page_index=page_index,
        page_size=page_size,
        dept_name=dept_name,
        status_filter=status_filter,
        parent_id=parent_id,
    )


@router.get("/all", response_model=List[DepartmentResponse])
async def get_all_departments(session: AsyncSession = Depends(get_async_session)):
    return await DepartmentService(session).get_all_departments()


@router.get("/tree", response_model=List[DepartmentTree])
async def get_department_tree(session: AsyncSession = Depends(get_async_session)):
    return await DepartmentService(session).get_department_tree()


@router.post("/", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
async def create_department(
    data: DepartmentCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await DepartmentService(session).create_department(data, created_by=current_user.id)


@router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(department_id: int, session: AsyncSession = Depends(get_async_session)):
    return await DepartmentService(session).get_department_detail(department_id)


@router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: int,
    data: DepartmentUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await DepartmentService(session).update_department(department_id, data, updated_by=current_user.id)


@router.delete("/{department_id}", response_model=MessageResponse)
async def delete_department(
    department_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a department without children or members"""
    await DepartmentService(session).delete_department(department_id, deleted_by=current_user.id)
    return {"message": "Department deleted successfully"}
