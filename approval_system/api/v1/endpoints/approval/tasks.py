import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.api.dependencies import get_current_user, require_permission
from approval_system.core.config import settings
from approval_system.core.database import get_async_session
from approval_system.models.auth.user import User
from approval_system.schemas.approval.task import ApproveRequest, ApproveResult, TaskResponse
from approval_system.schemas.common.pagination import PaginatedResponse
from approval_system.schemas.dashboard.dashboard_schema import ApproverDashboard
from approval_system.services.approval.task_service import TaskService

router = APIRouter(dependencies=[Depends(require_permission("approval", "review"))])
logger = logging.getLogger(__name__)


@router.get("/todo", response_model=PaginatedResponse[TaskResponse])
async def get_todo_tasks(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await TaskService(session).get_todo_tasks(current_user, page_index, page_size)


@router.get("/done", response_model=PaginatedResponse[TaskResponse])
async def get_done_tasks(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await TaskService(session).get_done_tasks(current_user, page_index, page_size)


@router.post("/approve", response_model=ApproveResult)
async def approve_task(
    data: ApproveRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Agree (1) or reject (2) an open task"""
    return await TaskService(session).approve_task(current_user, data.task_id, data.action, data.comment)


@router.get("/dashboard", response_model=ApproverDashboard)
async def get_approver_dashboard(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await TaskService(session).get_approver_dashboard(current_user, year, month)
