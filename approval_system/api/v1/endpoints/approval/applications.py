import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.api.dependencies import get_current_user, get_permission_checker_dependency
from approval_system.auth.permissions import PermissionChecker
from approval_system.core.config import settings
from approval_system.core.database import get_async_session
from approval_system.models.auth.user import User
from approval_system.models.shared.enums import AppType
from approval_system.schemas.approval.application import (
    ApplicationDetail,
    ApplicationResponse,
    ApproverOption,
    LeaveCreate,
    ReimburseCreate,
    SubmitRequest,
)
from approval_system.schemas.common.pagination import MessageResponse, PaginatedResponse
from approval_system.schemas.dashboard.dashboard_schema import UserSummary
from approval_system.services.approval.application_service import ApplicationService
from approval_system.services.approval.approver_service import ApproverService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/approvers", response_model=List[ApproverOption])
async def list_approvers(
    dept_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Approvers the caller can pick, from their own department by default"""
    return await ApproverService(session).list_department_approvers(current_user, dept_id)


@router.post("/leave", response_model=ApplicationDetail, status_code=status.HTTP_201_CREATED)
async def create_leave(
    data: LeaveCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await ApplicationService(session).create_leave(current_user, data)


@router.post("/reimburse", response_model=ApplicationDetail, status_code=status.HTTP_201_CREATED)
async def create_reimburse(
    data: ReimburseCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await ApplicationService(session).create_reimburse(current_user, data)


@router.get("/my", response_model=PaginatedResponse[ApplicationResponse])
async def get_my_applications(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    app_type: Optional[AppType] = Query(None),
    status_filter: Optional[int] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Drafts and applications still under review"""
    return await ApplicationService(session).get_my_applications(
        current_user, page_index, page_size,
        app_type=app_type.value if app_type else None,
        status_filter=status_filter,
    )


@router.get("/history", response_model=PaginatedResponse[ApplicationResponse])
async def get_my_history(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    app_type: Optional[AppType] = Query(None),
    status_filter: Optional[int] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    approver_name: Optional[str] = Query(None),
    leave_type: Optional[int] = Query(None),
    expense_type: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Approved, rejected and withdrawn applications"""
    return await ApplicationService(session).get_my_history(
        current_user, page_index, page_size,
        app_type=app_type.value if app_type else None,
        status_filter=status_filter,
        start_date=start_date,
        end_date=end_date,
        approver_name=approver_name,
        leave_type=leave_type,
        expense_type=expense_type,
    )


@router.get("/summary", response_model=UserSummary)
async def get_my_summary(
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await ApplicationService(session).get_my_summary(current_user)


@router.get("/{app_id}", response_model=ApplicationDetail)
async def get_application_detail(
    app_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
):
    return await ApplicationService(session).get_application_detail(
        app_id, current_user, is_admin=checker.can("system", "admin")
    )


@router.post("/{app_id}/submit", response_model=ApplicationDetail)
async def submit_draft(
    app_id: int,
    data: SubmitRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await ApplicationService(session).submit_draft(app_id, current_user, data.approver_id)


@router.post("/{app_id}/withdraw", response_model=ApplicationDetail)
async def withdraw_application(
    app_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    return await ApplicationService(session).withdraw(app_id, current_user)


@router.delete("/{app_id}", response_model=MessageResponse)
async def delete_draft(
    app_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    await ApplicationService(session).delete_draft(app_id, current_user)
    return {"message": "Draft deleted"}
