import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.core.config import settings
from approval_system.core.database import get_async_session
from approval_system.models.shared.enums import AppType
from approval_system.schemas.approval.application import ApplicationResponse
from approval_system.schemas.common.pagination import PaginatedResponse
from approval_system.services.approval.application_service import ApplicationService
from approval_system.utils.excel_exporter import APPLICATION_EXPORT_FIELDS, SUM_FIELDS, DataExportService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=PaginatedResponse[ApplicationResponse])
async def get_all_applications(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    app_type: Optional[AppType] = Query(None),
    status_filter: Optional[int] = Query(None, alias="status"),
    app_no: Optional[str] = Query(None),
    applicant_name: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
):
    """Every application in the system, newest first"""
    return await ApplicationService(session).get_all_applications(
        page_index=page_index,
        page_size=page_size,
        app_type=app_type.value if app_type else None,
        status_filter=status_filter,
        app_no=app_no,
        applicant_name=applicant_name,
    )


@router.get("/export")
async def export_applications(
    app_type: Optional[AppType] = Query(None),
    status_filter: Optional[int] = Query(None, alias="status"),
    app_no: Optional[str] = Query(None),
    applicant_name: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
):
    """Download the filtered applications as an xlsx workbook"""
    rows = await ApplicationService(session).get_export_rows(
        app_type=app_type.value if app_type else None,
        status_filter=status_filter,
        app_no=app_no,
        applicant_name=applicant_name,
    )
    filename = f"applications_{datetime.now().strftime('%Y%m%d%H%M%S')}"
    return DataExportService().export_to_excel(
        rows,
        APPLICATION_EXPORT_FIELDS,
        filename,
        sheet_name="Applications",
        sum_fields=SUM_FIELDS,
    )
