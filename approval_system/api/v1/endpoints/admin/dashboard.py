import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.core.database import get_async_session
from approval_system.schemas.dashboard.dashboard_schema import AdminDashboard
from approval_system.services.dashboard.dashboard_service import DashboardService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=AdminDashboard)
async def get_admin_dashboard(session: AsyncSession = Depends(get_async_session)):
    return await DashboardService(session).get_admin_dashboard()
