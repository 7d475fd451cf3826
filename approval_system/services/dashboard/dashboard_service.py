import logging
from typing import Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from approval_system.models.approval.application import Application
from approval_system.models.approval.approval_task import ApprovalTask
from approval_system.models.shared.enums import AppType
from approval_system.schemas.dashboard.dashboard_schema import AdminDashboard
from approval_system.services.auth.post_service import PostService
from approval_system.services.auth.user_service import UserService
from approval_system.services.organization.department_service import DepartmentService
from approval_system.workflow.lifecycle import ApplicationStatus, TaskStatus

logger = logging.getLogger(__name__)

class DashboardService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_admin_dashboard(self) -> AdminDashboard:
        """Counts shown on the administrator landing page"""
        try:
            user_service = UserService(self.session)
            application_metrics = await self._get_application_metrics()

            return AdminDashboard(
                user_count=await user_service.count_users(),
                active_user_count=await user_service.count_users(active_only=True),
                department_count=await DepartmentService(self.session).count_departments(),
                post_count=await PostService(self.session).count_posts(),
                open_task_count=await self._count_open_tasks(),
                **application_metrics,
            )

        except Exception as e:
            logger.error(f"Error getting dashboard data: {str(e)}")
            raise

    async def _get_application_metrics(self) -> Dict[str, Any]:
        status_rows = (await self.session.execute(
            select(Application.status, func.count(Application.id)).group_by(Application.status)
        )).all()
        status_counts = {s.name.lower(): 0 for s in ApplicationStatus}
        for app_status, count in status_rows:
            status_counts[ApplicationStatus(app_status).name.lower()] = count

        type_rows = (await self.session.execute(
            select(Application.app_type, func.count(Application.id)).group_by(Application.app_type)
        )).all()
        type_counts = {t.value: 0 for t in AppType}
        for app_type, count in type_rows:
            type_counts[app_type] = count

        return {
            "application_count": sum(status_counts.values()),
            "status_counts": status_counts,
            "type_counts": type_counts,
        }

    async def _count_open_tasks(self) -> int:
        return (await self.session.scalar(
            select(func.count(ApprovalTask.id)).where(ApprovalTask.status == TaskStatus.TODO)
        )) or 0
