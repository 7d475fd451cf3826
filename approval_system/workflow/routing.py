"""
Approval routes.

A route is planned when an application is submitted and stored on it as a
list of nodes. The first node is always the department approver picked by the
applicant. Long leaves and large reimbursements get a second, escalation node
whose assignee is found only when the node opens: an approver of the parent
department, else a system administrator. Neither may be the applicant or
someone who already approved the application. An escalation node nobody can
take is skipped.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.auth.permissions import APPROVAL_REVIEW, SYSTEM_ADMIN
from approval_system.core.config import settings
from approval_system.models.approval.application import Application
from approval_system.models.auth.user import User
from approval_system.models.organization.department import Department
from approval_system.models.shared.enums import AppType
from approval_system.services.approval.approver_service import ApproverService

logger = logging.getLogger(__name__)

NODE_DEPT = "dept"
NODE_ESCALATION = "escalation"

DEFAULT_DEPT_NODE_NAME = "部门审批"
MANAGEMENT_NODE_NAME = "管理层审批"


def needs_escalation(app_type: str, days: Optional[Decimal] = None, amount: Optional[Decimal] = None) -> bool:
    if app_type == AppType.LEAVE.value:
        return days is not None and Decimal(days) > settings.LEAVE_ESCALATION_DAYS
    if app_type == AppType.REIMBURSE.value:
        return amount is not None and Decimal(amount) > settings.REIMBURSE_ESCALATION_AMOUNT
    return False


def dept_node_name(dept: Optional[Department]) -> str:
    if dept is not None and dept.dept_name:
        return f"{dept.dept_name}审批"
    return DEFAULT_DEPT_NODE_NAME


def plan_route(
    app_type: str,
    dept: Optional[Department],
    approver: User,
    days: Optional[Decimal] = None,
    amount: Optional[Decimal] = None,
) -> List[Dict[str, Any]]:
    route = [{
        "node": NODE_DEPT,
        "name": dept_node_name(dept),
        "assignee_id": approver.id,
        "assignee_name": approver.real_name,
    }]
    if needs_escalation(app_type, days, amount):
        route.append({
            "node": NODE_ESCALATION,
            "name": None,
            "assignee_id": None,
            "assignee_name": None,
        })
    return route


class RouteResolver:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.approver_service = ApproverService(session)

    async def _resolve_escalation(self, application: Application, exclude_ids: Iterable[int]) -> Optional[Dict[str, Any]]:
        exclude_ids = list(exclude_ids)
        dept = await self.session.get(Department, application.dept_id) if application.dept_id else None
        parent = None
        if dept is not None and dept.parent_id:
            parent = await self.session.get(Department, dept.parent_id)
            if parent is not None and parent.is_deleted:
                parent = None

        if parent is not None:
            candidates = await self.approver_service.find_permission_holders(
                APPROVAL_REVIEW, parent.id, exclude_ids
            )
            if candidates:
                return {
                    "name": f"{parent.dept_name}审批",
                    "assignee_id": candidates[0].id,
                    "assignee_name": candidates[0].real_name,
                }

        admins = await self.approver_service.find_permission_holders(SYSTEM_ADMIN, None, exclude_ids)
        if admins:
            return {
                "name": MANAGEMENT_NODE_NAME,
                "assignee_id": admins[0].id,
                "assignee_name": admins[0].real_name,
            }
        return None

    async def open_next_node(
        self,
        application: Application,
        start_index: int,
        exclude_ids: Iterable[int],
    ) -> Tuple[Optional[int], Optional[Dict[str, Any]]]:
        """
        Find the first node from ``start_index`` that can be assigned.

        Returns ``(index, node)`` with the assignee filled in, or ``(None, None)``
        when the route is exhausted. The stored route is updated with the
        resolved assignee.
        """
        route = list(application.route or [])
        exclude_ids = list(exclude_ids)

        for index in range(start_index, len(route)):
            node = dict(route[index])
            if node.get("assignee_id") is None:
                resolved = await self._resolve_escalation(application, exclude_ids)
                if resolved is None:
                    logger.warning(
                        f"No eligible approver for node '{node.get('node')}' of application "
                        f"{application.app_no}, skipping it"
                    )
                    continue
                node.update(resolved)
                route[index] = node
                application.route = route
            return index, node

        return None, None
