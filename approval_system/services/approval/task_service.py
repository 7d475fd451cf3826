import calendar
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select, extract
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from approval_system.core.exceptions import BusinessRuleError, ForbiddenError, NotFoundError
from approval_system.models.approval.application import Application
from approval_system.models.approval.approval_history import ApprovalHistory
from approval_system.models.approval.approval_task import ApprovalTask
from approval_system.models.auth.user import User
from approval_system.models.shared.enums import APP_TYPE_LABELS, AppType
from approval_system.services.approval.application_service import application_options
from approval_system.utils.pagination import paginate
from approval_system.workflow.lifecycle import (
    ACTIVE,
    ApprovalAction,
    LifecycleEvent,
    TaskStatus,
    is_terminal,
    next_status,
    status_label,
)
from approval_system.workflow.routing import RouteResolver

logger = logging.getLogger(__name__)


def task_to_dict(task: ApprovalTask) -> Dict[str, Any]:
    app = task.application
    return {
        "id": task.id,
        "app_id": task.app_id,
        "app_no": app.app_no if app else None,
        "app_type": app.app_type if app else None,
        "title": app.title if app else None,
        "applicant_id": app.applicant_id if app else None,
        "applicant_name": app.applicant.real_name if app and app.applicant else None,
        "app_status": app.status if app else None,
        "node_name": task.node_name,
        "assignee_id": task.assignee_id,
        "assignee_name": task.assignee_name,
        "status": task.status,
        "action": task.action,
        "comment": task.comment,
        "created_at": task.created_at,
        "finish_time": task.finish_time,
        "days": app.leave_detail.days if app and app.leave_detail else None,
        "amount": app.reimburse_detail.amount if app and app.reimburse_detail else None,
    }


class TaskService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.route_resolver = RouteResolver(session)

    def _task_query(self, user: User, task_status: int):
        return (
            select(ApprovalTask)
            .options(selectinload(ApprovalTask.application).options(*application_options()))
            .where(ApprovalTask.assignee_id == user.id, ApprovalTask.status == task_status)
        )

    async def get_todo_tasks(self, user: User, page_index: int = 1, page_size: int = 10) -> Dict[str, Any]:
        query = self._task_query(user, TaskStatus.TODO).order_by(ApprovalTask.created_at.desc(), ApprovalTask.id.desc())
        page = await paginate(self.session, query, page_index, page_size)
        page["data"] = [task_to_dict(t) for t in page["data"]]
        return page

    async def get_done_tasks(self, user: User, page_index: int = 1, page_size: int = 10) -> Dict[str, Any]:
        query = self._task_query(user, TaskStatus.DONE).order_by(ApprovalTask.finish_time.desc(), ApprovalTask.id.desc())
        page = await paginate(self.session, query, page_index, page_size)
        page["data"] = [task_to_dict(t) for t in page["data"]]
        return page

    async def approve_task(self, user: User, task_id: int, action: int, comment: Optional[str] = None) -> Dict[str, Any]:
        """
        Resolve an open task.

        Agree opens the next node of the route (application moves to InReview)
        or, at the last node, approves the application. Reject ends it. The
        task is closed and a history row is appended either way.
        """
        try:
            action = ApprovalAction(action)

            task = await self.session.scalar(
                select(ApprovalTask).where(ApprovalTask.id == task_id).with_for_update()
            )
            if task is None:
                raise NotFoundError("任务不存在")
            if task.assignee_id != user.id:
                raise ForbiddenError("无权处理该任务")
            if task.status != TaskStatus.TODO:
                raise BusinessRuleError("任务已处理")

            application = await self.session.scalar(
                select(Application)
                .where(Application.id == task.app_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            if application is None:
                raise NotFoundError("申请不存在")
            if application.status not in ACTIVE:
                raise BusinessRuleError(f"申请当前状态为{status_label(application.status)}，无法审批")

            now = datetime.now()
            task.status = TaskStatus.DONE
            task.action = int(action)
            task.comment = comment
            task.finish_time = now
            task.updated_by = user.id

            self.session.add(ApprovalHistory(
                app_id=application.id,
                task_id=task.id,
                node_name=task.node_name,
                approver_id=user.id,
                approver_name=user.real_name,
                action=int(action),
                comment=comment,
                approve_time=now,
            ))

            next_node = None
            if action is ApprovalAction.REJECT:
                application.status = next_status(application.status, LifecycleEvent.REJECT)
            else:
                earlier_approvers = (await self.session.execute(
                    select(ApprovalHistory.approver_id).where(ApprovalHistory.app_id == application.id)
                )).scalars().all()
                exclude_ids = {application.applicant_id, user.id, *earlier_approvers}

                index, next_node = await self.route_resolver.open_next_node(
                    application, (application.node_index or 0) + 1, exclude_ids
                )
                if next_node is None:
                    application.status = next_status(application.status, LifecycleEvent.APPROVE_FINAL)
                else:
                    application.status = next_status(application.status, LifecycleEvent.APPROVE)
                    application.node_index = index
                    application.current_node = next_node["name"]
                    self.session.add(ApprovalTask(
                        app_id=application.id,
                        node_name=next_node["name"],
                        assignee_id=next_node["assignee_id"],
                        assignee_name=next_node.get("assignee_name"),
                        status=TaskStatus.TODO,
                    ))

            if is_terminal(application.status):
                application.finish_time = now
            application.updated_by = user.id

            await self.session.commit()
            logger.info(
                f"Task {task_id} of application {application.app_no} resolved by {user.username}: "
                f"{action.name.lower()} -> {status_label(application.status)}"
            )
            return {
                "app_id": application.id,
                "status": application.status,
                "status_label": status_label(application.status),
                "current_node": application.current_node,
                "next_assignee_name": next_node.get("assignee_name") if next_node else None,
            }

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving task {task_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error processing approval task")

    async def get_approver_dashboard(self, user: User, year: Optional[int] = None, month: Optional[int] = None) -> Dict[str, Any]:
        today = date.today()
        year = year or today.year
        month = month or today.month
        if not 1 <= month <= 12:
            raise BusinessRuleError("月份必须在1-12之间")

        done = [ApprovalTask.assignee_id == user.id, ApprovalTask.status == TaskStatus.DONE]

        action_rows = (await self.session.execute(
            select(ApprovalTask.action, func.count(ApprovalTask.id)).where(*done).group_by(ApprovalTask.action)
        )).all()
        action_counts = {a: c for a, c in action_rows}

        pending = await self.session.scalar(
            select(func.count(ApprovalTask.id)).where(
                ApprovalTask.assignee_id == user.id, ApprovalTask.status == TaskStatus.TODO
            )
        )

        type_rows = (await self.session.execute(
            select(Application.app_type, func.count(ApprovalTask.id))
            .join(Application, Application.id == ApprovalTask.app_id)
            .where(*done)
            .group_by(Application.app_type)
        )).all()
        type_counts = {t: c for t, c in type_rows}
        type_stats = [
            {"app_type": t.value, "type_label": APP_TYPE_LABELS[t.value], "count": type_counts.get(t.value, 0)}
            for t in AppType
        ]

        day_rows = (await self.session.execute(
            select(extract("day", ApprovalTask.finish_time), func.count(ApprovalTask.id))
            .where(
                *done,
                extract("year", ApprovalTask.finish_time) == year,
                extract("month", ApprovalTask.finish_time) == month,
            )
            .group_by(extract("day", ApprovalTask.finish_time))
        )).all()
        per_day = {int(d): c for d, c in day_rows}
        days_in_month = calendar.monthrange(year, month)[1]
        daily_stats = [
            {"date": f"{year:04d}-{month:02d}-{day:02d}", "count": per_day.get(day, 0)}
            for day in range(1, days_in_month + 1)
        ]

        month_rows = (await self.session.execute(
            select(extract("month", ApprovalTask.finish_time), func.count(ApprovalTask.id))
            .where(*done, extract("year", ApprovalTask.finish_time) == year)
            .group_by(extract("month", ApprovalTask.finish_time))
        )).all()
        per_month = {int(m): c for m, c in month_rows}
        monthly_stats = [
            {"month": f"{year:04d}-{m:02d}", "count": per_month.get(m, 0)}
            for m in range(1, 13)
        ]

        return {
            "real_name": user.real_name,
            "dept_name": user.department.dept_name if user.department else None,
            "post_name": user.post.post_name if user.post else None,
            "year": year,
            "month": month,
            "total_count": sum(action_counts.values()),
            "approved_count": action_counts.get(int(ApprovalAction.AGREE), 0),
            "rejected_count": action_counts.get(int(ApprovalAction.REJECT), 0),
            "pending_count": pending or 0,
            "type_stats": type_stats,
            "daily_stats": daily_stats,
            "monthly_stats": monthly_stats,
        }
