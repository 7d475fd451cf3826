import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from approval_system.core.config import settings
from approval_system.core.exceptions import (
    BusinessRuleError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from approval_system.models.approval.application import Application
from approval_system.models.approval.approval_history import ApprovalHistory
from approval_system.models.approval.approval_task import ApprovalTask
from approval_system.models.approval.leave_application import LeaveApplication
from approval_system.models.approval.reimburse_application import ReimburseApplication
from approval_system.models.auth.user import User
from approval_system.models.organization.department import Department
from approval_system.models.shared.enums import (
    APP_TYPE_LABELS,
    EXPENSE_TYPE_LABELS,
    LEAVE_TYPE_LABELS,
    AppType,
)
from approval_system.schemas.approval.application import LeaveCreate, ReimburseCreate
from approval_system.services.approval.approver_service import ApproverService
from approval_system.utils.pagination import page_result, paginate
from approval_system.utils.search import contains
from approval_system.workflow.calculations import (
    approval_rate,
    build_title,
    compute_leave_days,
    quantize_amount,
)
from approval_system.workflow.lifecycle import (
    FINISHED,
    UNFINISHED,
    ApplicationStatus,
    ApprovalAction,
    LifecycleEvent,
    TaskStatus,
    next_status,
    status_label,
)
from approval_system.workflow.routing import RouteResolver, plan_route

logger = logging.getLogger(__name__)


def history_to_dict(history: ApprovalHistory) -> Dict[str, Any]:
    try:
        action_label = ApprovalAction(history.action).label
    except ValueError:
        action_label = None
    return {
        "id": history.id,
        "task_id": history.task_id,
        "node_name": history.node_name,
        "approver_id": history.approver_id,
        "approver_name": history.approver_name,
        "action": history.action,
        "action_label": action_label,
        "comment": history.comment,
        "approve_time": history.approve_time,
    }


def application_to_dict(app: Application, latest: Optional[ApprovalHistory] = None) -> Dict[str, Any]:
    """List row for an application loaded with applicant, department and detail"""
    leave = app.leave_detail
    reimburse = app.reimburse_detail
    return {
        "id": app.id,
        "app_no": app.app_no,
        "app_type": app.app_type,
        "app_type_label": APP_TYPE_LABELS.get(app.app_type),
        "title": app.title,
        "applicant_id": app.applicant_id,
        "applicant_name": app.applicant.real_name if app.applicant else None,
        "dept_id": app.dept_id,
        "dept_name": app.department.dept_name if app.department else None,
        "status": app.status,
        "status_label": status_label(app.status),
        "current_node": app.current_node,
        "submit_time": app.submit_time,
        "finish_time": app.finish_time,
        "created_at": app.created_at,
        "leave_type": leave.leave_type if leave else None,
        "days": leave.days if leave else None,
        "expense_type": reimburse.expense_type if reimburse else None,
        "amount": reimburse.amount if reimburse else None,
        "latest_action": latest.action if latest else None,
        "latest_comment": latest.comment if latest else None,
        "latest_approver_name": latest.approver_name if latest else None,
    }


def application_options():
    return (
        selectinload(Application.applicant),
        selectinload(Application.department),
        selectinload(Application.leave_detail),
        selectinload(Application.reimburse_detail),
    )


class ApplicationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.approver_service = ApproverService(session)
        self.route_resolver = RouteResolver(session)

    # region ========== Loading helpers ==========

    async def get_application(self, app_id: int, for_update: bool = False, full: bool = False) -> Application:
        query = select(Application).options(*application_options()).where(Application.id == app_id)
        if full:
            query = query.options(selectinload(Application.tasks), selectinload(Application.histories))
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query.execution_options(populate_existing=True))
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundError("申请不存在")
        return application

    async def latest_histories(self, app_ids: List[int]) -> Dict[int, ApprovalHistory]:
        if not app_ids:
            return {}
        latest_ids = (
            select(func.max(ApprovalHistory.id))
            .where(ApprovalHistory.app_id.in_(app_ids))
            .group_by(ApprovalHistory.app_id)
        )
        result = await self.session.execute(
            select(ApprovalHistory).where(ApprovalHistory.id.in_(latest_ids))
        )
        return {h.app_id: h for h in result.scalars().all()}

    async def _rows(self, applications: List[Application]) -> List[Dict[str, Any]]:
        latest = await self.latest_histories([a.id for a in applications])
        return [application_to_dict(a, latest.get(a.id)) for a in applications]

    async def _generate_app_no(self) -> str:
        """AP + yyyyMMdd + 6 digit daily serial, one past the highest issued today"""
        prefix = f"{settings.APP_NO_PREFIX}{datetime.now().strftime('%Y%m%d')}"
        last_no = await self.session.scalar(
            select(func.max(Application.app_no)).where(Application.app_no.like(f"{prefix}%"))
        )
        serial = int(last_no[-6:]) if last_no else 0
        return f"{prefix}{serial + 1:06d}"

    # endregion

    # region ========== Submission ==========

    async def _open_task(self, application: Application, node: Dict[str, Any]) -> ApprovalTask:
        application.current_node = node["name"]
        task = ApprovalTask(
            app_id=application.id,
            node_name=node["name"],
            assignee_id=node["assignee_id"],
            assignee_name=node.get("assignee_name"),
            status=TaskStatus.TODO,
        )
        self.session.add(task)
        return task

    async def _start_route(self, application: Application, applicant: User, approver: User,
                           days: Optional[Decimal] = None, amount: Optional[Decimal] = None):
        """Plan the route and open the first task; application becomes Pending"""
        dept = await self.session.get(Department, applicant.dept_id) if applicant.dept_id else None
        application.status = next_status(application.status, LifecycleEvent.SUBMIT)
        application.dept_id = applicant.dept_id
        application.submit_time = datetime.now()
        application.route = plan_route(application.app_type, dept, approver, days=days, amount=amount)
        application.node_index = 0
        await self.session.flush()

        index, node = await self.route_resolver.open_next_node(application, 0, exclude_ids=[applicant.id])
        application.node_index = index
        await self._open_task(application, node)

    async def _prepare_submission(self, applicant: User, approver_id: Optional[int]) -> User:
        await self.approver_service.ensure_can_submit(applicant)
        return await self.approver_service.validate_approver(applicant, approver_id)

    async def create_leave(self, user: User, data: LeaveCreate) -> Dict[str, Any]:
        try:
            days = compute_leave_days(data.start_time, data.end_time)
            if days <= 0:
                raise ValidationError("请假结束时间必须晚于开始时间")

            approver = await self._prepare_submission(user, data.approver_id) if data.submit else None

            application = Application(
                app_no=await self._generate_app_no(),
                app_type=AppType.LEAVE.value,
                title=build_title(AppType.LEAVE.value, data.reason),
                applicant_id=user.id,
                dept_id=user.dept_id,
                status=ApplicationStatus.DRAFT,
                node_index=0,
                created_by=user.id,
            )
            application.leave_detail = LeaveApplication(
                leave_type=int(data.leave_type),
                start_time=data.start_time,
                end_time=data.end_time,
                days=days,
                reason=data.reason,
                attachment=data.attachment,
            )
            self.session.add(application)
            await self.session.flush()

            if approver is not None:
                await self._start_route(application, user, approver, days=days)

            await self.session.commit()
            logger.info(
                f"Leave application {application.app_no} created by {user.username} "
                f"({days} days, status {status_label(application.status)})"
            )
            return await self.get_application_detail(application.id, user)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating leave application: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error creating leave application")

    async def create_reimburse(self, user: User, data: ReimburseCreate) -> Dict[str, Any]:
        try:
            amount = quantize_amount(data.amount)

            approver = await self._prepare_submission(user, data.approver_id) if data.submit else None

            application = Application(
                app_no=await self._generate_app_no(),
                app_type=AppType.REIMBURSE.value,
                title=build_title(AppType.REIMBURSE.value, data.reason),
                applicant_id=user.id,
                dept_id=user.dept_id,
                status=ApplicationStatus.DRAFT,
                node_index=0,
                created_by=user.id,
            )
            application.reimburse_detail = ReimburseApplication(
                expense_type=int(data.expense_type),
                amount=amount,
                reason=data.reason,
                invoice_attachment=data.invoice_attachment,
                occur_date=data.occur_date,
            )
            self.session.add(application)
            await self.session.flush()

            if approver is not None:
                await self._start_route(application, user, approver, amount=amount)

            await self.session.commit()
            logger.info(
                f"Reimbursement application {application.app_no} created by {user.username} "
                f"({amount}, status {status_label(application.status)})"
            )
            return await self.get_application_detail(application.id, user)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating reimbursement application: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error creating reimbursement application")

    async def submit_draft(self, app_id: int, user: User, approver_id: int) -> Dict[str, Any]:
        try:
            application = await self.get_application(app_id, for_update=True)
            if application.applicant_id != user.id:
                raise ForbiddenError("只能提交自己的申请")
            if application.status != ApplicationStatus.DRAFT:
                raise InvalidTransitionError("只能提交草稿状态的申请")

            approver = await self._prepare_submission(user, approver_id)

            days = application.leave_detail.days if application.leave_detail else None
            amount = application.reimburse_detail.amount if application.reimburse_detail else None
            await self._start_route(application, user, approver, days=days, amount=amount)
            application.updated_by = user.id

            await self.session.commit()
            logger.info(f"Draft {application.app_no} submitted by {user.username}")
            return await self.get_application_detail(app_id, user)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error submitting draft {app_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error submitting application")

    async def delete_draft(self, app_id: int, user: User) -> bool:
        try:
            application = await self.get_application(app_id, full=True)
            if application.applicant_id != user.id:
                raise ForbiddenError("只能删除自己的申请")
            if application.status != ApplicationStatus.DRAFT:
                raise BusinessRuleError("只能删除草稿状态的申请")

            await self.session.delete(application)
            await self.session.commit()
            logger.info(f"Draft {application.app_no} deleted by {user.username}")
            return True

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting draft {app_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error deleting application")

    async def withdraw(self, app_id: int, user: User) -> Dict[str, Any]:
        """Pending -> Withdrawn, only before anyone has acted on it"""
        try:
            application = await self.get_application(app_id, for_update=True)
            if application.applicant_id != user.id:
                raise ForbiddenError("只能撤回自己的申请")
            if application.status != ApplicationStatus.PENDING:
                raise InvalidTransitionError("只能撤回待审批状态的申请")

            history_count = await self.session.scalar(
                select(func.count(ApprovalHistory.id)).where(ApprovalHistory.app_id == app_id)
            )
            if history_count:
                raise InvalidTransitionError("申请已进入审批流程，无法撤回")

            application.status = next_status(application.status, LifecycleEvent.WITHDRAW)
            application.finish_time = datetime.now()
            application.updated_by = user.id

            await self.session.execute(
                delete(ApprovalTask).where(
                    ApprovalTask.app_id == app_id,
                    ApprovalTask.status == TaskStatus.TODO,
                )
            )
            await self.session.commit()
            logger.info(f"Application {application.app_no} withdrawn by {user.username}")
            return await self.get_application_detail(app_id, user)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error withdrawing application {app_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error withdrawing application")

    # endregion

    # region ========== Queries ==========

    async def get_my_applications(
        self,
        user: User,
        page_index: int = 1,
        page_size: int = 10,
        app_type: Optional[str] = None,
        status_filter: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Unfinished applications (draft, pending, in review) of the caller"""
        if status_filter is not None and status_filter not in UNFINISHED:
            return page_result(1, page_size, 0, [])

        statuses = [status_filter] if status_filter is not None else [int(s) for s in UNFINISHED]
        query = (
            select(Application)
            .options(*application_options())
            .where(Application.applicant_id == user.id, Application.status.in_(statuses))
        )
        if app_type:
            query = query.where(Application.app_type == app_type)
        query = query.order_by(Application.created_at.desc(), Application.id.desc())

        page = await paginate(self.session, query, page_index, page_size)
        page["data"] = await self._rows(page["data"])
        return page

    async def get_my_history(
        self,
        user: User,
        page_index: int = 1,
        page_size: int = 10,
        app_type: Optional[str] = None,
        status_filter: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        approver_name: Optional[str] = None,
        leave_type: Optional[int] = None,
        expense_type: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Finished applications (approved, rejected, withdrawn) of the caller"""
        if status_filter is not None and status_filter not in FINISHED:
            return page_result(1, page_size, 0, [])

        statuses = [status_filter] if status_filter is not None else [int(s) for s in FINISHED]
        query = (
            select(Application)
            .options(*application_options())
            .where(Application.applicant_id == user.id, Application.status.in_(statuses))
        )
        if app_type:
            query = query.where(Application.app_type == app_type)
        if start_date:
            query = query.where(Application.submit_time >= datetime.combine(start_date, datetime.min.time()))
        if end_date:
            query = query.where(
                Application.submit_time < datetime.combine(end_date + timedelta(days=1), datetime.min.time())
            )
        if leave_type is not None:
            query = query.where(
                Application.id.in_(select(LeaveApplication.app_id).where(LeaveApplication.leave_type == leave_type))
            )
        if expense_type is not None:
            query = query.where(
                Application.id.in_(
                    select(ReimburseApplication.app_id).where(ReimburseApplication.expense_type == expense_type)
                )
            )
        if approver_name:
            latest_ids = select(func.max(ApprovalHistory.id)).group_by(ApprovalHistory.app_id)
            query = query.where(
                Application.id.in_(
                    select(ApprovalHistory.app_id).where(
                        ApprovalHistory.id.in_(latest_ids),
                        contains(ApprovalHistory.approver_name, approver_name),
                    )
                )
            )
        query = query.order_by(Application.finish_time.desc(), Application.id.desc())

        page = await paginate(self.session, query, page_index, page_size)
        page["data"] = await self._rows(page["data"])
        return page

    async def can_view(self, application: Application, user: User, is_admin: bool = False) -> bool:
        if is_admin or application.applicant_id == user.id:
            return True
        assigned = await self.session.scalar(
            select(ApprovalTask.id).where(
                ApprovalTask.app_id == application.id,
                ApprovalTask.assignee_id == user.id,
            ).limit(1)
        )
        return assigned is not None

    async def get_application_detail(self, app_id: int, user: User, is_admin: bool = False) -> Dict[str, Any]:
        application = await self.get_application(app_id)
        if not await self.can_view(application, user, is_admin):
            raise ForbiddenError("无权查看该申请")

        histories = (await self.session.execute(
            select(ApprovalHistory)
            .where(ApprovalHistory.app_id == app_id)
            .order_by(ApprovalHistory.approve_time.desc(), ApprovalHistory.id.desc())
        )).scalars().all()

        open_task = await self.session.scalar(
            select(ApprovalTask).where(
                ApprovalTask.app_id == app_id,
                ApprovalTask.status == TaskStatus.TODO,
            ).limit(1)
        )

        detail = application_to_dict(application, histories[0] if histories else None)
        leave = application.leave_detail
        reimburse = application.reimburse_detail
        detail.update({
            "leave_detail": {
                "leave_type": leave.leave_type,
                "leave_type_label": LEAVE_TYPE_LABELS.get(leave.leave_type),
                "start_time": leave.start_time,
                "end_time": leave.end_time,
                "days": leave.days,
                "reason": leave.reason,
                "attachment": leave.attachment,
            } if leave else None,
            "reimburse_detail": {
                "expense_type": reimburse.expense_type,
                "expense_type_label": EXPENSE_TYPE_LABELS.get(reimburse.expense_type),
                "amount": reimburse.amount,
                "reason": reimburse.reason,
                "invoice_attachment": reimburse.invoice_attachment,
                "occur_date": reimburse.occur_date,
            } if reimburse else None,
            "histories": [history_to_dict(h) for h in histories],
            "current_assignee_name": open_task.assignee_name if open_task else None,
        })
        return detail

    def _admin_query(
        self,
        app_type: Optional[str] = None,
        status_filter: Optional[int] = None,
        app_no: Optional[str] = None,
        applicant_name: Optional[str] = None,
    ):
        query = select(Application).options(*application_options())
        if app_type:
            query = query.where(Application.app_type == app_type)
        if status_filter is not None:
            query = query.where(Application.status == status_filter)
        if app_no:
            query = query.where(contains(Application.app_no, app_no))
        if applicant_name:
            query = query.where(
                Application.applicant_id.in_(
                    select(User.id).where(contains(User.real_name, applicant_name))
                )
            )
        return query.order_by(Application.created_at.desc(), Application.id.desc())

    async def get_all_applications(
        self,
        page_index: int = 1,
        page_size: int = 10,
        app_type: Optional[str] = None,
        status_filter: Optional[int] = None,
        app_no: Optional[str] = None,
        applicant_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        query = self._admin_query(app_type, status_filter, app_no, applicant_name)
        page = await paginate(self.session, query, page_index, page_size)
        page["data"] = await self._rows(page["data"])
        return page

    async def get_export_rows(
        self,
        app_type: Optional[str] = None,
        status_filter: Optional[int] = None,
        app_no: Optional[str] = None,
        applicant_name: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        result = await self.session.execute(self._admin_query(app_type, status_filter, app_no, applicant_name))
        rows = await self._rows(list(result.scalars().all()))
        for row in rows:
            row["latest_action_label"] = (
                ApprovalAction(row["latest_action"]).label if row["latest_action"] else None
            )
        return rows

    async def get_my_summary(self, user: User) -> Dict[str, Any]:
        status_rows = (await self.session.execute(
            select(Application.status, func.count(Application.id))
            .where(Application.applicant_id == user.id)
            .group_by(Application.status)
        )).all()
        status_counts = {s.name.lower(): 0 for s in ApplicationStatus}
        for app_status, count in status_rows:
            status_counts[ApplicationStatus(app_status).name.lower()] = count

        type_rows = (await self.session.execute(
            select(Application.app_type, func.count(Application.id))
            .where(Application.applicant_id == user.id, Application.status != ApplicationStatus.DRAFT)
            .group_by(Application.app_type)
        )).all()
        type_counts = {t.value: 0 for t in AppType}
        for app_type, count in type_rows:
            type_counts[app_type] = count

        approved_days = await self.session.scalar(
            select(func.coalesce(func.sum(LeaveApplication.days), 0))
            .join(Application, Application.id == LeaveApplication.app_id)
            .where(Application.applicant_id == user.id, Application.status == ApplicationStatus.APPROVED)
        )
        approved_amount = await self.session.scalar(
            select(func.coalesce(func.sum(ReimburseApplication.amount), 0))
            .join(Application, Application.id == ReimburseApplication.app_id)
            .where(Application.applicant_id == user.id, Application.status == ApplicationStatus.APPROVED)
        )
        last_submit = await self.session.scalar(
            select(func.max(Application.submit_time)).where(Application.applicant_id == user.id)
        )

        submitted_total = sum(type_counts.values())
        return {
            "real_name": user.real_name,
            "dept_name": user.department.dept_name if user.department else None,
            "post_name": user.post.post_name if user.post else None,
            "total_count": submitted_total,
            "status_counts": status_counts,
            "type_counts": type_counts,
            "approved_leave_days": Decimal(str(approved_days or 0)).quantize(Decimal("0.1")),
            "approved_reimburse_amount": Decimal(str(approved_amount or 0)).quantize(Decimal("0.01")),
            "approval_rate": approval_rate(status_counts["approved"], submitted_total),
            "last_submit_time": last_submit,
        }

    # endregion
