import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from approval_system.auth.permissions import APPROVAL_REVIEW
from approval_system.core.exceptions import BusinessRuleError
from approval_system.models.auth.permission import Permission
from approval_system.models.auth.post import Post
from approval_system.models.auth.post_permission import PostPermission
from approval_system.models.auth.user import User

logger = logging.getLogger(__name__)


class ApproverService:
    """Who may approve an application, and checks on the approver an applicant picked."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _holders_query(self, permission_code: str, dept_id: Optional[int] = None, exclude_ids: Iterable[int] = ()):
        query = (
            select(User)
            .join(Post, Post.id == User.post_id)
            .join(PostPermission, PostPermission.post_id == Post.id)
            .join(Permission, Permission.id == PostPermission.permission_id)
            .options(selectinload(User.department), selectinload(User.post))
            .where(
                User.status == 1,
                User.is_deleted == False,
                Post.status == 1,
                Post.is_deleted == False,
                PostPermission.is_active == True,
                Permission.is_active == True,
                Permission.code == permission_code,
            )
        )
        if dept_id is not None:
            query = query.where(User.dept_id == dept_id)
        exclude_ids = [i for i in exclude_ids if i is not None]
        if exclude_ids:
            query = query.where(User.id.notin_(exclude_ids))
        return query.order_by(User.id).distinct()

    async def find_permission_holders(
        self,
        permission_code: str,
        dept_id: Optional[int] = None,
        exclude_ids: Iterable[int] = (),
    ) -> List[User]:
        result = await self.session.execute(self._holders_query(permission_code, dept_id, exclude_ids))
        return list(result.scalars().unique().all())

    async def has_permission(self, user: User, permission_code: str) -> bool:
        if user.post_id is None:
            return False
        result = await self.session.execute(
            select(Permission.id)
            .join(PostPermission, PostPermission.permission_id == Permission.id)
            .join(Post, Post.id == PostPermission.post_id)
            .where(
                Post.id == user.post_id,
                Post.status == 1,
                Post.is_deleted == False,
                PostPermission.is_active == True,
                Permission.is_active == True,
                Permission.code == permission_code,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_department_approvers(self, user: User, dept_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Approvers of the caller's department (or ``dept_id``), the caller excluded"""
        target_dept_id = dept_id if dept_id is not None else user.dept_id
        if target_dept_id is None:
            return []

        approvers = await self.find_permission_holders(APPROVAL_REVIEW, target_dept_id, exclude_ids=[user.id])
        return [
            {
                "user_id": approver.id,
                "real_name": approver.real_name,
                "dept_id": approver.dept_id,
                "dept_name": approver.department.dept_name if approver.department else None,
                "post_id": approver.post_id,
                "post_name": approver.post.post_name if approver.post else None,
            }
            for approver in approvers
        ]

    async def ensure_can_submit(self, applicant: User):
        """Block submission when nobody in the applicant's department can approve it"""
        if applicant.dept_id is None:
            raise BusinessRuleError("您尚未分配部门，暂时无法提交申请")
        approvers = await self.find_permission_holders(APPROVAL_REVIEW, applicant.dept_id, exclude_ids=[applicant.id])
        if not approvers:
            raise BusinessRuleError("当前部门暂无可用审批人，请联系管理员")

    async def validate_approver(self, applicant: User, approver_id: Optional[int]) -> User:
        if approver_id is None:
            raise BusinessRuleError("请选择审批人")
        if applicant.id == approver_id:
            raise BusinessRuleError("申请人不能审批自己的申请")

        approver = await self.session.scalar(
            select(User)
            .options(selectinload(User.department), selectinload(User.post))
            .where(User.id == approver_id, User.is_deleted == False)
        )
        if approver is None or approver.status != 1:
            raise BusinessRuleError("审批人无效或已停用")
        if approver.dept_id is None or approver.dept_id != applicant.dept_id:
            raise BusinessRuleError("审批人必须与申请人属于同一部门")
        if approver.post_id is None:
            raise BusinessRuleError("审批人尚未分配岗位，无法处理审批")
        if not await self.has_permission(approver, APPROVAL_REVIEW):
            raise BusinessRuleError("所选人员暂无审批权限")

        logger.debug(f"Approver {approver.username} accepted for applicant {applicant.username}")
        return approver
