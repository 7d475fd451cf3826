"""
Baseline data every installation needs (idempotent):
permissions, the ADMIN / MANAGER / EMPLOYEE posts, the root department
and the administrator account.
"""
import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.auth.permissions import APPLICATION_SUBMIT, APPROVAL_REVIEW, SYSTEM_ADMIN
from approval_system.core.config import settings
from approval_system.core.security import get_password_hash
from approval_system.models.auth.permission import Permission
from approval_system.models.auth.post import Post
from approval_system.models.auth.post_permission import PostPermission
from approval_system.models.auth.user import User
from approval_system.models.organization.department import Department

logger = logging.getLogger(__name__)

PERMISSIONS_SEED = [
    {"code": SYSTEM_ADMIN, "name": "系统管理", "description": "Manage users, departments, posts and all applications",
     "resource": "system", "action": "admin"},
    {"code": APPROVAL_REVIEW, "name": "审批处理", "description": "Handle approval tasks",
     "resource": "approval", "action": "review"},
    {"code": APPLICATION_SUBMIT, "name": "提交申请", "description": "Submit leave and reimbursement applications",
     "resource": "application", "action": "submit"},
]

POSTS_SEED = [
    {"post_code": "ADMIN", "post_name": "系统管理员", "post_sort": 1,
     "permissions": [SYSTEM_ADMIN, APPROVAL_REVIEW, APPLICATION_SUBMIT]},
    {"post_code": "MANAGER", "post_name": "部门经理", "post_sort": 2,
     "permissions": [APPROVAL_REVIEW, APPLICATION_SUBMIT]},
    {"post_code": settings.DEFAULT_POST_CODE, "post_name": "普通员工", "post_sort": 3,
     "permissions": [APPLICATION_SUBMIT]},
]


async def create_initial_data(session: AsyncSession):
    """Create initial data for the application"""
    try:
        permissions = await create_permissions(session)
        posts = await create_posts(session, permissions)
        root_dept = await create_root_department(session)
        await create_admin_user(session, root_dept, posts["ADMIN"])

        await session.commit()
        logger.info("Initial data ready")
        return True

    except Exception as e:
        logger.error(f"Error creating initial data: {str(e)}")
        await session.rollback()
        raise


async def create_permissions(session: AsyncSession) -> Dict[str, Permission]:
    existing = {p.code: p for p in (await session.execute(select(Permission))).scalars().all()}
    for data in PERMISSIONS_SEED:
        if data["code"] not in existing:
            permission = Permission(**data)
            session.add(permission)
            existing[data["code"]] = permission
    await session.flush()
    return existing


async def create_posts(session: AsyncSession, permissions: Dict[str, Permission]) -> Dict[str, Post]:
    existing = {p.post_code: p for p in (await session.execute(select(Post))).scalars().all()}
    for data in POSTS_SEED:
        if data["post_code"] in existing:
            continue
        post = Post(
            post_code=data["post_code"],
            post_name=data["post_name"],
            post_sort=data["post_sort"],
            status=1,
        )
        session.add(post)
        await session.flush()
        for code in data["permissions"]:
            session.add(PostPermission(post_id=post.id, permission_id=permissions[code].id, is_active=True))
        existing[post.post_code] = post
    await session.flush()
    return existing


async def create_root_department(session: AsyncSession) -> Department:
    dept = await session.scalar(
        select(Department).where(Department.parent_id == 0, Department.dept_name == settings.ROOT_DEPT_NAME)
    )
    if dept is None:
        dept = Department(parent_id=0, dept_name=settings.ROOT_DEPT_NAME, order_num=0, status=1)
        session.add(dept)
        await session.flush()
    return dept


async def create_admin_user(session: AsyncSession, dept: Department, post: Post):
    admin = await session.scalar(select(User).where(User.username == settings.ADMIN_USERNAME))
    if admin is None:
        session.add(User(
            username=settings.ADMIN_USERNAME,
            real_name=settings.ADMIN_REAL_NAME,
            hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
            dept_id=dept.id,
            post_id=post.id,
            status=1,
        ))
        logger.info(f"Administrator account created: {settings.ADMIN_USERNAME}")
