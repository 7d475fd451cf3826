import logging
from typing import Optional, List, Dict, Any
from datetime import datetime
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from approval_system.core.config import settings
from approval_system.core.security import get_password_hash, verify_password
from approval_system.models.auth.user import User
from approval_system.models.auth.post import Post
from approval_system.models.auth.permission import Permission
from approval_system.models.auth.post_permission import PostPermission
from approval_system.models.organization.department import Department
from approval_system.models.approval.approval_task import ApprovalTask
from approval_system.schemas.auth.user import RegisterRequest, UserCreate, UserUpdate
from approval_system.utils.pagination import paginate
from approval_system.utils.search import contains
from approval_system.workflow.lifecycle import TaskStatus

logger = logging.getLogger(__name__)


def user_to_dict(user: User) -> Dict[str, Any]:
    """Flatten a user (department and post loaded) for responses"""
    return {
        "id": user.id,
        "username": user.username,
        "real_name": user.real_name,
        "phone": user.phone,
        "email": user.email,
        "avatar": user.avatar,
        "dept_id": user.dept_id,
        "dept_name": user.department.dept_name if user.department else None,
        "post_id": user.post_id,
        "post_name": user.post.post_name if user.post else None,
        "status": user.status,
        "last_login": user.last_login,
        "created_at": user.created_at,
    }


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _with_refs(self):
        return select(User).options(selectinload(User.department), selectinload(User.post))

    async def get_user(self, user_id: int) -> Optional[User]:
        """Get a non-deleted user with department and post loaded"""
        result = await self.session.execute(
            self._with_refs()
            .where(User.id == user_id, User.is_deleted == False)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(
            self._with_refs().where(User.username == username, User.is_deleted == False)
        )
        return result.scalar_one_or_none()

    async def get_user_permissions(self, user_id: int) -> List[Dict[str, Any]]:
        """Get all permissions for user through the post they hold"""
        try:
            result = await self.session.execute(
                select(Permission)
                .join(PostPermission, PostPermission.permission_id == Permission.id)
                .join(Post, Post.id == PostPermission.post_id)
                .join(User, User.post_id == Post.id)
                .where(
                    User.id == user_id,
                    Post.status == 1,
                    Post.is_deleted == False,
                    PostPermission.is_active == True,
                    Permission.is_active == True,
                )
                .distinct()
            )
            permissions = result.scalars().all()
            return [
                {
                    "code": perm.code,
                    "name": perm.name,
                    "resource": perm.resource,
                    "action": perm.action,
                    "description": perm.description,
                }
                for perm in permissions
            ]
        except Exception as e:
            logger.error(f"Error getting user permissions: {str(e)}")
            return []

    async def get_permission_codes(self, user_id: int) -> List[str]:
        permissions = await self.get_user_permissions(user_id)
        return sorted({perm["code"] for perm in permissions})

    async def _ensure_username_free(self, username: str):
        result = await self.session.execute(
            select(User.id).where(User.username == username).limit(1)
        )
        if result.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already taken"
            )

    async def _ensure_refs(self, dept_id: Optional[int], post_id: Optional[int]):
        if dept_id is not None:
            dept = await self.session.scalar(
                select(Department.id).where(Department.id == dept_id, Department.is_deleted == False)
            )
            if dept is None:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Department not found")
        if post_id is not None:
            post = await self.session.scalar(
                select(Post.id).where(Post.id == post_id, Post.is_deleted == False)
            )
            if post is None:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post not found")

    async def register_user(self, data: RegisterRequest) -> User:
        """Self registration: no department, default post when it exists"""
        try:
            await self._ensure_username_free(data.username)

            default_post_id = await self.session.scalar(
                select(Post.id).where(
                    Post.post_code == settings.DEFAULT_POST_CODE,
                    Post.is_deleted == False,
                )
            )

            db_user = User(
                username=data.username,
                real_name=data.real_name,
                hashed_password=get_password_hash(data.password),
                phone=data.phone,
                email=data.email,
                post_id=default_post_id,
                status=1,
            )
            self.session.add(db_user)
            await self.session.commit()

            logger.info(f"User registered: {data.username}")
            return await self.get_user(db_user.id)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error registering user: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creating user"
            )

    async def create_user(self, user_create: UserCreate, created_by: Optional[int] = None) -> User:
        """Create new user"""
        try:
            await self._ensure_username_free(user_create.username)
            await self._ensure_refs(user_create.dept_id, user_create.post_id)

            db_user = User(
                username=user_create.username,
                real_name=user_create.real_name,
                hashed_password=get_password_hash(user_create.password),
                phone=user_create.phone,
                email=user_create.email,
                dept_id=user_create.dept_id,
                post_id=user_create.post_id,
                status=user_create.status,
                created_by=created_by,
            )
            self.session.add(db_user)
            await self.session.commit()

            logger.info(f"User created: {user_create.username}")
            return await self.get_user(db_user.id)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating user: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creating user"
            )

    async def update_user(self, user_id: int, user_update: UserUpdate, updated_by: Optional[int] = None) -> User:
        """Update user"""
        try:
            user = await self.get_user(user_id)
            if not user:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="User not found"
                )

            update_data = user_update.dict(exclude_unset=True)
            await self._ensure_refs(update_data.get("dept_id"), update_data.get("post_id"))

            password = update_data.pop("password", None)
            if password:
                user.hashed_password = get_password_hash(password)

            if update_data.get("status") == 0 and user_id == updated_by:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="You cannot disable your own account"
                )

            for field, value in update_data.items():
                setattr(user, field, value)

            user.updated_by = updated_by
            await self.session.commit()

            logger.info(f"User updated: {user.username}")
            return await self.get_user(user_id)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating user: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error updating user"
            )

    async def update_status(self, user_id: int, new_status: int, updated_by: int) -> User:
        return await self.update_user(user_id, UserUpdate(status=new_status), updated_by)

    async def delete_user(self, user_id: int, deleted_by: int) -> bool:
        """Soft delete user"""
        try:
            if user_id == deleted_by:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="You cannot delete your own account"
                )

            user = await self.get_user(user_id)
            if not user:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

            open_tasks = await self.session.scalar(
                select(func.count(ApprovalTask.id)).where(
                    ApprovalTask.assignee_id == user_id,
                    ApprovalTask.status == TaskStatus.TODO,
                )
            )
            if open_tasks:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Cannot delete user. {open_tasks} approval task(s) are still waiting for them"
                )

            user.is_deleted = True
            user.status = 0
            user.updated_by = deleted_by
            await self.session.commit()

            logger.info(f"User deleted: {user.username}")
            return True

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting user: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error deleting user"
            )

    async def assign_post(self, user_id: int, post_id: int, assigned_by: Optional[int] = None) -> User:
        """Assign a post to a user"""
        try:
            user = await self.get_user(user_id)
            if not user:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

            post = await self.session.scalar(
                select(Post).where(Post.id == post_id, Post.is_deleted == False)
            )
            if not post:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
            if post.status != 1:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post is disabled")

            user.post_id = post_id
            user.updated_by = assigned_by
            await self.session.commit()

            logger.info(f"Post {post.post_code} assigned to user {user.username}")
            return await self.get_user(user_id)

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error assigning post: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error assigning post"
            )

    async def get_users(
        self,
        page_index: int = 1,
        page_size: int = 10,
        username: Optional[str] = None,
        real_name: Optional[str] = None,
        dept_id: Optional[int] = None,
        status_filter: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Get paginated list of users"""
        query = self._with_refs().where(User.is_deleted == False)
        if username:
            query = query.where(contains(User.username, username))
        if real_name:
            query = query.where(contains(User.real_name, real_name))
        if dept_id is not None:
            query = query.where(User.dept_id == dept_id)
        if status_filter is not None:
            query = query.where(User.status == status_filter)
        query = query.order_by(User.id.desc())

        page = await paginate(self.session, query, page_index, page_size)
        page["data"] = [user_to_dict(user) for user in page["data"]]
        return page

    async def count_users(self, active_only: bool = False) -> int:
        query = select(func.count(User.id)).where(User.is_deleted == False)
        if active_only:
            query = query.where(User.status == 1)
        return (await self.session.scalar(query)) or 0

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> bool:
        """Change user password"""
        try:
            user = await self.get_user(user_id)
            if not user:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="User not found"
                )

            if not verify_password(current_password, user.hashed_password):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Current password is incorrect"
                )

            user.hashed_password = get_password_hash(new_password)
            user.updated_at = datetime.now()

            await self.session.commit()
            logger.info(f"Password changed for user: {user.username}")
            return True

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error changing password: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error changing password"
            )
