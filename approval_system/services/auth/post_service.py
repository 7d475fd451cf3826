import logging
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from approval_system.models.auth.post import Post
from approval_system.models.auth.post_permission import PostPermission
from approval_system.models.auth.user import User
from approval_system.schemas.auth.post import PostCreate, PostUpdate
from approval_system.services.auth.permission_service import PermissionService
from approval_system.utils.pagination import paginate
from approval_system.utils.search import contains

logger = logging.getLogger(__name__)


def permission_to_dict(permission) -> Dict[str, Any]:
    return {
        "id": permission.id,
        "code": permission.code,
        "name": permission.name,
        "description": permission.description,
        "resource": permission.resource,
        "action": permission.action,
        "is_active": permission.is_active,
    }


class PostService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.permission_service = PermissionService(session)

    def _with_permissions(self):
        return select(Post).options(
            selectinload(Post.post_permissions).selectinload(PostPermission.permission)
        )

    async def _user_counts(self, post_ids: List[int]) -> Dict[int, int]:
        if not post_ids:
            return {}
        result = await self.session.execute(
            select(User.post_id, func.count(User.id))
            .where(User.post_id.in_(post_ids), User.is_deleted == False)
            .group_by(User.post_id)
        )
        return {post_id: count for post_id, count in result.all()}

    @staticmethod
    def _to_dict(post: Post, user_count: int = 0) -> Dict[str, Any]:
        return {
            "id": post.id,
            "post_code": post.post_code,
            "post_name": post.post_name,
            "post_sort": post.post_sort,
            "status": post.status,
            "remark": post.remark,
            "created_at": post.created_at,
            "user_count": user_count,
            "permissions": [
                permission_to_dict(pp.permission) for pp in post.post_permissions
                if pp.is_active and pp.permission is not None and not pp.permission.is_deleted
            ],
        }

    async def get_post(self, post_id: int) -> Optional[Post]:
        result = await self.session.execute(
            self._with_permissions()
            .where(Post.id == post_id, Post.is_deleted == False)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_post_detail(self, post_id: int) -> Dict[str, Any]:
        post = await self.get_post(post_id)
        if not post:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
        counts = await self._user_counts([post.id])
        return self._to_dict(post, counts.get(post.id, 0))

    async def get_posts(
        self,
        page_index: int = 1,
        page_size: int = 10,
        post_code: Optional[str] = None,
        post_name: Optional[str] = None,
        status_filter: Optional[int] = None,
    ) -> Dict[str, Any]:
        query = self._with_permissions().where(Post.is_deleted == False)
        if post_code:
            query = query.where(contains(Post.post_code, post_code))
        if post_name:
            query = query.where(contains(Post.post_name, post_name))
        if status_filter is not None:
            query = query.where(Post.status == status_filter)
        query = query.order_by(Post.post_sort, Post.id)

        page = await paginate(self.session, query, page_index, page_size)
        counts = await self._user_counts([p.id for p in page["data"]])
        page["data"] = [self._to_dict(p, counts.get(p.id, 0)) for p in page["data"]]
        return page

    async def get_all_posts(self) -> List[Dict[str, Any]]:
        """Enabled posts, for selection lists"""
        result = await self.session.execute(
            self._with_permissions()
            .where(Post.is_deleted == False, Post.status == 1)
            .order_by(Post.post_sort, Post.id)
        )
        posts = result.scalars().all()
        counts = await self._user_counts([p.id for p in posts])
        return [self._to_dict(p, counts.get(p.id, 0)) for p in posts]

    async def _ensure_code_free(self, post_code: str, exclude_id: Optional[int] = None):
        query = select(Post.id).where(Post.post_code == post_code, Post.is_deleted == False)
        if exclude_id is not None:
            query = query.where(Post.id != exclude_id)
        if (await self.session.scalar(query.limit(1))) is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Post code '{post_code}' already exists"
            )

    async def _set_permissions(self, post: Post, permission_ids: List[int]):
        permissions = await self.permission_service.get_permissions_by_ids(permission_ids)
        missing = set(permission_ids) - {p.id for p in permissions}
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown permission id(s): {sorted(missing)}"
            )
        post.post_permissions.clear()
        for permission in permissions:
            post.post_permissions.append(PostPermission(permission_id=permission.id, is_active=True))

    async def create_post(self, data: PostCreate, created_by: Optional[int] = None) -> Dict[str, Any]:
        try:
            await self._ensure_code_free(data.post_code)

            post = Post(
                post_code=data.post_code,
                post_name=data.post_name,
                post_sort=data.post_sort,
                status=data.status,
                remark=data.remark,
                created_by=created_by,
            )
            post.post_permissions = []
            self.session.add(post)
            await self._set_permissions(post, data.permission_ids)
            await self.session.commit()

            logger.info(f"Post created: {post.post_code}")
            return await self.get_post_detail(post.id)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating post: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error creating post")

    async def update_post(self, post_id: int, data: PostUpdate, updated_by: Optional[int] = None) -> Dict[str, Any]:
        try:
            post = await self.get_post(post_id)
            if not post:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")

            update_data = data.dict(exclude_unset=True)
            permission_ids = update_data.pop("permission_ids", None)

            if update_data.get("post_code") and update_data["post_code"] != post.post_code:
                await self._ensure_code_free(update_data["post_code"], exclude_id=post_id)

            for field, value in update_data.items():
                if value is not None:
                    setattr(post, field, value)

            if permission_ids is not None:
                await self._set_permissions(post, permission_ids)

            post.updated_by = updated_by
            await self.session.commit()

            logger.info(f"Post updated: {post.post_code}")
            return await self.get_post_detail(post_id)

        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating post {post_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error updating post")

    async def delete_post(self, post_id: int, deleted_by: Optional[int] = None) -> bool:
        try:
            post = await self.get_post(post_id)
            if not post:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")

            counts = await self._user_counts([post_id])
            if counts.get(post_id, 0) > 0:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Cannot delete post. It is still assigned to users"
                )

            post.is_deleted = True
            post.status = 0
            post.updated_by = deleted_by
            await self.session.commit()

            logger.info(f"Post deleted (soft): {post.post_code}")
            return True

        except HTTPException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting post {post_id}: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error deleting post")

    async def count_posts(self) -> int:
        return (await self.session.scalar(
            select(func.count(Post.id)).where(Post.is_deleted == False)
        )) or 0
