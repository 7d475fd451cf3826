import logging
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.models.auth.permission import Permission

logger = logging.getLogger(__name__)


class PermissionService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_permissions(self, active_only: bool = True) -> List[Permission]:
        query = select(Permission).where(Permission.is_deleted == False)
        if active_only:
            query = query.where(Permission.is_active == True)
        result = await self.session.execute(query.order_by(Permission.id))
        return list(result.scalars().all())

    async def get_permissions_by_ids(self, permission_ids: List[int]) -> List[Permission]:
        if not permission_ids:
            return []
        result = await self.session.execute(
            select(Permission).where(
                Permission.id.in_(permission_ids),
                Permission.is_deleted == False,
            )
        )
        return list(result.scalars().all())
