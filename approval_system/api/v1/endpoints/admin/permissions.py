from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.core.database import get_async_session
from approval_system.schemas.auth.permission import Permission
from approval_system.services.auth.permission_service import PermissionService

router = APIRouter()


@router.get("/", response_model=List[Permission])
async def get_permissions(
    active_only: bool = Query(True),
    session: AsyncSession = Depends(get_async_session),
):
    """Permissions that can be granted to posts"""
    return await PermissionService(session).get_permissions(active_only=active_only)
