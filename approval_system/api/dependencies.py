from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from approval_system.core.database import get_async_session
from approval_system.auth.jwt_handler import decode_access_token
from approval_system.auth.permissions import PermissionChecker
from approval_system.models.auth.user import User
from approval_system.services.auth.user_service import UserService
import logging

security = HTTPBearer()
logger = logging.getLogger(__name__)

def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> User:
    """Get current authenticated user and load the permissions of their post"""
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid authentication credentials")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid authentication credentials")

    user_service = UserService(session)
    user = await user_service.get_user(user_id)

    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")

    # Permissions come from the database so post changes apply immediately
    request.state.current_user = user
    request.state.user_permissions = await user_service.get_user_permissions(user.id)

    return user

async def get_permission_checker_dependency(
    request: Request,
    current_user: User = Depends(get_current_user)
) -> PermissionChecker:
    """
    Get permission checker for current user from request state

    The permissions are already set in request.state by get_current_user
    """
    return PermissionChecker(getattr(request.state, "user_permissions", []))

def require_permission(resource: str, action: str):
    """
    Dependency to require specific permission for an endpoint

    Examples:
        require_permission("approval", "review")  # approval:review
        require_permission("system", "admin")     # system:admin
    """
    async def permission_dependency(
        checker: PermissionChecker = Depends(get_permission_checker_dependency)
    ):
        checker.require(resource, action)
        return True

    return permission_dependency
