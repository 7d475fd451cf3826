import logging
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from approval_system.core.database import get_async_session
from approval_system.core.request_context import get_request_context
from approval_system.api.dependencies import get_current_user
from approval_system.models.auth.user import User
from approval_system.schemas.auth.login import LoginRequest, LoginResponse, LoginUserInfo, ChangePasswordRequest
from approval_system.schemas.auth.token import Token, RefreshTokenRequest
from approval_system.schemas.common.pagination import MessageResponse
from approval_system.services.auth.auth_service import AuthService
from approval_system.services.auth.user_service import UserService
from approval_system.utils.rate_limiter import check_login_rate_limit
from approval_system.utils.validators.auth_validators import require_auth_validation

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    login_data: LoginRequest,
    session: AsyncSession = Depends(get_async_session),
    _: None = Depends(check_login_rate_limit),
):
    """Authenticate by username and return tokens plus the dashboard the user lands on"""
    try:
        auth_service = AuthService(session)
        req_context = get_request_context(request)

        user = await auth_service.authenticate_user(
            username=login_data.username,
            password=login_data.password,
            ip_address=req_context["ip_address"],
            user_agent=req_context["user_agent"],
            endpoint=req_context["endpoint"],
            request_id=req_context["request_id"],
        )
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password")

        tokens = await auth_service.create_tokens(
            user=user,
            device_info=req_context["user_agent"],
            ip_address=req_context["ip_address"],
        )
        user_info = await auth_service.build_user_info(user)

        logger.info(f"User logged in: {user.username} ({user_info['dashboard_role']})")
        return LoginResponse(user=LoginUserInfo(**user_info), **tokens)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login error: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Login failed")

@router.post("/refresh", response_model=Token)
async def refresh_token(
    token_data: RefreshTokenRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Refresh access token."""
    auth_service = AuthService(session)
    return await auth_service.refresh_access_token(token_data.refresh_token)

@router.post("/logout", response_model=MessageResponse)
async def logout(
    token_data: RefreshTokenRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Logout user by revoking refresh token."""
    auth_service = AuthService(session)
    await auth_service.revoke_refresh_token(token_data.refresh_token)
    logger.info(f"User logged out: {current_user.username}")
    return {"message": "Successfully logged out"}

@router.get("/me", response_model=LoginUserInfo)
async def read_current_user(
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Profile, permission codes and dashboard role of the caller"""
    auth_service = AuthService(session)
    return await auth_service.build_user_info(current_user)

@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    password_data: ChangePasswordRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Change the caller's password and revoke their refresh tokens"""
    require_auth_validation(password=password_data.new_password)

    user_service = UserService(session)
    await user_service.change_password(
        current_user.id, password_data.current_password, password_data.new_password
    )
    await AuthService(session).revoke_all_refresh_tokens(current_user.id)
    return {"message": "Password changed successfully"}
