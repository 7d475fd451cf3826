import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from approval_system.core.database import get_async_session
from approval_system.schemas.auth.user import RegisterRequest, UserResponse
from approval_system.services.auth.user_service import UserService, user_to_dict
from approval_system.utils.rate_limiter import check_login_rate_limit
from approval_system.utils.validators.auth_validators import require_auth_validation

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_create: RegisterRequest,
    session: AsyncSession = Depends(get_async_session),
    _: None = Depends(check_login_rate_limit)
):
    """Self registration. New accounts get the default post and no department."""
    try:
        require_auth_validation(
            email=user_create.email,
            password=user_create.password,
            username=user_create.username,
            phone=user_create.phone,
        )

        user_service = UserService(session)
        new_user = await user_service.register_user(user_create)

        logger.info(f"New user registered: {new_user.username}")
        return user_to_dict(new_user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Registration error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )
