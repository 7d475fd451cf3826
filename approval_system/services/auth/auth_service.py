import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from approval_system.auth.jwt_handler import decode_refresh_token
from approval_system.auth.permissions import resolve_dashboard_role
from approval_system.core.config import settings
from approval_system.core.security import verify_password, create_access_token, create_refresh_token
from approval_system.models.auth.user import User
from approval_system.models.auth.refresh_token import RefreshToken
from approval_system.models.auth.audit_log import AuditLog
from approval_system.services.auth.user_service import UserService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_service = UserService(session)

    async def authenticate_user(
        self,
        username: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        endpoint: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Optional[User]:
        """Authenticate user with username and password"""
        try:
            user = await self.user_service.get_user_by_username(username)

            if not user:
                await self._log_failed_login(username, "User not found", ip_address, user_agent, endpoint, request_id)
                return None

            if user.status != 1:
                await self._log_failed_login(username, "Account disabled", ip_address, user_agent, endpoint, request_id)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Account is disabled"
                )

            # Check if account is locked
            if user.locked_until and user.locked_until > datetime.now():
                await self._log_failed_login(username, "Account locked", ip_address, user_agent, endpoint, request_id)
                raise HTTPException(
                    status_code=status.HTTP_423_LOCKED,
                    detail="Account is locked due to too many failed attempts"
                )

            if not verify_password(password, user.hashed_password):
                await self._handle_failed_login(user, ip_address, user_agent, endpoint, request_id)
                return None

            # Reset failed attempts on successful login
            if user.failed_login_attempts:
                user.failed_login_attempts = 0
                user.locked_until = None

            user.last_login = datetime.now()
            await self.session.commit()

            await self._log_audit(
                user_id=user.id,
                action="login",
                resource="auth",
                ip_address=ip_address,
                user_agent=user_agent,
                endpoint=endpoint,
                request_id=request_id,
            )

            return user

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error authenticating user: {str(e)}")
            return None

    async def create_tokens(
        self,
        user: User,
        device_info: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create access and refresh tokens for user"""
        try:
            access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
            access_token = create_access_token(
                data={"sub": str(user.id), "username": user.username},
                expires_delta=access_token_expires
            )

            refresh_token_expires = timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
            refresh_token = create_refresh_token(
                data={"sub": str(user.id)},
                expires_delta=refresh_token_expires
            )

            db_refresh_token = RefreshToken(
                user_id=user.id,
                token=refresh_token,
                expires_at=datetime.now() + refresh_token_expires,
                device_info=device_info,
                ip_address=ip_address
            )
            self.session.add(db_refresh_token)
            await self.session.commit()

            return {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "token_type": "bearer",
                "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
            }

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating tokens: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error creating authentication tokens"
            )

    async def build_user_info(self, user: User) -> Dict[str, Any]:
        """User block of the login and /me responses"""
        codes = await self.user_service.get_permission_codes(user.id)
        return {
            "user_id": user.id,
            "username": user.username,
            "real_name": user.real_name,
            "phone": user.phone,
            "email": user.email,
            "avatar": user.avatar,
            "dept_id": user.dept_id,
            "dept_name": user.department.dept_name if user.department else None,
            "post_id": user.post_id,
            "post_name": user.post.post_name if user.post else None,
            "permissions": codes,
            "dashboard_role": resolve_dashboard_role(codes),
        }

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """Issue a new access token from a stored, unrevoked refresh token"""
        try:
            payload = decode_refresh_token(refresh_token)
            if not payload:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid or expired refresh token"
                )

            user_id = int(payload.get("sub"))

            result = await self.session.execute(
                select(RefreshToken).where(
                    RefreshToken.token == refresh_token,
                    RefreshToken.user_id == user_id,
                    RefreshToken.is_revoked == False,
                    RefreshToken.expires_at > datetime.now()
                )
            )
            db_token = result.scalar_one_or_none()

            if not db_token:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Refresh token not found or revoked"
                )

            user = await self.user_service.get_user(user_id)
            if not user or not user.is_active:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="User not found or inactive"
                )

            access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
            access_token = create_access_token(
                data={"sub": str(user.id), "username": user.username},
                expires_delta=access_token_expires
            )

            return {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "token_type": "bearer",
                "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
            }

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error refreshing token: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error refreshing token"
            )

    async def revoke_refresh_token(self, refresh_token: str) -> bool:
        """Revoke refresh token"""
        try:
            result = await self.session.execute(
                select(RefreshToken).where(RefreshToken.token == refresh_token)
            )
            db_token = result.scalar_one_or_none()

            if db_token:
                db_token.is_revoked = True
                await self.session.commit()
                return True

            return False

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error revoking token: {str(e)}")
            return False

    async def revoke_all_refresh_tokens(self, user_id: int) -> int:
        """Revoke all refresh tokens for user"""
        try:
            result = await self.session.execute(
                select(RefreshToken).where(
                    RefreshToken.user_id == user_id,
                    RefreshToken.is_revoked == False
                )
            )
            tokens = result.scalars().all()

            for token in tokens:
                token.is_revoked = True

            await self.session.commit()
            return len(tokens)

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error revoking all tokens: {str(e)}")
            return 0

    async def _handle_failed_login(
        self,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        endpoint: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        """Count a failed attempt and lock the account once the limit is hit"""
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1

        if user.failed_login_attempts >= settings.MAX_FAILED_LOGIN_ATTEMPTS:
            user.locked_until = datetime.now() + timedelta(minutes=settings.ACCOUNT_LOCK_MINUTES)
            logger.warning(f"Account locked for user {user.username}")

        await self.session.commit()

        await self._log_failed_login(user.username, "Invalid password", ip_address, user_agent, endpoint, request_id)

    async def _log_failed_login(
        self,
        username: str,
        reason: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        endpoint: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        await self._log_audit(
            action="login_failed",
            resource="auth",
            details={"username": username, "reason": reason},
            ip_address=ip_address,
            user_agent=user_agent,
            endpoint=endpoint,
            request_id=request_id,
        )

    async def _log_audit(
        self,
        action: str,
        resource: str,
        user_id: Optional[int] = None,
        resource_id: Optional[int] = None,
        details: Optional[Dict] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        endpoint: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        """Log audit event"""
        try:
            audit_log = AuditLog(
                user_id=user_id,
                action=action,
                resource=resource,
                resource_id=resource_id,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent,
                endpoint=endpoint,
                request_id=request_id,
            )
            self.session.add(audit_log)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error logging audit event: {str(e)}")
