import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from app.models.auth.user import User
from app.models.auth.password_reset_token import PasswordResetToken
from app.models.shared.enums import AuditAction
from app.core.security import verify_password, create_access_token, get_password_hash, generate_reset_token
from app.core.config import settings
from app.core.exceptions import UnauthorizedError, ValidationError, InternalError
from app.db.base import utcnow
from app.services.audit.audit_service import AuditService
from app.services.auth.user_service import UserService
from app.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, you will receive a password reset link."


def _as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_service = UserService(session)

    async def authenticate_user(self, email: str, password: str, request: Optional[Request] = None) -> User:
        """Check credentials and stamp last_login. Raises 401 on any mismatch."""
        user = await self.user_service.get_user_by_email(email)
        if not user or not user.is_active or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for {email}")
            raise UnauthorizedError("Invalid email or password")

        try:
            user.last_login = utcnow()
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating last login for {email}: {e}")
            raise InternalError("Error signing in")

        await AuditService(self.session).log(AuditAction.LOGIN, "USER", user.id, user.id, request=request)
        logger.info(f"User logged in: {email}")
        return await self.user_service.get_user(user.id)

    def create_token(self, user: User) -> Dict[str, Any]:
        access_token = create_access_token(
            data={
                "sub": str(user.id),
                "email": user.email,
                "role": user.role.value,
            },
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )
        return {
            "token": access_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    # ---------- Password reset ----------
    async def _recent_token_count(self, user_id: int) -> int:
        since = utcnow() - timedelta(hours=1)
        result = await self.session.execute(
            select(func.count(PasswordResetToken.id)).where(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.created_at >= since,
            )
        )
        return int(result.scalar() or 0)

    async def forgot_password(self, email: str) -> str:
        """
        Issue a reset token and queue the reset email.

        The returned message is the same whether or not the account exists.
        """
        user = await self.user_service.get_user_by_email(email)
        if user is None or not user.is_active:
            logger.info(f"Password reset requested for unknown or inactive account: {email}")
            return FORGOT_PASSWORD_MESSAGE

        if await self._recent_token_count(user.id) >= settings.PASSWORD_RESET_MAX_PER_HOUR:
            logger.warning(f"Password reset rate limit reached for user {user.id}")
            return FORGOT_PASSWORD_MESSAGE

        try:
            token = generate_reset_token()
            self.session.add(PasswordResetToken(
                user_id=user.id,
                token=token,
                expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
            ))
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating password reset token for user {user.id}: {e}")
            return FORGOT_PASSWORD_MESSAGE

        reset_link = f"{settings.APP_URL.rstrip('/')}/reset-password?token={token}"
        await NotificationService(self.session).notify_password_reset(user, reset_link)
        return FORGOT_PASSWORD_MESSAGE

    async def is_reset_token_valid(self, token: Optional[str]) -> bool:
        """Unused and unexpired; lets the reset form bail out before asking for a password"""
        if not token:
            return False
        result = await self.session.execute(
            select(PasswordResetToken).where(PasswordResetToken.token == token)
        )
        reset_token = result.scalar_one_or_none()
        return (
            reset_token is not None
            and reset_token.used_at is None
            and _as_utc(reset_token.expires_at) > utcnow()
        )

    async def reset_password(self, token: str, new_password: str, request: Optional[Request] = None) -> None:
        result = await self.session.execute(
            select(PasswordResetToken).where(PasswordResetToken.token == token)
        )
        reset_token = result.scalar_one_or_none()
        if reset_token is None:
            raise ValidationError("Invalid or expired reset link")
        if reset_token.used_at is not None:
            raise ValidationError("This reset link has already been used")
        if _as_utc(reset_token.expires_at) < utcnow():
            raise ValidationError("This reset link has expired")

        user = await self.user_service.get_user(reset_token.user_id)
        if user is None or not user.is_active:
            raise ValidationError("Invalid or expired reset link")

        user_id = user.id
        try:
            now = utcnow()
            user.hashed_password = get_password_hash(new_password)
            reset_token.used_at = now
            # Every other outstanding link for this user dies with this one
            await self.session.execute(
                update(PasswordResetToken)
                .where(
                    PasswordResetToken.user_id == user_id,
                    PasswordResetToken.id != reset_token.id,
                    PasswordResetToken.used_at.is_(None),
                )
                .values(used_at=now)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error resetting password for user {user_id}: {e}")
            raise InternalError("Error resetting password")

        await AuditService(self.session).log(AuditAction.PASSWORD_RESET, "USER", user_id, user_id, request=request)
        logger.info(f"Password reset completed for user {user_id}")
