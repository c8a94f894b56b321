from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.database import get_async_session
from app.auth.jwt_handler import decode_access_token
from app.auth.permissions import PermissionChecker, get_permission_checker
from app.models.auth.user import User
from app.services.auth.user_service import UserService
from app.services.organization.settings_service import OrganizationSettingsService
import logging

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> User:
    """Get current authenticated user from the auth cookie or a bearer header"""
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise _unauthorized()

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized()

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized()

    user = await UserService(session).get_user(user_id)
    if user is None or not user.is_active:
        raise _unauthorized()

    request.state.current_user = user
    return user


async def get_permission_checker_dependency(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
) -> PermissionChecker:
    """
    Permission checker for the current user's role.

    The organization config can override who may read the audit log.
    """
    config = await OrganizationSettingsService(session).get_config()
    overrides = {"audit_log:view": config.permissions.audit_log_roles}
    return get_permission_checker(current_user.role, overrides)


def require_permission(resource: str, action: str):
    """
    Dependency to require specific permission for an endpoint

    Examples:
        require_permission("leave_request", "approve")   # leave_request:approve
    """
    async def permission_dependency(
        current_user: User = Depends(get_current_user),
        checker: PermissionChecker = Depends(get_permission_checker_dependency),
    ) -> User:
        checker.require(resource, action)
        return current_user

    return permission_dependency
