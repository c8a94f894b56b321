import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.database import get_async_session
from app.api.dependencies import get_current_user, get_permission_checker_dependency
from app.auth.permissions import PermissionChecker
from app.models.auth.user import User
from app.schemas.auth.login import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    PermissionsResponse,
    ResetPasswordRequest,
    ResetTokenValidity,
)
from app.schemas.auth.user import UserResponse
from app.schemas.common.response import ApiResponse, MessageData
from app.services.auth.auth_service import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)


def _set_auth_cookie(resp: Response, token: str):
    resp.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE.lower(),
        domain=settings.COOKIE_DOMAIN,
        path="/",
    )


def _clear_auth_cookie(resp: Response):
    resp.delete_cookie(key=settings.AUTH_COOKIE_NAME, domain=settings.COOKIE_DOMAIN, path="/")


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_async_session),
):
    """Email + password login; the token is set as an httponly cookie and echoed in the body"""
    service = AuthService(session)
    user = await service.authenticate_user(credentials.email, credentials.password, request)
    token = service.create_token(user)
    _set_auth_cookie(response, token["token"])
    return {"success": True, "data": {**token, "user": user}}


@router.post("/logout", response_model=ApiResponse[MessageData])
async def logout(response: Response):
    _clear_auth_cookie(response)
    return {"success": True, "data": {"message": "Logged out successfully"}}


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": current_user}


@router.get("/permissions", response_model=ApiResponse[PermissionsResponse])
async def my_permissions(
    current_user: User = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
):
    """Capabilities of the current user, after organization overrides"""
    data = {"role": current_user.role.value, "permissions": checker.get_all_permissions()}
    return {"success": True, "data": data}


@router.post("/forgot-password", response_model=ApiResponse[MessageData])
async def forgot_password(
    payload: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_async_session),
):
    message = await AuthService(session).forgot_password(payload.email)
    return {"success": True, "data": {"message": message}}


@router.get("/reset-password/validate", response_model=ApiResponse[ResetTokenValidity])
async def validate_reset_token(
    token: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
):
    valid = await AuthService(session).is_reset_token_valid(token)
    return {"success": True, "data": {"valid": valid}}


@router.post("/reset-password", response_model=ApiResponse[MessageData])
async def reset_password(
    payload: ResetPasswordRequest,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
):
    await AuthService(session).reset_password(payload.token, payload.password, request)
    return {"success": True, "data": {"message": "Password has been reset successfully. You can now log in."}}
