from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, get_permission_checker_dependency
from app.auth.permissions import PermissionChecker
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse
from app.schemas.notification.notification_preference_schema import (
    PreferencesResponse,
    PreferencesUpdate,
    PreferencesUpdated,
)
from app.services.auth.user_service import UserService
from app.services.notification.preference_service import NotificationPreferenceService

router = APIRouter()

@router.get("/", response_model=ApiResponse[PreferencesResponse])
async def get_preferences(
    user_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
):
    """The caller's preferences, or another user's for notification log viewers"""
    target_id = current_user.id
    if user_id is not None and user_id != current_user.id:
        checker.require("notification_log", "view")
        if await UserService(session).get_user(user_id) is None:
            raise NotFoundError("User not found")
        target_id = user_id

    preferences = await NotificationPreferenceService(session).get_preferences(target_id)
    return {"success": True, "data": {"user_id": target_id, "preferences": preferences}}

@router.put("/", response_model=ApiResponse[PreferencesUpdated])
async def update_preferences(
    payload: PreferencesUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    updated = await NotificationPreferenceService(session).update_preferences(current_user.id, payload.preferences)
    return {"success": True, "data": {"updated": updated}}
