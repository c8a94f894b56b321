from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.core.database import get_async_session
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse
from app.schemas.organization.settings_schema import OrganizationSettingsResponse, OrganizationSettingsUpdate
from app.services.organization.settings_service import OrganizationSettingsService

router = APIRouter()

@router.get("/organization", response_model=ApiResponse[OrganizationSettingsResponse])
async def get_organization_settings(
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("settings", "view"))
):
    return {"success": True, "data": await OrganizationSettingsService(session).get_settings()}

@router.put("/organization", response_model=ApiResponse[OrganizationSettingsResponse])
async def update_organization_settings(
    payload: OrganizationSettingsUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("settings", "edit"))
):
    """Replace whole sections of the organization config; omitted sections are kept"""
    data = await OrganizationSettingsService(session).update_settings(payload, current_user.id)
    return {"success": True, "data": data}
