from fastapi import APIRouter, Body, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.core.database import get_async_session
from app.models.auth.user import User
from app.models.shared.enums import NotificationType
from app.schemas.common.response import ApiResponse, MessageData
from app.schemas.notification.email_template_schema import (
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
    TemplatePreviewRequest,
    TemplatePreviewResponse,
)
from app.services.notification.template_service import EmailTemplateService

router = APIRouter()

@router.get("/", response_model=ApiResponse[List[EmailTemplateResponse]])
async def get_templates(
    notification_type: Optional[NotificationType] = Query(None, alias="type"),
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_template", "view"))
):
    return {"success": True, "data": await EmailTemplateService(session).get_templates(notification_type)}

@router.get("/{template_id}", response_model=ApiResponse[EmailTemplateResponse])
async def get_template(
    template_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_template", "view"))
):
    return {"success": True, "data": await EmailTemplateService(session).get_template(template_id)}

@router.post("/", response_model=ApiResponse[EmailTemplateResponse], status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: EmailTemplateCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notification_template", "edit"))
):
    template = await EmailTemplateService(session).create_template(payload, current_user.id, request)
    return {"success": True, "data": template}

@router.put("/{template_id}", response_model=ApiResponse[EmailTemplateResponse])
async def update_template(
    template_id: int,
    payload: EmailTemplateUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notification_template", "edit"))
):
    template = await EmailTemplateService(session).update_template(template_id, payload, current_user.id, request)
    return {"success": True, "data": template}

@router.delete("/{template_id}", response_model=ApiResponse[MessageData])
async def delete_template(
    template_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notification_template", "edit"))
):
    """System templates are protected"""
    await EmailTemplateService(session).delete_template(template_id, current_user.id, request)
    return {"success": True, "data": {"message": "Template deleted successfully"}}

@router.post("/{template_id}/preview", response_model=ApiResponse[TemplatePreviewResponse])
async def preview_template(
    template_id: int,
    payload: Optional[TemplatePreviewRequest] = Body(None),
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_template", "view"))
):
    """Dry-run render with sample values; caller-supplied variables win"""
    variables = payload.variables if payload is not None else {}
    preview = await EmailTemplateService(session).preview_template(template_id, variables)
    return {"success": True, "data": preview}
