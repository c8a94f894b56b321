from fastapi import APIRouter, Depends, Request, status
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.core.database import get_async_session
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse, MessageData
from app.schemas.notification.notification_rule_schema import (
    NotificationRuleCreate,
    NotificationRuleResponse,
    NotificationRuleUpdate,
)
from app.services.notification.rule_service import NotificationRuleService

router = APIRouter()

@router.get("/", response_model=ApiResponse[List[NotificationRuleResponse]])
async def get_rules(
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_rule", "view"))
):
    return {"success": True, "data": await NotificationRuleService(session).get_rules()}

@router.get("/{rule_id}", response_model=ApiResponse[NotificationRuleResponse])
async def get_rule(
    rule_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_rule", "view"))
):
    return {"success": True, "data": await NotificationRuleService(session).get_rule(rule_id)}

@router.post("/", response_model=ApiResponse[NotificationRuleResponse], status_code=status.HTTP_201_CREATED)
async def create_rule(
    payload: NotificationRuleCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notification_rule", "edit"))
):
    """One rule per notification type"""
    rule = await NotificationRuleService(session).create_rule(payload, current_user.id, request)
    return {"success": True, "data": rule}

@router.put("/{rule_id}", response_model=ApiResponse[NotificationRuleResponse])
async def update_rule(
    rule_id: int,
    payload: NotificationRuleUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notification_rule", "edit"))
):
    rule = await NotificationRuleService(session).update_rule(rule_id, payload, current_user.id, request)
    return {"success": True, "data": rule}

@router.delete("/{rule_id}", response_model=ApiResponse[MessageData])
async def delete_rule(
    rule_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notification_rule", "edit"))
):
    await NotificationRuleService(session).delete_rule(rule_id, current_user.id, request)
    return {"success": True, "data": {"message": "Rule deleted successfully"}}
