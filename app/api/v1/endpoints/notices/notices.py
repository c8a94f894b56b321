from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, get_permission_checker_dependency, require_permission
from app.auth.permissions import PermissionChecker
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError
from app.models.auth.user import User
from app.models.shared.enums import NoticeType
from app.schemas.common.response import ApiResponse, MessageData
from app.schemas.notices.notice_schema import NoticeCreate, NoticeResponse, NoticeUpdate
from app.services.notices.notice_service import NoticeService

router = APIRouter()

@router.get("/", response_model=ApiResponse[List[NoticeResponse]])
async def get_notices(
    notice_type: Optional[NoticeType] = Query(None, alias="type"),
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
    _permission = Depends(require_permission("notice", "view"))
):
    """Live notices; publishers also see inactive and expired ones"""
    notices = await NoticeService(session).get_notices(checker.can("notice", "manage"), notice_type)
    return {"success": True, "data": notices}

@router.get("/{notice_id}", response_model=ApiResponse[NoticeResponse])
async def get_notice(
    notice_id: int,
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
    _permission = Depends(require_permission("notice", "view"))
):
    notice = await NoticeService(session).get_notice(notice_id, checker.can("notice", "manage"))
    if notice is None:
        raise NotFoundError("Notice not found")
    return {"success": True, "data": notice}

@router.post("/", response_model=ApiResponse[NoticeResponse], status_code=status.HTTP_201_CREATED)
async def create_notice(
    payload: NoticeCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notice", "manage"))
):
    return {"success": True, "data": await NoticeService(session).create_notice(payload, current_user, request)}

@router.put("/{notice_id}", response_model=ApiResponse[NoticeResponse])
async def update_notice(
    notice_id: int,
    payload: NoticeUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notice", "manage"))
):
    data = await NoticeService(session).update_notice(notice_id, payload, current_user.id, request)
    return {"success": True, "data": data}

@router.delete("/{notice_id}", response_model=ApiResponse[MessageData])
async def delete_notice(
    notice_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notice", "manage"))
):
    await NoticeService(session).delete_notice(notice_id, current_user.id, request)
    return {"success": True, "data": {"message": "Notice deleted successfully"}}
