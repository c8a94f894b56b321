import logging
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, get_permission_checker_dependency, require_permission
from app.auth.permissions import PermissionChecker
from app.auth.scope import resolve_scope
from app.core.database import get_async_session
from app.models.auth.user import User
from app.models.shared.enums import LeaveStatus
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.common.response import ApiResponse
from app.schemas.leave.leave_request_schema import LeaveRequestCreate, LeaveRequestResponse, LeaveRequestStatusUpdate
from app.services.leave.leave_request_service import LeaveRequestService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=ApiResponse[PaginatedResponse[LeaveRequestResponse]])
async def get_leave_requests(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None),
    leave_type_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_request", "view"))
):
    data = await LeaveRequestService(session).get_leave_requests(
        current_user, resolve_scope(current_user), page_index, page_size, status_filter, user_id, leave_type_id
    )
    return {"success": True, "data": data}


@router.get("/{request_id}", response_model=ApiResponse[LeaveRequestResponse])
async def get_leave_request(
    request_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_request", "view"))
):
    data = await LeaveRequestService(session).get_visible_leave_request(request_id, resolve_scope(current_user))
    return {"success": True, "data": data}


@router.post("/", response_model=ApiResponse[LeaveRequestResponse], status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    payload: LeaveRequestCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_request", "create"))
):
    """Apply for leave against the caller's allocation for the start date's year"""
    data = await LeaveRequestService(session).create_leave_request(payload, current_user, request)
    return {"success": True, "data": data}


@router.patch("/{request_id}", response_model=ApiResponse[LeaveRequestResponse])
async def update_leave_request_status(
    request_id: int,
    payload: LeaveRequestStatusUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
):
    """Approve / reject (ADMIN, HR) or cancel (owner, while pending)"""
    data = await LeaveRequestService(session).update_status(request_id, payload, current_user, checker, request)
    return {"success": True, "data": data}
