from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, get_permission_checker_dependency, require_permission
from app.auth.permissions import PermissionChecker
from app.auth.scope import resolve_scope
from app.core.database import get_async_session
from app.models.auth.user import User
from app.models.shared.enums import LeaveStatus, RequestType
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.common.response import ApiResponse
from app.schemas.requests.employee_request_schema import (
    EmployeeRequestCreate,
    EmployeeRequestResponse,
    EmployeeRequestStatusUpdate,
)
from app.services.requests.employee_request_service import EmployeeRequestService

router = APIRouter()

@router.get("/", response_model=ApiResponse[PaginatedResponse[EmployeeRequestResponse]])
async def get_requests(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    request_type: Optional[RequestType] = Query(None, alias="type"),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("request", "view"))
):
    data = await EmployeeRequestService(session).get_requests(
        resolve_scope(current_user), page_index, page_size, status_filter, request_type
    )
    return {"success": True, "data": data}

@router.get("/{request_id}", response_model=ApiResponse[EmployeeRequestResponse])
async def get_request(
    request_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("request", "view"))
):
    data = await EmployeeRequestService(session).get_visible_request(request_id, resolve_scope(current_user))
    return {"success": True, "data": data}

@router.post("/", response_model=ApiResponse[EmployeeRequestResponse], status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: EmployeeRequestCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("request", "create"))
):
    data = await EmployeeRequestService(session).create_request(payload, current_user, request)
    return {"success": True, "data": data}

@router.patch("/{request_id}", response_model=ApiResponse[EmployeeRequestResponse])
async def update_request_status(
    request_id: int,
    payload: EmployeeRequestStatusUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
):
    """Approve / reject (ADMIN, HR) or cancel (owner, while pending)"""
    data = await EmployeeRequestService(session).update_status(request_id, payload, current_user, checker, request)
    return {"success": True, "data": data}
