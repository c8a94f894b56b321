from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse, MessageData
from app.schemas.leave.leave_type_schema import LeaveTypeCreate, LeaveTypeUpdate, LeaveTypeResponse
from app.services.leave.leave_type_service import LeaveTypeService

router = APIRouter()

@router.get("/", response_model=ApiResponse[List[LeaveTypeResponse]])
async def get_leave_types(
    is_active: Optional[bool] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("leave_type", "view"))
):
    return {"success": True, "data": await LeaveTypeService(session).get_leave_types(is_active)}

@router.get("/{leave_type_id}", response_model=ApiResponse[LeaveTypeResponse])
async def get_leave_type(
    leave_type_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("leave_type", "view"))
):
    leave_type = await LeaveTypeService(session).get_leave_type(leave_type_id)
    if leave_type is None:
        raise NotFoundError("Leave type not found")
    return {"success": True, "data": leave_type}

@router.post("/", response_model=ApiResponse[LeaveTypeResponse], status_code=status.HTTP_201_CREATED)
async def create_leave_type(
    leave_type: LeaveTypeCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_type", "create"))
):
    data = await LeaveTypeService(session).create_leave_type(leave_type, current_user.id, request)
    return {"success": True, "data": data}

@router.put("/{leave_type_id}", response_model=ApiResponse[LeaveTypeResponse])
async def update_leave_type(
    leave_type_id: int,
    leave_type: LeaveTypeUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_type", "edit"))
):
    data = await LeaveTypeService(session).update_leave_type(leave_type_id, leave_type, current_user.id, request)
    return {"success": True, "data": data}

@router.delete("/{leave_type_id}", response_model=ApiResponse[MessageData])
async def delete_leave_type(
    leave_type_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_type", "delete"))
):
    await LeaveTypeService(session).delete_leave_type(leave_type_id, current_user.id, request)
    return {"success": True, "data": {"message": "Leave type deleted successfully"}}
