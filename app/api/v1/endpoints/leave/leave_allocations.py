from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.auth.scope import resolve_scope
from app.core.database import get_async_session
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse
from app.schemas.leave.leave_allocation_schema import LeaveAllocationCreate, LeaveAllocationUpdate, LeaveAllocationResponse
from app.services.leave.leave_allocation_service import LeaveAllocationService

router = APIRouter()

@router.get("/", response_model=ApiResponse[List[LeaveAllocationResponse]])
async def get_leave_allocations(
    user_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    leave_type_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_allocation", "view"))
):
    """Allocations with their remaining balance, limited to what the caller may see"""
    data = await LeaveAllocationService(session).get_allocations(
        resolve_scope(current_user), user_id, year, leave_type_id
    )
    return {"success": True, "data": data}

@router.post("/", response_model=ApiResponse[LeaveAllocationResponse], status_code=status.HTTP_201_CREATED)
async def create_leave_allocation(
    allocation: LeaveAllocationCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_allocation", "manage"))
):
    data = await LeaveAllocationService(session).create_allocation(allocation, current_user.id, request)
    return {"success": True, "data": data}

@router.put("/{allocation_id}", response_model=ApiResponse[LeaveAllocationResponse])
async def update_leave_allocation(
    allocation_id: int,
    allocation: LeaveAllocationUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("leave_allocation", "manage"))
):
    data = await LeaveAllocationService(session).update_allocation(allocation_id, allocation, current_user.id, request)
    return {"success": True, "data": data}
