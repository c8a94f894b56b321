from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.auth.scope import resolve_scope
from app.core.database import get_async_session
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.common.response import ApiResponse
from app.services.hr.attendance_service import AttendanceService
from app.schemas.hr.attendance_schema import AttendanceResponse, AttendanceResult, TodayAttendance
from app.models.auth.user import User

router = APIRouter()

@router.post("/checkin", response_model=ApiResponse[AttendanceResult], status_code=status.HTTP_201_CREATED)
async def check_in(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("attendance", "check"))
):
    """Start today's attendance record"""
    record = await AttendanceService(session).check_in(current_user, request)
    return {"success": True, "data": {"record": record}}

@router.post("/checkout", response_model=ApiResponse[AttendanceResult])
async def check_out(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("attendance", "check"))
):
    """Close today's attendance record"""
    record = await AttendanceService(session).check_out(current_user, request)
    return {"success": True, "data": {"record": record}}

@router.get("/today", response_model=ApiResponse[TodayAttendance])
async def get_today(
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("attendance", "view"))
):
    return {"success": True, "data": await AttendanceService(session).get_today(current_user)}

@router.get("/", response_model=ApiResponse[PaginatedResponse[AttendanceResponse]])
async def get_attendance(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    user_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("attendance", "view"))
):
    """Attendance records visible to the caller, newest day first"""
    data = await AttendanceService(session).get_attendance(
        resolve_scope(current_user), page_index, page_size, user_id, start_date, end_date
    )
    return {"success": True, "data": data}
