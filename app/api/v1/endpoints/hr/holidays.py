from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, get_permission_checker_dependency, require_permission
from app.auth.permissions import PermissionChecker
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse, MessageData
from app.schemas.hr.holiday_schema import HolidayCreate, HolidayResponse, HolidayUpdate
from app.services.hr.attendance_service import local_today
from app.services.hr.holiday_service import HolidayService

router = APIRouter()

@router.get("/", response_model=ApiResponse[List[HolidayResponse]])
async def get_holidays(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    session: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
    _permission = Depends(require_permission("holiday", "view"))
):
    """Holidays of a calendar year (default: the current one), in date order"""
    holidays = await HolidayService(session).get_holidays(year or local_today().year, checker.can("holiday", "manage"))
    return {"success": True, "data": holidays}

@router.get("/{holiday_id}", response_model=ApiResponse[HolidayResponse])
async def get_holiday(
    holiday_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("holiday", "view"))
):
    holiday = await HolidayService(session).get_holiday(holiday_id)
    if holiday is None:
        raise NotFoundError("Holiday not found")
    return {"success": True, "data": holiday}

@router.post("/", response_model=ApiResponse[HolidayResponse], status_code=status.HTTP_201_CREATED)
async def create_holiday(
    payload: HolidayCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("holiday", "manage"))
):
    return {"success": True, "data": await HolidayService(session).create_holiday(payload, current_user.id, request)}

@router.put("/{holiday_id}", response_model=ApiResponse[HolidayResponse])
async def update_holiday(
    holiday_id: int,
    payload: HolidayUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("holiday", "manage"))
):
    data = await HolidayService(session).update_holiday(holiday_id, payload, current_user.id, request)
    return {"success": True, "data": data}

@router.delete("/{holiday_id}", response_model=ApiResponse[MessageData])
async def delete_holiday(
    holiday_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("holiday", "manage"))
):
    await HolidayService(session).delete_holiday(holiday_id, current_user.id, request)
    return {"success": True, "data": {"message": "Holiday deleted successfully"}}
