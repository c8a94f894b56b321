import logging
from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.auth.scope import can_access, resolve_scope
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError
from app.models.auth.user import User
from app.models.shared.enums import UserRole
from app.schemas.auth.user import UserCreate, UserUpdate, UserResponse
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.common.response import ApiResponse
from app.services.auth.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=ApiResponse[PaginatedResponse[UserResponse]])
async def get_users(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    search: Optional[str] = Query(None),
    role: Optional[UserRole] = Query(None),
    department_id: Optional[int] = Query(None),
    team_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("user", "view"))
):
    """List users visible to the caller (all / department / team / self)"""
    data = await UserService(session).get_users(
        resolve_scope(current_user), page_index, page_size, search, role, department_id, team_id, is_active
    )
    return {"success": True, "data": data}


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("user", "view"))
):
    user = await UserService(session).get_user(user_id)
    if user is None or not can_access(resolve_scope(current_user), user):
        raise NotFoundError("User not found")
    return {"success": True, "data": user}


@router.post("/", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("user", "create"))
):
    """Create a user and send the welcome email"""
    user = await UserService(session).create_user(user_data, current_user.id, request)
    return {"success": True, "data": user}


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("user", "edit"))
):
    user = await UserService(session).update_user(user_id, user_data, current_user.id, request)
    return {"success": True, "data": user}
