from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, get_permission_checker_dependency, require_permission
from app.auth.permissions import PermissionChecker
from app.core.database import get_async_session
from app.models.auth.user import User
from app.models.shared.enums import AssetCategory, AssetStatus
from app.schemas.assets.asset_schema import (
    AssetAssignmentResult, AssetAssignRequest, AssetCreate, AssetDetailResponse, AssetResponse,
    AssetReturnRequest, AssetUpdate,
)
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.common.response import ApiResponse, MessageData
from app.services.assets.asset_service import AssetService

router = APIRouter()


@router.get("/", response_model=ApiResponse[PaginatedResponse[AssetResponse]])
async def get_assets(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    category: Optional[AssetCategory] = Query(None),
    status_filter: Optional[AssetStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None),
    unassigned: bool = Query(False),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
    _permission = Depends(require_permission("asset", "view"))
):
    """Active assets; employees only get the ones assigned to them"""
    data = await AssetService(session).get_assets(
        current_user, checker, page_index, page_size, search, category, status_filter, user_id, unassigned
    )
    return {"success": True, "data": data}


@router.post("/assign", response_model=ApiResponse[AssetAssignmentResult], status_code=status.HTTP_201_CREATED)
async def assign_asset(
    payload: AssetAssignRequest,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("asset", "assign"))
):
    """Hand an AVAILABLE asset to a user; the user is told by email"""
    data = await AssetService(session).assign_asset(payload, current_user, request)
    return {"success": True, "data": data}


@router.patch("/assign", response_model=ApiResponse[AssetAssignmentResult])
async def return_asset(
    payload: AssetReturnRequest,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("asset", "return"))
):
    """Take an asset back from its holder and record the condition it came back in"""
    data = await AssetService(session).return_asset(payload, current_user, request)
    return {"success": True, "data": data}


@router.get("/{asset_id}", response_model=ApiResponse[AssetDetailResponse])
async def get_asset(
    asset_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
    _permission = Depends(require_permission("asset", "view"))
):
    data = await AssetService(session).get_visible_asset(asset_id, current_user, checker)
    return {"success": True, "data": data}


@router.post("/", response_model=ApiResponse[AssetResponse], status_code=status.HTTP_201_CREATED)
async def create_asset(
    payload: AssetCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("asset", "create"))
):
    data = await AssetService(session).create_asset(payload, current_user.id, request)
    return {"success": True, "data": data}


@router.patch("/{asset_id}", response_model=ApiResponse[AssetResponse])
async def update_asset(
    asset_id: int,
    payload: AssetUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("asset", "edit"))
):
    data = await AssetService(session).update_asset(asset_id, payload, current_user.id, request)
    return {"success": True, "data": data}


@router.delete("/{asset_id}", response_model=ApiResponse[MessageData])
async def delete_asset(
    asset_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("asset", "delete"))
):
    await AssetService(session).delete_asset(asset_id, current_user.id, request)
    return {"success": True, "data": {"message": "Asset deleted successfully"}}
