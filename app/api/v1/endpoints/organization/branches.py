import logging
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse, MessageData
from app.schemas.organization.branch_schema import BranchCreate, BranchUpdate, BranchResponse
from app.services.organization.branch_service import BranchService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=ApiResponse[List[BranchResponse]])
async def get_branches(
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("branch", "view"))
):
    return {"success": True, "data": await BranchService(session).get_branches(search, is_active)}


@router.get("/{branch_id}", response_model=ApiResponse[BranchResponse])
async def get_branch(
    branch_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("branch", "view"))
):
    branch = await BranchService(session).get_branch(branch_id)
    if branch is None:
        raise NotFoundError("Branch not found")
    return {"success": True, "data": branch}


@router.post("/", response_model=ApiResponse[BranchResponse], status_code=status.HTTP_201_CREATED)
async def create_branch(
    branch: BranchCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("branch", "create"))
):
    data = await BranchService(session).create_branch(branch, current_user.id, request)
    return {"success": True, "data": data}


@router.put("/{branch_id}", response_model=ApiResponse[BranchResponse])
async def update_branch(
    branch_id: int,
    branch: BranchUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("branch", "edit"))
):
    data = await BranchService(session).update_branch(branch_id, branch, current_user.id, request)
    return {"success": True, "data": data}


@router.delete("/{branch_id}", response_model=ApiResponse[MessageData])
async def delete_branch(
    branch_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("branch", "delete"))
):
    """Delete a branch that has no departments or users"""
    await BranchService(session).delete_branch(branch_id, current_user.id, request)
    return {"success": True, "data": {"message": "Branch deleted successfully"}}
