from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse, MessageData
from app.schemas.organization.team_schema import TeamCreate, TeamUpdate, TeamResponse
from app.services.organization.team_service import TeamService

router = APIRouter()

@router.get("/", response_model=ApiResponse[List[TeamResponse]])
async def get_teams(
    department_id: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("team", "view"))
):
    return {"success": True, "data": await TeamService(session).get_teams(department_id, is_active)}

@router.get("/{team_id}", response_model=ApiResponse[TeamResponse])
async def get_team(
    team_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("team", "view"))
):
    team = await TeamService(session).get_team(team_id)
    if team is None:
        raise NotFoundError("Team not found")
    return {"success": True, "data": team}

@router.post("/", response_model=ApiResponse[TeamResponse], status_code=status.HTTP_201_CREATED)
async def create_team(
    team: TeamCreate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("team", "create"))
):
    return {"success": True, "data": await TeamService(session).create_team(team, current_user.id, request)}

@router.put("/{team_id}", response_model=ApiResponse[TeamResponse])
async def update_team(
    team_id: int,
    team: TeamUpdate,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("team", "edit"))
):
    return {"success": True, "data": await TeamService(session).update_team(team_id, team, current_user.id, request)}

@router.delete("/{team_id}", response_model=ApiResponse[MessageData])
async def delete_team(
    team_id: int,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("team", "delete"))
):
    await TeamService(session).delete_team(team_id, current_user.id, request)
    return {"success": True, "data": {"message": "Team deleted successfully"}}
