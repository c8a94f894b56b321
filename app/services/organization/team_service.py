import logging
from typing import Optional, List
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from sqlalchemy.orm import selectinload
from app.core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from app.models.auth.user import User
from app.models.organization.team import Team
from app.models.shared.enums import AuditAction
from app.schemas.organization.team_schema import TeamCreate, TeamUpdate
from app.services.audit.audit_service import AuditService

logger = logging.getLogger(__name__)


class TeamService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_team(self, team_id: int) -> Optional[Team]:
        result = await self.session.execute(
            select(Team).options(selectinload(Team.lead)).where(Team.id == team_id, Team.is_deleted == False)
        )
        return result.scalar_one_or_none()

    async def get_teams(self, department_id: Optional[int] = None, is_active: Optional[bool] = None) -> List[Team]:
        query = select(Team).options(selectinload(Team.lead)).where(Team.is_deleted == False)
        if department_id is not None:
            query = query.where(Team.department_id == department_id)
        if is_active is not None:
            query = query.where(Team.is_active == is_active)
        result = await self.session.execute(query.order_by(Team.name))
        return result.scalars().all()

    async def _code_taken(self, code: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Team.id).where(Team.code == code)
        if exclude_id is not None:
            query = query.where(Team.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def create_team(self, data: TeamCreate, created_by: int, request: Optional[Request] = None) -> Team:
        if await self._code_taken(data.code):
            raise ConflictError("Team code already exists")
        try:
            team = Team(**data.model_dump(), is_active=True, created_by=created_by)
            self.session.add(team)
            await self.session.commit()
            logger.info(f"Team created: {team.code}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating team: {e}")
            raise InternalError("Error creating team")

        await AuditService(self.session).log(AuditAction.CREATE, "TEAM", team.id, created_by,
                                             details={"code": data.code}, request=request)
        return await self.get_team(team.id)

    async def update_team(self, team_id: int, data: TeamUpdate, updated_by: int, request: Optional[Request] = None) -> Team:
        team = await self.get_team(team_id)
        if not team:
            raise NotFoundError("Team not found")
        if data.code and data.code != team.code and await self._code_taken(data.code, team_id):
            raise ConflictError("Team code already exists")

        changes = data.model_dump(exclude_unset=True)
        try:
            for field, value in changes.items():
                setattr(team, field, value)
            team.updated_by = updated_by
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating team {team_id}: {e}")
            raise InternalError("Error updating team")

        await AuditService(self.session).log(AuditAction.UPDATE, "TEAM", team_id, updated_by,
                                             details={"fields": sorted(changes)}, request=request)
        return await self.get_team(team_id)

    async def delete_team(self, team_id: int, deleted_by: int, request: Optional[Request] = None) -> None:
        team = await self.get_team(team_id)
        if not team:
            raise NotFoundError("Team not found")

        members = await self.session.scalar(select(func.count(User.id)).where(User.team_id == team_id))
        if members:
            raise ValidationError("Cannot delete team with members. Remove them first or deactivate the team.")

        code = team.code
        try:
            await self.session.execute(delete(Team).where(Team.id == team_id))
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting team {team_id}: {e}")
            raise InternalError("Error deleting team")

        logger.info(f"Team deleted: {code}")
        await AuditService(self.session).log(AuditAction.DELETE, "TEAM", team_id, deleted_by,
                                             details={"code": code}, request=request)
