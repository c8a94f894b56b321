import logging
from typing import Optional, List
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, delete
from app.core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from app.models.auth.user import User
from app.models.organization.branch import Branch
from app.models.organization.department import Department
from app.models.shared.enums import AuditAction
from app.schemas.organization.branch_schema import BranchCreate, BranchUpdate
from app.services.audit.audit_service import AuditService

logger = logging.getLogger(__name__)


class BranchService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- Getters ----------
    async def get_branch(self, branch_id: int) -> Optional[Branch]:
        result = await self.session.execute(
            select(Branch).where(Branch.id == branch_id, Branch.is_deleted == False)
        )
        return result.scalar_one_or_none()

    async def get_branches(self, search: Optional[str] = None, is_active: Optional[bool] = None) -> List[Branch]:
        query = select(Branch).where(Branch.is_deleted == False)
        if search:
            query = query.where(or_(Branch.name.ilike(f"%{search}%"), Branch.code.ilike(f"%{search}%")))
        if is_active is not None:
            query = query.where(Branch.is_active == is_active)
        result = await self.session.execute(query.order_by(Branch.name))
        return result.scalars().all()

    async def _code_taken(self, code: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Branch.id).where(Branch.code == code)
        if exclude_id is not None:
            query = query.where(Branch.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    # ---------- Create / Update / Delete ----------
    async def create_branch(self, data: BranchCreate, created_by: int, request: Optional[Request] = None) -> Branch:
        if await self._code_taken(data.code):
            raise ConflictError("Branch code already exists")
        try:
            branch = Branch(**data.model_dump(), is_active=True, created_by=created_by)
            self.session.add(branch)
            await self.session.commit()
            logger.info(f"Branch created: {branch.code}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating branch: {e}")
            raise InternalError("Error creating branch")

        await AuditService(self.session).log(AuditAction.CREATE, "BRANCH", branch.id, created_by,
                                             details={"code": data.code}, request=request)
        return await self.get_branch(branch.id)

    async def update_branch(self, branch_id: int, data: BranchUpdate, updated_by: int, request: Optional[Request] = None) -> Branch:
        branch = await self.get_branch(branch_id)
        if not branch:
            raise NotFoundError("Branch not found")
        if data.code and data.code != branch.code and await self._code_taken(data.code, branch_id):
            raise ConflictError("Branch code already exists")

        changes = data.model_dump(exclude_unset=True)
        try:
            for field, value in changes.items():
                setattr(branch, field, value)
            branch.updated_by = updated_by
            await self.session.commit()
            logger.info(f"Branch updated: {branch_id}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating branch {branch_id}: {e}")
            raise InternalError("Error updating branch")

        await AuditService(self.session).log(AuditAction.UPDATE, "BRANCH", branch_id, updated_by,
                                             details={"fields": sorted(changes)}, request=request)
        return await self.get_branch(branch_id)

    async def delete_branch(self, branch_id: int, deleted_by: int, request: Optional[Request] = None) -> None:
        branch = await self.get_branch(branch_id)
        if not branch:
            raise NotFoundError("Branch not found")

        departments = await self.session.scalar(
            select(func.count(Department.id)).where(Department.branch_id == branch_id)
        )
        users = await self.session.scalar(
            select(func.count(User.id)).where(User.branch_id == branch_id)
        )
        if departments or users:
            raise ValidationError(
                "Cannot delete branch with departments or users. Remove them first or deactivate the branch."
            )

        code = branch.code
        try:
            await self.session.execute(delete(Branch).where(Branch.id == branch_id))
            await self.session.commit()
            logger.info(f"Branch deleted: {code}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting branch {branch_id}: {e}")
            raise InternalError("Error deleting branch")

        await AuditService(self.session).log(AuditAction.DELETE, "BRANCH", branch_id, deleted_by,
                                             details={"code": code}, request=request)
