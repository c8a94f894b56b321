import logging
from typing import Optional, List
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, delete
from sqlalchemy.orm import selectinload
from app.core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from app.models.auth.user import User
from app.models.organization.department import Department
from app.models.organization.team import Team
from app.models.shared.enums import AuditAction
from app.schemas.organization.department_schema import DepartmentCreate, DepartmentUpdate
from app.services.audit.audit_service import AuditService

logger = logging.getLogger(__name__)


class DepartmentService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- Getters ----------
    async def get_department(self, department_id: int) -> Optional[Department]:
        result = await self.session.execute(
            select(Department)
            .options(selectinload(Department.head))
            .where(
                Department.id == department_id,
                Department.is_deleted == False
            )
        )
        return result.scalar_one_or_none()

    async def get_departments(
        self,
        search: Optional[str] = None,
        branch_id: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> List[Department]:
        query = select(Department).options(selectinload(Department.head)).where(Department.is_deleted == False)
        if search:
            query = query.where(or_(Department.name.ilike(f"%{search}%"), Department.code.ilike(f"%{search}%")))
        if branch_id is not None:
            query = query.where(Department.branch_id == branch_id)
        if is_active is not None:
            query = query.where(Department.is_active == is_active)
        result = await self.session.execute(query.order_by(Department.name))
        return result.scalars().all()

    async def _code_taken(self, code: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Department.id).where(Department.code == code)
        if exclude_id is not None:
            query = query.where(Department.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    # ---------- Create / Update / Delete ----------
    async def create_department(self, data: DepartmentCreate, created_by: int, request: Optional[Request] = None) -> Department:
        if await self._code_taken(data.code):
            raise ConflictError("Department code already exists")
        try:
            dept = Department(**data.model_dump(), is_active=True, created_by=created_by)
            self.session.add(dept)
            await self.session.commit()
            logger.info(f"Department created: {dept.code}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating department: {e}")
            raise InternalError("Error creating department")

        await AuditService(self.session).log(AuditAction.CREATE, "DEPARTMENT", dept.id, created_by,
                                             details={"code": data.code}, request=request)
        return await self.get_department(dept.id)

    async def update_department(self, department_id: int, data: DepartmentUpdate, updated_by: int,
                                request: Optional[Request] = None) -> Department:
        dept = await self.get_department(department_id)
        if not dept:
            raise NotFoundError("Department not found")
        if data.code and data.code != dept.code and await self._code_taken(data.code, department_id):
            raise ConflictError("Department code already exists")

        changes = data.model_dump(exclude_unset=True)
        try:
            for field, value in changes.items():
                setattr(dept, field, value)
            dept.updated_by = updated_by
            await self.session.commit()
            logger.info(f"Department updated: {department_id}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating department {department_id}: {e}")
            raise InternalError("Error updating department")

        await AuditService(self.session).log(AuditAction.UPDATE, "DEPARTMENT", department_id, updated_by,
                                             details={"fields": sorted(changes)}, request=request)
        return await self.get_department(department_id)

    async def delete_department(self, department_id: int, deleted_by: int, request: Optional[Request] = None) -> None:
        dept = await self.get_department(department_id)
        if not dept:
            raise NotFoundError("Department not found")

        users = await self.session.scalar(
            select(func.count(User.id)).where(User.department_id == department_id)
        )
        teams = await self.session.scalar(
            select(func.count(Team.id)).where(Team.department_id == department_id)
        )
        if users or teams:
            raise ValidationError(
                "Cannot delete department with users or teams. Remove them first or deactivate the department."
            )

        code = dept.code
        try:
            await self.session.execute(delete(Department).where(Department.id == department_id))
            await self.session.commit()
            logger.info(f"Department deleted: {code}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting department {department_id}: {e}")
            raise InternalError("Error deleting department")

        await AuditService(self.session).log(AuditAction.DELETE, "DEPARTMENT", department_id, deleted_by,
                                             details={"code": code}, request=request)
