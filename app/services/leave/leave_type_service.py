import logging
from typing import Optional, List
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from app.core.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from app.models.leave.leave_allocation import LeaveAllocation
from app.models.leave.leave_type import LeaveType
from app.models.shared.enums import AuditAction
from app.schemas.leave.leave_type_schema import LeaveTypeCreate, LeaveTypeUpdate
from app.services.audit.audit_service import AuditService

logger = logging.getLogger(__name__)


class LeaveTypeService:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---------- Getters ----------
    async def get_leave_type(self, leave_type_id: int) -> Optional[LeaveType]:
        result = await self.session.execute(
            select(LeaveType).where(LeaveType.id == leave_type_id, LeaveType.is_deleted == False)
        )
        return result.scalar_one_or_none()

    async def get_leave_types(self, is_active: Optional[bool] = None) -> List[LeaveType]:
        query = select(LeaveType).where(LeaveType.is_deleted == False)
        if is_active is not None:
            query = query.where(LeaveType.is_active == is_active)
        result = await self.session.execute(query.order_by(LeaveType.name))
        return result.scalars().all()

    async def _ensure_unique(self, code: Optional[str], name: Optional[str], exclude_id: Optional[int] = None):
        for column, value, message in (
            (LeaveType.code, code, "Leave type code already exists"),
            (LeaveType.name, name, "Leave type name already exists"),
        ):
            if not value:
                continue
            query = select(LeaveType.id).where(column == value)
            if exclude_id is not None:
                query = query.where(LeaveType.id != exclude_id)
            if (await self.session.execute(query.limit(1))).scalar_one_or_none() is not None:
                raise ConflictError(message)

    # ---------- Create / Update / Delete ----------
    async def create_leave_type(self, data: LeaveTypeCreate, created_by: int, request: Optional[Request] = None) -> LeaveType:
        await self._ensure_unique(data.code, data.name)
        try:
            leave_type = LeaveType(**data.model_dump(), is_active=True, created_by=created_by)
            self.session.add(leave_type)
            await self.session.commit()
            logger.info(f"Leave type created: {leave_type.code}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating leave type: {e}")
            raise InternalError("Error creating leave type")

        await AuditService(self.session).log(AuditAction.CREATE, "LEAVE_TYPE", leave_type.id, created_by,
                                             details={"code": data.code}, request=request)
        return await self.get_leave_type(leave_type.id)

    async def update_leave_type(self, leave_type_id: int, data: LeaveTypeUpdate, updated_by: int,
                                request: Optional[Request] = None) -> LeaveType:
        leave_type = await self.get_leave_type(leave_type_id)
        if not leave_type:
            raise NotFoundError("Leave type not found")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("code"):
            changes["code"] = changes["code"].strip().upper()
        await self._ensure_unique(
            changes.get("code") if changes.get("code") != leave_type.code else None,
            changes.get("name") if changes.get("name") != leave_type.name else None,
            exclude_id=leave_type_id,
        )
        try:
            for field, value in changes.items():
                setattr(leave_type, field, value)
            leave_type.updated_by = updated_by
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating leave type {leave_type_id}: {e}")
            raise InternalError("Error updating leave type")

        await AuditService(self.session).log(AuditAction.UPDATE, "LEAVE_TYPE", leave_type_id, updated_by,
                                             details={"fields": sorted(changes)}, request=request)
        return await self.get_leave_type(leave_type_id)

    async def delete_leave_type(self, leave_type_id: int, deleted_by: int, request: Optional[Request] = None) -> None:
        leave_type = await self.get_leave_type(leave_type_id)
        if not leave_type:
            raise NotFoundError("Leave type not found")

        allocations = await self.session.scalar(
            select(func.count(LeaveAllocation.id)).where(LeaveAllocation.leave_type_id == leave_type_id)
        )
        if allocations:
            raise ValidationError("Cannot delete leave type with existing allocations. Deactivate it instead.")

        code = leave_type.code
        try:
            await self.session.execute(delete(LeaveType).where(LeaveType.id == leave_type_id))
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting leave type {leave_type_id}: {e}")
            raise InternalError("Error deleting leave type")

        logger.info(f"Leave type deleted: {code}")
        await AuditService(self.session).log(AuditAction.DELETE, "LEAVE_TYPE", leave_type_id, deleted_by,
                                             details={"code": code}, request=request)
