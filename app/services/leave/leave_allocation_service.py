import logging
from typing import Optional, List
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from app.auth.scope import Scope, scope_condition
from app.core.exceptions import ConflictError, InternalError, NotFoundError
from app.models.auth.user import User
from app.models.leave.leave_allocation import LeaveAllocation
from app.models.leave.leave_type import LeaveType
from app.models.shared.enums import AuditAction
from app.schemas.leave.leave_allocation_schema import LeaveAllocationCreate, LeaveAllocationUpdate
from app.services.audit.audit_service import AuditService

logger = logging.getLogger(__name__)


class LeaveAllocationService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_allocation(self, allocation_id: int) -> Optional[LeaveAllocation]:
        result = await self.session.execute(
            select(LeaveAllocation)
            .options(selectinload(LeaveAllocation.leave_type))
            .where(LeaveAllocation.id == allocation_id, LeaveAllocation.is_deleted == False)
        )
        return result.scalar_one_or_none()

    async def find_allocation(self, user_id: int, leave_type_id: int, year: int) -> Optional[LeaveAllocation]:
        result = await self.session.execute(
            select(LeaveAllocation).where(
                LeaveAllocation.user_id == user_id,
                LeaveAllocation.leave_type_id == leave_type_id,
                LeaveAllocation.year == year,
                LeaveAllocation.is_deleted == False,
            ).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_allocations(
        self,
        scope: Scope,
        user_id: Optional[int] = None,
        year: Optional[int] = None,
        leave_type_id: Optional[int] = None,
    ) -> List[LeaveAllocation]:
        query = (
            select(LeaveAllocation)
            .options(selectinload(LeaveAllocation.leave_type))
            .where(LeaveAllocation.is_deleted == False, scope_condition(scope, LeaveAllocation.user_id))
        )
        if user_id is not None:
            query = query.where(LeaveAllocation.user_id == user_id)
        if year is not None:
            query = query.where(LeaveAllocation.year == year)
        if leave_type_id is not None:
            query = query.where(LeaveAllocation.leave_type_id == leave_type_id)
        result = await self.session.execute(
            query.order_by(LeaveAllocation.year.desc(), LeaveAllocation.user_id, LeaveAllocation.leave_type_id)
        )
        return result.scalars().all()

    async def create_allocation(self, data: LeaveAllocationCreate, created_by: int,
                                request: Optional[Request] = None) -> LeaveAllocation:
        if await self.session.get(User, data.user_id) is None:
            raise NotFoundError("User not found")
        if await self.session.get(LeaveType, data.leave_type_id) is None:
            raise NotFoundError("Leave type not found")
        if await self.find_allocation(data.user_id, data.leave_type_id, data.year) is not None:
            raise ConflictError("Leave allocation already exists for this user, leave type and year")

        try:
            allocation = LeaveAllocation(**data.model_dump(), used=0, created_by=created_by)
            self.session.add(allocation)
            await self.session.commit()
            logger.info(f"Leave allocation created for user {data.user_id}, type {data.leave_type_id}, {data.year}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating leave allocation: {e}")
            raise InternalError("Error creating leave allocation")

        await AuditService(self.session).log(
            AuditAction.CREATE, "LEAVE_ALLOCATION", allocation.id, created_by,
            details={"user_id": data.user_id, "leave_type_id": data.leave_type_id, "year": data.year,
                     "allocated": str(data.allocated)},
            request=request,
        )
        return await self.get_allocation(allocation.id)

    async def update_allocation(self, allocation_id: int, data: LeaveAllocationUpdate, updated_by: int,
                                request: Optional[Request] = None) -> LeaveAllocation:
        allocation = await self.get_allocation(allocation_id)
        if not allocation:
            raise NotFoundError("Leave allocation not found")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        try:
            for field, value in changes.items():
                setattr(allocation, field, value)
            allocation.updated_by = updated_by
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating leave allocation {allocation_id}: {e}")
            raise InternalError("Error updating leave allocation")

        await AuditService(self.session).log(
            AuditAction.UPDATE, "LEAVE_ALLOCATION", allocation_id, updated_by,
            details={field: str(value) for field, value in changes.items()}, request=request,
        )
        return await self.get_allocation(allocation_id)
