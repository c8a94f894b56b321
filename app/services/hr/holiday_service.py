import logging
from datetime import date
from typing import List, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.core.exceptions import InternalError, NotFoundError
from app.models.hr.holiday import Holiday
from app.models.shared.enums import AuditAction
from app.schemas.hr.holiday_schema import HolidayCreate, HolidayUpdate
from app.services.audit.audit_service import AuditService

logger = logging.getLogger(__name__)


class HolidayService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_holiday(self, holiday_id: int) -> Optional[Holiday]:
        result = await self.session.execute(
            select(Holiday)
            .where(Holiday.id == holiday_id, Holiday.is_deleted == False)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_holidays(self, year: int, include_inactive: bool = False) -> List[Holiday]:
        query = select(Holiday).where(
            Holiday.is_deleted == False,
            Holiday.date >= date(year, 1, 1),
            Holiday.date <= date(year, 12, 31),
        )
        if not include_inactive:
            query = query.where(Holiday.is_active == True)
        result = await self.session.execute(query.order_by(Holiday.date.asc(), Holiday.id.asc()))
        return result.scalars().all()

    async def create_holiday(self, data: HolidayCreate, created_by: int, request: Optional[Request] = None) -> Holiday:
        try:
            holiday = Holiday(**data.model_dump(), is_active=True, created_by=created_by)
            self.session.add(holiday)
            await self.session.commit()
            holiday_id = holiday.id
            logger.info(f"Holiday created: {holiday.name} on {holiday.date}")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating holiday: {e}")
            raise InternalError("Error creating holiday")

        await AuditService(self.session).log(
            AuditAction.CREATE, "HOLIDAY", holiday_id, created_by,
            details={"name": holiday.name, "date": holiday.date.isoformat()}, request=request,
        )
        return await self.get_holiday(holiday_id)

    async def update_holiday(self, holiday_id: int, data: HolidayUpdate, updated_by: int,
                             request: Optional[Request] = None) -> Holiday:
        holiday = await self.get_holiday(holiday_id)
        if not holiday:
            raise NotFoundError("Holiday not found")

        changes = data.model_dump(exclude_unset=True)
        try:
            for field, value in changes.items():
                setattr(holiday, field, value)
            holiday.updated_by = updated_by
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating holiday {holiday_id}: {e}")
            raise InternalError("Error updating holiday")

        await AuditService(self.session).log(AuditAction.UPDATE, "HOLIDAY", holiday_id, updated_by,
                                             details={"fields": sorted(changes)}, request=request)
        return await self.get_holiday(holiday_id)

    async def delete_holiday(self, holiday_id: int, deleted_by: int, request: Optional[Request] = None) -> None:
        holiday = await self.get_holiday(holiday_id)
        if not holiday:
            raise NotFoundError("Holiday not found")
        details = {"name": holiday.name, "date": holiday.date.isoformat()}
        try:
            await self.session.delete(holiday)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting holiday {holiday_id}: {e}")
            raise InternalError("Error deleting holiday")

        await AuditService(self.session).log(AuditAction.DELETE, "HOLIDAY", holiday_id, deleted_by,
                                             details=details, request=request)
