import logging
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from app.auth.scope import Scope, scope_condition
from app.core.config import settings
from app.core.exceptions import ForbiddenError, InternalError, ValidationError
from app.core.request_context import get_client_ip
from app.db.base import utcnow
from app.models.auth.user import User
from app.models.hr.attendance import Attendance
from app.schemas.organization.settings_schema import OnlineAttendanceSettings
from app.services.organization.settings_service import OrganizationSettingsService

logger = logging.getLogger(__name__)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware (UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_today() -> date:
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def online_checkin_allowed(config: OnlineAttendanceSettings, user: User) -> bool:
    if not config.enabled:
        return False
    if config.scope == "all":
        return True
    if config.scope == "department":
        return user.department_id is not None and user.department_id in config.department_ids
    if config.scope == "team":
        return user.team_id is not None and user.team_id in config.team_ids
    if config.scope == "specific":
        return user.id in config.user_ids
    return False


class AttendanceService:
    """
    Daily check-in / check-out.

    One record per (user, date): absent -> checked in -> checked out.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_record(self, user_id: int, attendance_date: date) -> Optional[Attendance]:
        result = await self.session.execute(
            select(Attendance).where(
                Attendance.user_id == user_id,
                Attendance.date == attendance_date,
                Attendance.is_deleted == False,
            )
        )
        return result.scalar_one_or_none()

    async def is_online_checkin_allowed(self, user: User) -> bool:
        config = await OrganizationSettingsService(self.session).get_config()
        return online_checkin_allowed(config.online_attendance, user)

    # ---------- Check in / out ----------
    async def check_in(self, user: User, request: Optional[Request] = None) -> Attendance:
        if not await self.is_online_checkin_allowed(user):
            raise ForbiddenError("Online check-in is not enabled for you")

        today = local_today()
        existing = await self._get_record(user.id, today)
        if existing is not None:
            if existing.check_out is None:
                raise ValidationError("Already checked in")
            raise ValidationError("Already completed attendance for today")

        user_id = user.id
        try:
            record = Attendance(
                user_id=user_id,
                date=today,
                check_in=utcnow(),
                check_in_ip=get_client_ip(request) if request is not None else None,
                created_by=user_id,
            )
            self.session.add(record)
            await self.session.commit()
        except IntegrityError:
            # Lost a race against a concurrent check-in for the same day
            await self.session.rollback()
            raise ValidationError("Already checked in")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error checking in user {user_id}: {e}")
            raise InternalError("Error checking in")

        logger.info(f"User {user_id} checked in for {today}")
        return record

    async def check_out(self, user: User, request: Optional[Request] = None) -> Attendance:
        today = local_today()
        record = await self._get_record(user.id, today)
        if record is None or record.check_in is None:
            raise ValidationError("Not checked in today")
        if record.check_out is not None:
            raise ValidationError("Already checked out")

        user_id = user.id
        try:
            now = utcnow()
            worked = now - ensure_utc(record.check_in)
            record.check_out = now
            record.check_out_ip = get_client_ip(request) if request is not None else None
            record.total_hours = Decimal(worked.total_seconds() / 3600).quantize(Decimal("0.01"), ROUND_HALF_UP)
            record.updated_by = user_id
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error checking out user {user_id}: {e}")
            raise InternalError("Error checking out")

        logger.info(f"User {user_id} checked out for {today} ({record.total_hours}h)")
        return record

    async def get_today(self, user: User) -> Dict[str, Any]:
        return {
            "record": await self._get_record(user.id, local_today()),
            "online_checkin_allowed": await self.is_online_checkin_allowed(user),
        }

    # ---------- Listing ----------
    async def get_attendance(
        self,
        scope: Scope,
        page_index: int = 1,
        page_size: int = 50,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        query = (
            select(Attendance)
            .options(selectinload(Attendance.user))
            .where(Attendance.is_deleted == False, scope_condition(scope, Attendance.user_id))
        )
        if user_id is not None:
            query = query.where(Attendance.user_id == user_id)
        if start_date:
            query = query.where(Attendance.date >= start_date)
        if end_date:
            query = query.where(Attendance.date <= end_date)

        total_result = await self.session.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            query.order_by(Attendance.date.desc(), Attendance.id.desc()).offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }
