import logging
from typing import List, Optional
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.orm import selectinload
from app.core.exceptions import InternalError, NotFoundError
from app.db.base import utcnow
from app.models.auth.user import User
from app.models.notices.notice import Notice
from app.models.shared.enums import AuditAction, NoticeType
from app.schemas.notices.notice_schema import NoticeCreate, NoticeUpdate
from app.services.audit.audit_service import AuditService
from app.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)

ANNOUNCED_TYPES = (NoticeType.IMPORTANT, NoticeType.URGENT)


class NoticeService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_notice(self, notice_id: int, include_inactive: bool = False) -> Optional[Notice]:
        query = (
            select(Notice)
            .options(selectinload(Notice.author))
            .where(Notice.id == notice_id, Notice.is_deleted == False)
        )
        if not include_inactive:
            query = query.where(Notice.is_active == True, or_(Notice.expires_at.is_(None), Notice.expires_at > utcnow()))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_notices(self, include_inactive: bool = False, notice_type: Optional[NoticeType] = None) -> List[Notice]:
        """Managers of notices see everything; everybody else only live ones"""
        query = select(Notice).options(selectinload(Notice.author)).where(Notice.is_deleted == False)
        if not include_inactive:
            query = query.where(Notice.is_active == True, or_(Notice.expires_at.is_(None), Notice.expires_at > utcnow()))
        if notice_type is not None:
            query = query.where(Notice.type == notice_type)
        result = await self.session.execute(query.order_by(Notice.published_at.desc(), Notice.id.desc()))
        return result.scalars().all()

    async def create_notice(self, data: NoticeCreate, author: User, request: Optional[Request] = None) -> Notice:
        author_id = author.id
        author_name = author.full_name
        try:
            notice = Notice(**data.model_dump(), is_active=True, author_id=author_id, created_by=author_id)
            self.session.add(notice)
            await self.session.commit()
            notice_id = notice.id
            logger.info(f"Notice published: {notice_id} ({data.type.value})")
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating notice: {e}")
            raise InternalError("Error creating notice")

        await AuditService(self.session).log(AuditAction.CREATE, "NOTICE", notice_id, author_id,
                                             details={"type": data.type.value, "title": data.title}, request=request)
        if data.type in ANNOUNCED_TYPES:
            await NotificationService(self.session).notify_announcement(
                await self.get_notice(notice_id, include_inactive=True), published_by=author_name
            )
        return await self.get_notice(notice_id, include_inactive=True)

    async def update_notice(self, notice_id: int, data: NoticeUpdate, updated_by: int,
                            request: Optional[Request] = None) -> Notice:
        notice = await self.get_notice(notice_id, include_inactive=True)
        if not notice:
            raise NotFoundError("Notice not found")

        changes = data.model_dump(exclude_unset=True)
        try:
            for field, value in changes.items():
                setattr(notice, field, value)
            notice.updated_by = updated_by
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating notice {notice_id}: {e}")
            raise InternalError("Error updating notice")

        await AuditService(self.session).log(AuditAction.UPDATE, "NOTICE", notice_id, updated_by,
                                             details={"fields": sorted(changes)}, request=request)
        return await self.get_notice(notice_id, include_inactive=True)

    async def delete_notice(self, notice_id: int, deleted_by: int, request: Optional[Request] = None) -> None:
        notice = await self.get_notice(notice_id, include_inactive=True)
        if not notice:
            raise NotFoundError("Notice not found")
        try:
            notice.is_deleted = True
            notice.updated_by = deleted_by
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting notice {notice_id}: {e}")
            raise InternalError("Error deleting notice")

        await AuditService(self.session).log(AuditAction.DELETE, "NOTICE", notice_id, deleted_by, request=request)
