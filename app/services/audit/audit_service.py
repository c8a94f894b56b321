import logging
from typing import Any, Dict, Optional
from fastapi import Request
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from app.core.request_context import get_request_context
from app.models.auth.audit_log import AuditLog
from app.models.shared.enums import AuditAction

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        action: AuditAction,
        entity: str,
        entity_id: Optional[Any] = None,
        user_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        request: Optional[Request] = None,
    ) -> None:
        """Append an audit record; failures are logged and never raised"""
        try:
            context = get_request_context(request) if request is not None else {}
            audit_log = AuditLog(
                user_id=user_id,
                action=action.value if isinstance(action, AuditAction) else str(action),
                entity=entity,
                entity_id=str(entity_id) if entity_id is not None else None,
                details=details,
                ip_address=context.get("ip_address"),
                user_agent=context.get("user_agent"),
            )
            self.session.add(audit_log)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error logging audit event {action} on {entity}: {str(e)}")

    async def get_logs(
        self,
        page_index: int = 1,
        page_size: int = 50,
        entity: Optional[str] = None,
        action: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        query = select(AuditLog).options(selectinload(AuditLog.user))
        if entity:
            query = query.where(AuditLog.entity == entity)
        if action:
            query = query.where(AuditLog.action == action)
        if user_id is not None:
            query = query.where(AuditLog.user_id == user_id)

        total_result = await self.session.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }
