from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import require_permission
from app.core.database import get_async_session
from app.models.shared.enums import AuditAction
from app.schemas.audit.audit_log_schema import AuditLogResponse
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.common.response import ApiResponse
from app.services.audit.audit_service import AuditService

router = APIRouter()

@router.get("/", response_model=ApiResponse[PaginatedResponse[AuditLogResponse]])
async def get_audit_logs(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    entity: Optional[str] = Query(None),
    action: Optional[AuditAction] = Query(None),
    user_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("audit_log", "view"))
):
    """Read-only audit trail; who may read it is configurable per organization"""
    data = await AuditService(session).get_logs(
        page_index, page_size, entity, action.value if action else None, user_id
    )
    return {"success": True, "data": data}
