from datetime import date
from fastapi import APIRouter, Depends, Query
from typing import Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import require_permission
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError, ValidationError
from app.models.shared.enums import EmailStatus, NotificationType
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.common.response import ApiResponse
from app.schemas.notification.email_log_schema import (
    BulkRetryResult,
    EmailLogDetail,
    EmailLogResponse,
    EmailStatsResult,
    RetryResult,
)
from app.services.notification.email_queue import EmailQueueService

router = APIRouter()

@router.get("/", response_model=ApiResponse[Union[EmailStatsResult, PaginatedResponse[EmailLogResponse]]])
async def get_email_logs(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    status_filter: Optional[EmailStatus] = Query(None, alias="status"),
    notification_type: Optional[NotificationType] = Query(None, alias="type"),
    recipient_email: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    stats: bool = Query(False),
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_log", "view"))
):
    """Paginated email log, or queue statistics with ``stats=true``"""
    queue = EmailQueueService(session)
    if stats:
        return {"success": True, "data": {"stats": await queue.get_stats()}}

    data = await queue.get_logs(
        page_index, page_size, status_filter, notification_type, recipient_email, start_date, end_date
    )
    return {"success": True, "data": data}

@router.post("/", response_model=ApiResponse[BulkRetryResult])
async def retry_failed_emails(
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_queue", "manage"))
):
    """Requeue every failed email that still has attempts left"""
    requeued = await EmailQueueService(session).retry_failed()
    return {"success": True, "data": {"requeued": requeued}}

@router.get("/{log_id}", response_model=ApiResponse[EmailLogDetail])
async def get_email_log(
    log_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_log", "view"))
):
    log = await EmailQueueService(session).get_log(log_id)
    if log is None:
        raise NotFoundError("Email log not found")
    return {"success": True, "data": log}

@router.post("/{log_id}", response_model=ApiResponse[RetryResult])
async def retry_email(
    log_id: int,
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_queue", "manage"))
):
    """FAILED -> PENDING for the next processing pass"""
    if not await EmailQueueService(session).retry(log_id):
        raise ValidationError("Failed to retry email. It may not exist or is not in FAILED status.")
    return {"success": True, "data": {"message": "Email queued for retry"}}
