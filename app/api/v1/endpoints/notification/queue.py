import logging
from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.dependencies import get_current_user, require_permission
from app.core.config import settings
from app.core.database import get_async_session
from app.core.exceptions import ValidationError
from app.models.auth.user import User
from app.schemas.common.response import ApiResponse
from app.schemas.notification.email_log_schema import ProcessResult, QueueStatus, QueueTestRequest
from app.services.notification.email_queue import EmailQueueService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=ApiResponse[QueueStatus])
async def get_queue_status(
    session: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission("notification_log", "view"))
):
    queue = EmailQueueService(session)
    data = {
        "smtp_configured": queue.smtp_configured(),
        "pending_count": await queue.get_pending_count(),
        "stats": await queue.get_stats(),
    }
    return {"success": True, "data": data}


@router.post("/", response_model=ApiResponse[ProcessResult])
async def run_queue_action(
    action: str = Query("process"),
    batch_size: int = Query(settings.EMAIL_QUEUE_BATCH_SIZE, ge=1, le=500),
    payload: Optional[QueueTestRequest] = Body(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    _permission = Depends(require_permission("notification_queue", "manage"))
):
    """
    Manual queue pump.

    ``action=process`` delivers up to ``batch_size`` pending emails;
    ``action=test`` sends a test email to ``payload.email`` right away.
    """
    queue = EmailQueueService(session)

    if action == "test":
        if payload is None or not payload.email:
            raise ValidationError("Test email address is required")
        result = await queue.test_configuration(payload.email)
        # Outcome of the send, not of the request, drives `success`
        return JSONResponse(content={
            "success": result["success"],
            "data": {"message": result["message"]},
            "error": None if result["success"] else result["message"],
        })

    if action == "process":
        user_id = current_user.id
        result = await queue.process_queue(batch_size)
        logger.info(f"Queue processed via API by user {user_id}: {result}")
        return {"success": True, "data": result}

    raise ValidationError("Invalid action")
