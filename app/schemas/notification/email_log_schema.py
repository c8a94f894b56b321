from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, EmailStr
from app.models.shared.enums import EmailPriority, EmailStatus, NotificationType


class EmailLogResponse(BaseModel):
    id: int
    recipient_email: str
    recipient_name: Optional[str] = None
    type: NotificationType
    subject: str
    status: EmailStatus
    priority: EmailPriority
    attempts: int
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EmailLogDetail(EmailLogResponse):
    body: str
    text_body: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None


class EmailStats(BaseModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    sent: int = 0
    failed: int = 0
    today_sent: int = 0
    today_failed: int = 0
    week_sent: int = 0
    week_failed: int = 0


class ProcessResult(BaseModel):
    processed: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0


class QueueStatus(BaseModel):
    smtp_configured: bool
    pending_count: int
    stats: EmailStats


class QueueTestRequest(BaseModel):
    email: Optional[EmailStr] = None


class QueueTestResult(BaseModel):
    success: bool
    message: str


class RetryResult(BaseModel):
    message: str


class EmailStatsResult(BaseModel):
    stats: EmailStats


class BulkRetryResult(BaseModel):
    requeued: int
