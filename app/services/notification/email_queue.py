import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional
from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.exceptions import EmailDeliveryError
from app.db.base import utcnow
from app.models.communication.email_log import EmailLog
from app.models.notification.email_template import EmailTemplate
from app.models.shared.enums import EmailPriority, EmailStatus, NotificationType
from app.services.communication.email_service import EmailService
from app.services.notification.default_templates import DEFAULT_TEMPLATES
from app.services.notification.template_engine import RenderedEmail, default_variables, render_template

logger = logging.getLogger(__name__)

PRIORITY_ORDER = case(
    {
        EmailPriority.URGENT: 0,
        EmailPriority.HIGH: 1,
        EmailPriority.NORMAL: 2,
        EmailPriority.LOW: 3,
    },
    value=EmailLog.priority,
    else_=2,
)


def _json_safe(variables: Dict[str, Any]) -> Dict[str, Any]:
    safe = {}
    for key, value in variables.items():
        if value is None or isinstance(value, (str, int, float, bool)):
            safe[key] = value
        else:
            safe[key] = str(value)
    return safe


class EmailQueueService:
    """
    Persisted outbound email queue.

    Entry lifecycle: PENDING -> PROCESSING -> SENT | FAILED, and FAILED -> PENDING
    only through ``retry``. An entry is claimed with a conditional UPDATE before
    it is handed to the transport, so concurrent processing passes never deliver
    the same entry twice.
    """

    def __init__(self, session: AsyncSession, transport: Optional[EmailService] = None):
        self.session = session
        self.transport = transport or EmailService()

    def smtp_configured(self) -> bool:
        return self.transport.is_configured()

    # ---------- Enqueue ----------
    async def get_active_template(self, notification_type: NotificationType) -> Optional[EmailTemplate]:
        result = await self.session.execute(
            select(EmailTemplate)
            .where(
                EmailTemplate.type == notification_type,
                EmailTemplate.is_active == True,
                EmailTemplate.is_deleted == False,
            )
            .order_by(EmailTemplate.is_system.asc(), EmailTemplate.id.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def enqueue(
        self,
        notification_type: NotificationType,
        recipient_email: str,
        variables: Optional[Dict[str, Any]] = None,
        recipient_name: str = "",
        recipient_id: Optional[int] = None,
        priority: EmailPriority = EmailPriority.NORMAL,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
    ) -> Optional[EmailLog]:
        """Render the active template for the type and persist a PENDING entry.

        Returns None (and logs) when the type has no active template.
        """
        template = await self.get_active_template(notification_type)
        if template is None:
            logger.warning(f"No active email template for {notification_type.value}; nothing queued for {recipient_email}")
            return None

        merged = {**default_variables(recipient_name, recipient_email), **(variables or {})}
        rendered = render_template(template, merged)
        return await self.enqueue_rendered(
            notification_type,
            recipient_email,
            rendered,
            variables=merged,
            recipient_name=recipient_name,
            recipient_id=recipient_id,
            priority=priority,
            entity_type=entity_type,
            entity_id=entity_id,
        )

    async def enqueue_rendered(
        self,
        notification_type: NotificationType,
        recipient_email: str,
        rendered: RenderedEmail,
        variables: Optional[Dict[str, Any]] = None,
        recipient_name: str = "",
        recipient_id: Optional[int] = None,
        priority: EmailPriority = EmailPriority.NORMAL,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
    ) -> EmailLog:
        entry = EmailLog(
            recipient_email=recipient_email.strip(),
            recipient_name=recipient_name or None,
            recipient_id=recipient_id,
            type=notification_type,
            subject=rendered.subject,
            body=rendered.html,
            text_body=rendered.text,
            variables=_json_safe(variables or {}),
            status=EmailStatus.PENDING,
            priority=priority,
            attempts=0,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
        )
        self.session.add(entry)
        await self.session.commit()
        logger.info(f"📥 Queued {notification_type.value} email #{entry.id} for {recipient_email}")
        return entry

    # ---------- Processing ----------
    async def _claim(self, entry_id: int) -> bool:
        result = await self.session.execute(
            update(EmailLog)
            .where(EmailLog.id == entry_id, EmailLog.status == EmailStatus.PENDING)
            .values(status=EmailStatus.PROCESSING, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount == 1

    async def _mark_failed(self, entry: EmailLog, error: str) -> bool:
        entry.status = EmailStatus.FAILED
        entry.error_message = error
        await self.session.commit()
        logger.warning(f"❌ Email #{entry.id} to {entry.recipient_email} failed: {error}")
        return False

    async def _deliver(self, entry_id: int) -> bool:
        """Send a claimed entry and record the outcome. Returns True when sent."""
        entry = await self.session.get(EmailLog, entry_id, populate_existing=True)
        entry.attempts = (entry.attempts or 0) + 1
        try:
            if not entry.body:
                raise EmailDeliveryError("Missing HTML content")
            await self.transport.send_email(
                to_email=entry.recipient_email,
                subject=entry.subject,
                html_content=entry.body,
                text_content=entry.text_body,
            )
        except EmailDeliveryError as e:
            return await self._mark_failed(entry, str(e))
        except Exception as e:
            # A claimed entry must never be left in PROCESSING
            logger.exception(f"Unexpected error delivering email #{entry_id}")
            return await self._mark_failed(entry, f"Unexpected error: {e}")

        entry.status = EmailStatus.SENT
        entry.sent_at = utcnow()
        entry.error_message = None
        await self.session.commit()
        logger.info(f"✅ Email #{entry_id} sent to {entry.recipient_email}")
        return True

    async def process_queue(self, batch_size: Optional[int] = None) -> Dict[str, int]:
        """Deliver up to ``batch_size`` PENDING entries, most urgent and oldest first."""
        batch_size = batch_size or settings.EMAIL_QUEUE_BATCH_SIZE
        stats = {"processed": 0, "sent": 0, "failed": 0, "skipped": 0}

        result = await self.session.execute(
            select(EmailLog.id)
            .where(EmailLog.status == EmailStatus.PENDING)
            .order_by(PRIORITY_ORDER, EmailLog.created_at.asc(), EmailLog.id.asc())
            .limit(batch_size)
        )
        entry_ids = list(result.scalars().all())

        for entry_id in entry_ids:
            stats["processed"] += 1
            if not await self._claim(entry_id):
                # Another worker got there first
                stats["skipped"] += 1
                continue
            if await self._deliver(entry_id):
                stats["sent"] += 1
            else:
                stats["failed"] += 1

        if entry_ids:
            logger.info(f"📬 Email queue pass: {stats}")
        return stats

    async def release_stale_claims(self, older_than_minutes: int = 15) -> int:
        """Put entries stuck in PROCESSING (worker died mid-send) back to PENDING."""
        cutoff = utcnow() - timedelta(minutes=older_than_minutes)
        result = await self.session.execute(
            update(EmailLog)
            .where(EmailLog.status == EmailStatus.PROCESSING, EmailLog.updated_at < cutoff)
            .values(status=EmailStatus.PENDING)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        if result.rowcount:
            logger.warning(f"Released {result.rowcount} stale email claim(s)")
        return result.rowcount

    async def retry(self, entry_id: int) -> bool:
        """FAILED -> PENDING. Any other status (or a missing entry) is refused."""
        result = await self.session.execute(
            update(EmailLog)
            .where(EmailLog.id == entry_id, EmailLog.status == EmailStatus.FAILED)
            .values(status=EmailStatus.PENDING, error_message=None, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount == 1

    async def retry_failed(self, max_attempts: Optional[int] = None) -> int:
        """Requeue every FAILED entry that has not used up its attempts."""
        max_attempts = max_attempts or settings.EMAIL_QUEUE_MAX_RETRIES
        result = await self.session.execute(
            update(EmailLog)
            .where(EmailLog.status == EmailStatus.FAILED, EmailLog.attempts < max_attempts)
            .values(status=EmailStatus.PENDING, error_message=None, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        if result.rowcount:
            logger.info(f"Requeued {result.rowcount} failed email(s)")
        return result.rowcount

    # ---------- Reporting ----------
    async def get_pending_count(self) -> int:
        result = await self.session.execute(
            select(func.count(EmailLog.id)).where(EmailLog.status == EmailStatus.PENDING)
        )
        return int(result.scalar() or 0)

    async def get_stats(self) -> Dict[str, int]:
        by_status = await self.session.execute(
            select(EmailLog.status, func.count(EmailLog.id)).group_by(EmailLog.status)
        )
        counts = {status: count for status, count in by_status.all()}

        now = utcnow()
        today_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
        week_start = now - timedelta(days=7)
        failed_at = func.coalesce(EmailLog.updated_at, EmailLog.created_at)

        async def _count(*conditions) -> int:
            result = await self.session.execute(select(func.count(EmailLog.id)).where(*conditions))
            return int(result.scalar() or 0)

        return {
            "total": sum(counts.values()),
            "pending": counts.get(EmailStatus.PENDING, 0),
            "processing": counts.get(EmailStatus.PROCESSING, 0),
            "sent": counts.get(EmailStatus.SENT, 0),
            "failed": counts.get(EmailStatus.FAILED, 0),
            "today_sent": await _count(EmailLog.status == EmailStatus.SENT, EmailLog.sent_at >= today_start),
            "today_failed": await _count(EmailLog.status == EmailStatus.FAILED, failed_at >= today_start),
            "week_sent": await _count(EmailLog.status == EmailStatus.SENT, EmailLog.sent_at >= week_start),
            "week_failed": await _count(EmailLog.status == EmailStatus.FAILED, failed_at >= week_start),
        }

    async def get_log(self, entry_id: int) -> Optional[EmailLog]:
        return await self.session.get(EmailLog, entry_id)

    async def get_logs(
        self,
        page_index: int = 1,
        page_size: int = 20,
        status: Optional[EmailStatus] = None,
        notification_type: Optional[NotificationType] = None,
        recipient_email: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        query = select(EmailLog)
        if status is not None:
            query = query.where(EmailLog.status == status)
        if notification_type is not None:
            query = query.where(EmailLog.type == notification_type)
        if recipient_email:
            query = query.where(EmailLog.recipient_email.ilike(f"%{recipient_email}%"))
        if start_date:
            query = query.where(EmailLog.created_at >= datetime.combine(start_date, time.min, tzinfo=timezone.utc))
        if end_date:
            next_day = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
            query = query.where(EmailLog.created_at < next_day)

        total_result = await self.session.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        skip = (page_index - 1) * page_size
        result = await self.session.execute(
            query.order_by(EmailLog.created_at.desc(), EmailLog.id.desc()).offset(skip).limit(page_size)
        )
        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }

    # ---------- Self-test ----------
    async def test_configuration(self, to_email: str) -> Dict[str, Any]:
        """Queue a CUSTOM email to ``to_email`` and deliver that entry right away."""
        variables = {
            "subject": f"{settings.APP_NAME} - Email Configuration Test",
            "title": "Email configuration test",
            "content": "<p>If you are reading this, outgoing email is configured correctly.</p>",
        }
        template = await self.get_active_template(NotificationType.CUSTOM)
        if template is None:
            template = EmailTemplate(**{k: v for k, v in DEFAULT_TEMPLATES[NotificationType.CUSTOM].items() if k != "name"})

        merged = {**default_variables("", to_email), **variables}
        entry = await self.enqueue_rendered(
            NotificationType.CUSTOM,
            to_email,
            render_template(template, merged),
            variables=merged,
            priority=EmailPriority.HIGH,
            entity_type="EMAIL_TEST",
        )
        if not await self._claim(entry.id):
            return {"success": False, "message": "Test email was picked up by another worker"}

        if await self._deliver(entry.id):
            return {"success": True, "message": f"Test email sent to {to_email}"}

        refreshed = await self.session.get(EmailLog, entry.id)
        return {"success": False, "message": f"Test email failed: {refreshed.error_message}"}
