import smtplib
from datetime import timedelta
import pytest
from sqlalchemy import select, update
from app.db.base import utcnow
from app.models.communication.email_log import EmailLog
from app.models.notification.email_template import EmailTemplate
from app.models.shared.enums import EmailPriority, EmailStatus, NotificationType
from app.services.communication.email_service import EmailService
from app.services.notification.email_queue import EmailQueueService
from app.services.notification.template_engine import RenderedEmail


async def queue_welcome(queue, email, priority=EmailPriority.NORMAL):
    return await queue.enqueue(
        NotificationType.WELCOME_EMAIL,
        email,
        {"employeeName": "Ann Lee", "email": email, "employeeId": "EMP-1"},
        recipient_name="Ann Lee",
        priority=priority,
    )


class TestEnqueue:
    async def test_entry_is_rendered_and_pending(self, db_session, transport):
        entry = await queue_welcome(EmailQueueService(db_session, transport), "ann@example.com")

        assert entry.status == EmailStatus.PENDING
        assert entry.attempts == 0
        assert entry.subject.startswith("Welcome to ")
        assert "{{" not in entry.subject
        assert "EMP-1" in entry.body
        assert entry.variables["recipientName"] == "Ann Lee"

    async def test_no_active_template_queues_nothing(self, db_session, transport):
        await db_session.execute(
            update(EmailTemplate)
            .where(EmailTemplate.type == NotificationType.WELCOME_EMAIL)
            .values(is_active=False)
        )
        await db_session.commit()

        entry = await queue_welcome(EmailQueueService(db_session, transport), "ann@example.com")
        assert entry is None

    async def test_custom_template_wins_over_system_one(self, db_session, transport):
        db_session.add(EmailTemplate(
            name="Friendly welcome", type=NotificationType.WELCOME_EMAIL,
            subject="Hey {{employeeName}}", html_body="<p>Hi</p>", is_active=True, is_system=False,
        ))
        await db_session.commit()

        entry = await queue_welcome(EmailQueueService(db_session, transport), "ann@example.com")
        assert entry.subject == "Hey Ann Lee"


class TestProcessQueue:
    async def test_successful_delivery(self, db_session, transport, reload):
        queue = EmailQueueService(db_session, transport)
        entry = await queue_welcome(queue, "ann@example.com")

        result = await queue.process_queue()

        assert result == {"processed": 1, "sent": 1, "failed": 0, "skipped": 0}
        sent = await reload(EmailLog, entry.id)
        assert sent.status == EmailStatus.SENT
        assert sent.attempts == 1
        assert sent.sent_at is not None
        assert transport.sent[0]["to"] == "ann@example.com"

    async def test_failed_delivery_records_error(self, db_session, reload, make_transport):
        queue = EmailQueueService(db_session, make_transport(fail_for=["bad@example.com"]))
        entry = await queue_welcome(queue, "bad@example.com")

        result = await queue.process_queue()

        assert result["failed"] == 1
        failed = await reload(EmailLog, entry.id)
        assert failed.status == EmailStatus.FAILED
        assert failed.attempts == 1
        assert failed.error_message == "Connection refused"

    async def test_urgent_goes_first(self, db_session, transport):
        queue = EmailQueueService(db_session, transport)
        await queue_welcome(queue, "normal@example.com")
        await queue_welcome(queue, "low@example.com", EmailPriority.LOW)
        await queue_welcome(queue, "urgent@example.com", EmailPriority.URGENT)

        await queue.process_queue()

        assert [m["to"] for m in transport.sent] == ["urgent@example.com", "normal@example.com", "low@example.com"]

    async def test_batch_size_limits_a_pass(self, db_session, transport):
        queue = EmailQueueService(db_session, transport)
        for n in range(3):
            await queue_welcome(queue, f"user{n}@example.com")

        result = await queue.process_queue(batch_size=2)

        assert result["sent"] == 2
        assert await queue.get_pending_count() == 1

    async def test_already_claimed_entry_is_skipped(self, db_session, transport):
        queue = EmailQueueService(db_session, transport)
        entry = await queue_welcome(queue, "ann@example.com")
        assert await queue._claim(entry.id)

        # Claimed entries are no longer PENDING, so a second pass sees nothing
        assert await queue._claim(entry.id) is False
        result = await queue.process_queue()
        assert result["processed"] == 0
        assert transport.sent == []

    async def test_stale_claims_are_released(self, db_session, transport, reload):
        queue = EmailQueueService(db_session, transport)
        entry = await queue_welcome(queue, "ann@example.com")
        await db_session.execute(
            update(EmailLog)
            .where(EmailLog.id == entry.id)
            .values(status=EmailStatus.PROCESSING, updated_at=utcnow() - timedelta(hours=1))
        )
        await db_session.commit()

        assert await queue.release_stale_claims(older_than_minutes=15) == 1
        assert (await reload(EmailLog, entry.id)).status == EmailStatus.PENDING


class TestRetry:
    async def test_failed_entry_goes_back_to_pending(self, db_session, reload, make_transport):
        queue = EmailQueueService(db_session, make_transport(fail_for=["bad@example.com"]))
        entry = await queue_welcome(queue, "bad@example.com")
        await queue.process_queue()

        assert await queue.retry(entry.id) is True
        retried = await reload(EmailLog, entry.id)
        assert retried.status == EmailStatus.PENDING
        assert retried.error_message is None
        assert retried.attempts == 1

    async def test_only_failed_entries_can_be_retried(self, db_session, transport):
        queue = EmailQueueService(db_session, transport)
        entry = await queue_welcome(queue, "ann@example.com")

        assert await queue.retry(entry.id) is False
        await queue.process_queue()
        assert await queue.retry(entry.id) is False
        assert await queue.retry(99999) is False

    async def test_bulk_retry_respects_max_attempts(self, db_session, make_transport):
        queue = EmailQueueService(db_session, make_transport(fail_for=["bad@example.com", "worse@example.com"]))
        first = await queue_welcome(queue, "bad@example.com")
        await queue_welcome(queue, "worse@example.com")
        await queue.process_queue()
        await db_session.execute(update(EmailLog).where(EmailLog.id == first.id).values(attempts=3))
        await db_session.commit()

        assert await queue.retry_failed(max_attempts=3) == 1
        statuses = (await db_session.execute(
            select(EmailLog.recipient_email, EmailLog.status).order_by(EmailLog.id)
        )).all()
        assert statuses == [
            ("bad@example.com", EmailStatus.FAILED),
            ("worse@example.com", EmailStatus.PENDING),
        ]


class TestReporting:
    async def test_stats_and_logs(self, db_session, make_transport):
        queue = EmailQueueService(db_session, make_transport(fail_for=["bad@example.com"]))
        await queue_welcome(queue, "ann@example.com")
        await queue_welcome(queue, "bad@example.com")
        await queue.process_queue()
        await queue_welcome(queue, "later@example.com")

        stats = await queue.get_stats()
        assert stats["total"] == 3
        assert stats["sent"] == 1
        assert stats["failed"] == 1
        assert stats["pending"] == 1
        assert stats["today_sent"] == 1
        assert stats["week_failed"] == 1

        page = await queue.get_logs(status=EmailStatus.FAILED)
        assert page["count"] == 1
        assert page["data"][0].recipient_email == "bad@example.com"

        page = await queue.get_logs(recipient_email="ANN@")
        assert page["count"] == 1

    async def test_test_configuration_sends_immediately(self, db_session, transport):
        result = await EmailQueueService(db_session, transport).test_configuration("ops@example.com")

        assert result == {"success": True, "message": "Test email sent to ops@example.com"}
        assert transport.sent[0]["subject"].endswith("Email Configuration Test")

    async def test_test_configuration_reports_failure(self, db_session, make_transport):
        queue = EmailQueueService(db_session, make_transport(fail_for=["ops@example.com"]))
        result = await queue.test_configuration("ops@example.com")

        assert result["success"] is False
        assert result["message"] == "Test email failed: Connection refused"


class FlatteningSMTP:
    """Stands in for smtplib.SMTP and serializes the message like a real server connection"""
    delivered = []

    def __init__(self, host, port, timeout=None):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, msg):
        FlatteningSMTP.delivered.append(msg.as_bytes())


class ExplodingTransport:
    def is_configured(self) -> bool:
        return True

    async def send_email(self, to_email, subject, html_content, text_content=None):
        raise RuntimeError("template store unavailable")


@pytest.fixture
def smtp_transport(monkeypatch):
    FlatteningSMTP.delivered = []
    monkeypatch.setattr(smtplib, "SMTP", FlatteningSMTP)
    service = EmailService()
    service.backend = "smtp"
    service.smtp_server = "smtp.example.com"
    service.username = "mailer@example.com"
    service.password = "secret"
    service.from_email = "mailer@example.com"
    return service


class TestDeliveryOutcomes:
    async def test_sent_entry_is_not_delivered_again(self, db_session, transport, reload):
        queue = EmailQueueService(db_session, transport)
        entry = await queue_welcome(queue, "ann@example.com")
        await queue.process_queue()

        second = await queue.process_queue()

        assert second == {"processed": 0, "sent": 0, "failed": 0, "skipped": 0}
        assert len(transport.sent) == 1
        sent = await reload(EmailLog, entry.id)
        assert sent.status == EmailStatus.SENT
        assert sent.attempts == 1

    async def test_line_breaks_in_variables_stay_out_of_the_subject(self, db_session, smtp_transport, reload):
        queue = EmailQueueService(db_session, smtp_transport)
        entry = await queue.enqueue(
            NotificationType.REQUEST_SUBMITTED,
            "ann@example.com",
            {"subject": "Laptop\r\nBcc: x@evil.com", "employeeName": "Ann Lee", "requestType": "Asset"},
        )
        assert entry.subject == "Request Submitted - Laptop Bcc: x@evil.com"

        result = await queue.process_queue()

        assert result["sent"] == 1
        assert (await reload(EmailLog, entry.id)).status == EmailStatus.SENT
        assert len(FlatteningSMTP.delivered) == 1

    async def test_malformed_header_fails_one_entry_not_the_batch(self, db_session, smtp_transport, reload):
        queue = EmailQueueService(db_session, smtp_transport)
        broken = await queue.enqueue_rendered(
            NotificationType.CUSTOM,
            "ann@example.com",
            RenderedEmail(subject="Laptop\r\nBcc: x@evil.com", html="<p>hi</p>"),
        )
        fine = await queue_welcome(queue, "bob@example.com")

        result = await queue.process_queue()

        assert result == {"processed": 2, "sent": 1, "failed": 1, "skipped": 0}
        failed = await reload(EmailLog, broken.id)
        assert failed.status == EmailStatus.FAILED
        assert failed.attempts == 1
        assert failed.error_message
        assert (await reload(EmailLog, fine.id)).status == EmailStatus.SENT

    async def test_unexpected_transport_error_marks_entry_failed(self, db_session, reload):
        queue = EmailQueueService(db_session, ExplodingTransport())
        entry = await queue_welcome(queue, "ann@example.com")

        result = await queue.process_queue()

        assert result["failed"] == 1
        failed = await reload(EmailLog, entry.id)
        assert failed.status == EmailStatus.FAILED
        assert failed.attempts == 1
        assert failed.error_message == "Unexpected error: template store unavailable"
