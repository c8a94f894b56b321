import asyncio
import logging
import smtplib
from email.errors import MessageError
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
from typing import Optional
from email_validator import validate_email, EmailNotValidError
from app.core.config import settings
from app.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


def is_valid_email(address: str) -> bool:
    try:
        validate_email(address, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


class EmailService:
    """Outbound mail transport (SMTP, or the log for the console backend)"""

    def __init__(self):
        self.backend = settings.MAIL_BACKEND
        self.smtp_server = settings.MAIL_SERVER
        self.smtp_port = settings.MAIL_PORT
        self.username = settings.MAIL_USERNAME
        self.password = settings.MAIL_PASSWORD
        self.from_email = settings.MAIL_FROM or settings.MAIL_USERNAME
        self.from_name = settings.MAIL_FROM_NAME or settings.APP_NAME
        self.use_tls = settings.MAIL_TLS
        self.use_ssl = settings.MAIL_SSL
        self.timeout = settings.MAIL_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        if self.backend == "console":
            return True
        return bool(self.smtp_server and self.username and self.password)

    def _build_message(self, to_email: str, subject: str, html_content: str, text_content: Optional[str]) -> MIMEMultipart:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = formataddr((self.from_name, self.from_email or ""))
        msg['To'] = to_email
        if text_content:
            msg.attach(MIMEText(text_content, 'plain', 'utf-8'))
        msg.attach(MIMEText(html_content, 'html', 'utf-8'))
        return msg

    def _deliver(self, msg: MIMEMultipart) -> None:
        smtp_class = smtplib.SMTP_SSL if self.use_ssl else smtplib.SMTP
        with smtp_class(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
            if self.use_tls and not self.use_ssl:
                server.starttls()
            server.login(self.username, self.password)
            server.send_message(msg)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> None:
        """Send one email; raises EmailDeliveryError on any failure"""
        if not is_valid_email(to_email):
            raise EmailDeliveryError(f"Invalid email address: {to_email}")

        if self.backend == "console":
            logger.info(f"📧 [console] To: {to_email} | Subject: {subject}")
            return

        if not self.is_configured():
            raise EmailDeliveryError("SMTP is not configured")

        try:
            msg = self._build_message(to_email, subject, html_content, text_content)
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, MessageError, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            raise EmailDeliveryError(str(e)) from e

        logger.info(f"Email sent successfully to {to_email}")
