from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import EmailStatus, EmailPriority, NotificationType

class EmailLog(BaseModel):
    """One outbound email; doubles as the delivery queue entry"""
    __tablename__ = 'email_logs'

    recipient_email = Column(String(255), nullable=False, index=True)
    recipient_name = Column(String(200))
    recipient_id = Column(Integer, nullable=True)
    type = Column(SQLEnum(NotificationType), nullable=False, index=True)
    subject = Column(String(500), nullable=False)
    body = Column(Text, nullable=False)
    text_body = Column(Text, nullable=True)
    variables = Column(JSON, nullable=True)
    status = Column(SQLEnum(EmailStatus), nullable=False, default=EmailStatus.PENDING, index=True)
    priority = Column(SQLEnum(EmailPriority), nullable=False, default=EmailPriority.NORMAL)
    attempts = Column(Integer, nullable=False, default=0)
    sent_at = Column(DateTime(timezone=True))
    error_message = Column(Text)
    entity_type = Column(String(50))
    entity_id = Column(String(100))
