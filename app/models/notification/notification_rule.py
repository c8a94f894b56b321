from sqlalchemy import Column, String, Boolean, Text, JSON, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import NotificationType

class NotificationRule(BaseModel):
    __tablename__ = "notification_rules"

    type = Column(SQLEnum(NotificationType), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    # Validated through RecipientConfig before it is stored
    recipient_config = Column(JSON, nullable=False, default=dict)
    conditions = Column(JSON, nullable=True)
