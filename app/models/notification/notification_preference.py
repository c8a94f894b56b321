from sqlalchemy import Column, Integer, Boolean, ForeignKey, UniqueConstraint, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import NotificationType

class NotificationPreference(BaseModel):
    __tablename__ = "notification_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "type", name="uq_notification_preference_user_type"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(NotificationType), nullable=False)
    email_enabled = Column(Boolean, default=True, nullable=False)
