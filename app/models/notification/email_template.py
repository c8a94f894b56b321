from sqlalchemy import Column, String, Boolean, Text, JSON, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import NotificationType

class EmailTemplate(BaseModel):
    __tablename__ = "email_templates"

    name = Column(String(200), nullable=False, unique=True)
    type = Column(SQLEnum(NotificationType), nullable=False, index=True)
    subject = Column(String(500), nullable=False)
    html_body = Column(Text, nullable=False)
    text_body = Column(Text, nullable=True)
    variables = Column(JSON, nullable=True)  # name -> description
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
