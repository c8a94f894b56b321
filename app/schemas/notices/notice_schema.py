from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from app.models.shared.enums import NoticeType
from app.schemas.auth.user import UserBrief
from app.schemas.common.validators import reject_empty

class NoticeCreate(BaseModel):
    title: str
    content: str
    type: NoticeType = NoticeType.GENERAL
    expires_at: Optional[datetime] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError('Title is required')
        return v.strip()

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v or not v.strip():
            raise ValueError('Content is required')
        return v

class NoticeUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    type: Optional[NoticeType] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator('title', 'content', 'type', 'is_active')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

class NoticeResponse(BaseModel):
    id: int
    title: str
    content: str
    type: NoticeType
    is_active: bool
    published_at: datetime
    expires_at: Optional[datetime] = None
    author: Optional[UserBrief] = None

    model_config = ConfigDict(from_attributes=True)
