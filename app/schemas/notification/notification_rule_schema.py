from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from app.models.shared.enums import NotificationType, UserRole
from app.schemas.common.validators import reject_empty


class RecipientConfig(BaseModel):
    """Who receives a notification; unknown keys are rejected"""
    model_config = ConfigDict(extra="forbid")

    notify_requester: bool = False
    notify_manager: bool = False
    notify_team_lead: bool = False
    notify_department_head: bool = False
    notify_hr: bool = False
    notify_admin: bool = False
    custom_recipients: List[EmailStr] = Field(default_factory=list)
    role_recipients: List[UserRole] = Field(default_factory=list)


class NotificationRuleCreate(BaseModel):
    type: NotificationType
    name: str
    description: Optional[str] = None
    is_active: bool = True
    recipient_config: RecipientConfig
    conditions: Optional[Dict[str, Any]] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Name is required')
        return v.strip()


class NotificationRuleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    recipient_config: Optional[RecipientConfig] = None
    conditions: Optional[Dict[str, Any]] = None

    @field_validator('name', 'is_active', 'recipient_config')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)


class NotificationRuleResponse(BaseModel):
    id: int
    type: NotificationType
    name: str
    description: Optional[str] = None
    is_active: bool
    recipient_config: RecipientConfig
    conditions: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
