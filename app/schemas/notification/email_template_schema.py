from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, field_validator
from app.models.shared.enums import NotificationType
from app.schemas.common.validators import reject_empty
from app.services.notification.template_engine import validate_template


def _check_template(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    valid, errors = validate_template(v)
    if not valid:
        raise ValueError(errors[0])
    return v


class EmailTemplateCreate(BaseModel):
    name: str
    type: NotificationType
    subject: str
    html_body: str
    text_body: Optional[str] = None
    variables: Optional[Dict[str, str]] = None
    description: Optional[str] = None
    is_active: bool = True

    @field_validator('name', 'subject', 'html_body')
    @classmethod
    def validate_required(cls, v, info):
        if not v or not v.strip():
            label = info.field_name.replace("_", " ").capitalize()
            raise ValueError(f'{label} is required')
        return v

    @field_validator('subject', 'html_body', 'text_body')
    @classmethod
    def validate_syntax(cls, v):
        return _check_template(v)


class EmailTemplateUpdate(BaseModel):
    name: Optional[str] = None
    subject: Optional[str] = None
    html_body: Optional[str] = None
    text_body: Optional[str] = None
    variables: Optional[Dict[str, str]] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'subject', 'html_body', 'is_active')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

    @field_validator('subject', 'html_body', 'text_body')
    @classmethod
    def validate_syntax(cls, v):
        return _check_template(v)


class EmailTemplateResponse(BaseModel):
    id: int
    name: str
    type: NotificationType
    subject: str
    html_body: str
    text_body: Optional[str] = None
    variables: Optional[Dict[str, str]] = None
    description: Optional[str] = None
    is_active: bool
    is_system: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TemplatePreviewRequest(BaseModel):
    variables: Dict[str, Any] = {}


class TemplatePreviewResponse(BaseModel):
    subject: str
    html: str
    variables: Dict[str, Any]
