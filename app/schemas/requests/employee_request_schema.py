from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from app.models.shared.enums import LeaveStatus, RequestType
from app.schemas.auth.user import UserBrief

class EmployeeRequestCreate(BaseModel):
    type: RequestType
    subject: str
    description: str

    @field_validator('subject')
    @classmethod
    def validate_subject(cls, v):
        if not v or not v.strip():
            raise ValueError('Subject is required')
        return v.strip()

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        if not v or not v.strip():
            raise ValueError('Description is required')
        return v.strip()

class EmployeeRequestStatusUpdate(BaseModel):
    status: LeaveStatus
    response: Optional[str] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v == LeaveStatus.PENDING:
            raise ValueError('Status must be APPROVED, REJECTED or CANCELLED')
        return v

class EmployeeRequestResponse(BaseModel):
    id: int
    user_id: int
    user: Optional[UserBrief] = None
    type: RequestType
    subject: str
    description: str
    status: LeaveStatus
    response: Optional[str] = None
    handled_by_id: Optional[int] = None
    handled_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
