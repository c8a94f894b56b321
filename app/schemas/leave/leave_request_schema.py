from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from app.models.shared.enums import LeaveStatus
from app.schemas.auth.user import UserBrief

class LeaveRequestCreate(BaseModel):
    leave_type_id: int
    start_date: date
    end_date: date
    days: Optional[Decimal] = None  # defaults to the calendar span
    reason: str

    @field_validator('days')
    @classmethod
    def validate_days(cls, v):
        if v is not None and v < Decimal("0.5"):
            raise ValueError('Days must be at least 0.5')
        return v

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        if not v or not v.strip():
            raise ValueError('Reason is required')
        return v.strip()

    @model_validator(mode='after')
    def validate_dates(self):
        if self.end_date < self.start_date:
            raise ValueError('End date must be on or after start date')
        span = (self.end_date - self.start_date).days + 1
        if self.days is not None and self.days > span:
            raise ValueError('Days cannot exceed the requested date range')
        return self

class LeaveRequestStatusUpdate(BaseModel):
    status: LeaveStatus
    rejection_reason: Optional[str] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v == LeaveStatus.PENDING:
            raise ValueError('Status must be APPROVED, REJECTED or CANCELLED')
        return v

class LeaveTypeBrief(BaseModel):
    id: int
    name: str
    code: str

    model_config = ConfigDict(from_attributes=True)

class LeaveRequestResponse(BaseModel):
    id: int
    user_id: int
    user: Optional[UserBrief] = None
    leave_type_id: int
    leave_type: Optional[LeaveTypeBrief] = None
    start_date: date
    end_date: date
    days: Decimal
    reason: str
    status: LeaveStatus
    approver_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
