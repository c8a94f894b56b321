from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from app.schemas.common.validators import reject_empty

class LeaveTypeBase(BaseModel):
    name: str
    code: str
    description: Optional[str] = None
    default_days: Decimal = Decimal("0")
    is_paid: bool = True
    is_carry_forward: bool = False
    max_carry_forward: Decimal = Decimal("0")

class LeaveTypeCreate(LeaveTypeBase):
    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Leave type name is required')
        return v.strip()

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        if not v or not v.strip():
            raise ValueError('Leave type code is required')
        return v.strip().upper()

    @field_validator('default_days', 'max_carry_forward')
    @classmethod
    def validate_days(cls, v):
        if v < 0:
            raise ValueError('Days cannot be negative')
        return v

class LeaveTypeUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    default_days: Optional[Decimal] = None
    is_paid: Optional[bool] = None
    is_carry_forward: Optional[bool] = None
    max_carry_forward: Optional[Decimal] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'code', 'default_days', 'is_paid', 'is_carry_forward', 'max_carry_forward', 'is_active')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

class LeaveTypeResponse(LeaveTypeBase):
    id: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
