from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from decimal import Decimal
from app.schemas.leave.leave_type_schema import LeaveTypeResponse
from app.schemas.common.validators import reject_empty

class LeaveAllocationCreate(BaseModel):
    user_id: int
    leave_type_id: int
    year: int
    allocated: Decimal
    carried_over: Decimal = Decimal("0")
    adjusted: Decimal = Decimal("0")

class LeaveAllocationUpdate(BaseModel):
    allocated: Optional[Decimal] = None
    carried_over: Optional[Decimal] = None
    adjusted: Optional[Decimal] = None

    @field_validator('allocated', 'carried_over', 'adjusted')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

class LeaveAllocationResponse(BaseModel):
    id: int
    user_id: int
    leave_type_id: int
    leave_type: Optional[LeaveTypeResponse] = None
    year: int
    allocated: Decimal
    used: Decimal
    carried_over: Decimal
    adjusted: Decimal
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)
