from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from app.schemas.common.validators import reject_empty

class DepartmentBase(BaseModel):
    name: str
    code: str
    description: Optional[str] = None
    branch_id: Optional[int] = None
    head_id: Optional[int] = None

class DepartmentCreate(DepartmentBase):
    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or len(v.strip()) < 2:
            raise ValueError('Department name must be at least 2 characters')
        return v.strip()

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        if not v or not v.strip():
            raise ValueError('Department code is required')
        return v.strip().upper()

class DepartmentUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    branch_id: Optional[int] = None
    head_id: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'code', 'is_active')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        return v.strip().upper() if v else v

class DepartmentResponse(DepartmentBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
