from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from app.schemas.common.validators import reject_empty

class TeamBase(BaseModel):
    name: str
    code: str
    description: Optional[str] = None
    department_id: Optional[int] = None
    lead_id: Optional[int] = None

class TeamCreate(TeamBase):
    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Team name is required')
        return v.strip()

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        if not v or not v.strip():
            raise ValueError('Team code is required')
        return v.strip().upper()

class TeamUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    department_id: Optional[int] = None
    lead_id: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'code', 'is_active')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        return v.strip().upper() if v else v

class TeamResponse(TeamBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
