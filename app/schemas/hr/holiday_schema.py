from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import date as date_type, datetime
from app.models.shared.enums import HolidayType
from app.schemas.common.validators import reject_empty

class HolidayCreate(BaseModel):
    name: str
    date: date_type
    type: HolidayType = HolidayType.PUBLIC
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Name is required')
        return v.strip()

class HolidayUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[date_type] = None
    type: Optional[HolidayType] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'date', 'type', 'is_active')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

class HolidayResponse(BaseModel):
    id: int
    name: str
    date: date_type
    type: HolidayType
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
