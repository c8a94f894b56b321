from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, field_validator
from app.models.shared.enums import AssetCategory, AssetCondition, AssetStatus
from app.schemas.auth.user import UserBrief
from app.schemas.common.validators import reject_empty


class AssetCreate(BaseModel):
    name: str
    category: AssetCategory
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    description: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = None
    warranty_expiry: Optional[date] = None
    condition: AssetCondition = AssetCondition.NEW
    location: Optional[str] = None
    notes: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Name is required')
        return v.strip()

    @field_validator('serial_number')
    @classmethod
    def blank_serial_is_none(cls, v):
        return v.strip() if v and v.strip() else None


class AssetUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[AssetCategory] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    description: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = None
    warranty_expiry: Optional[date] = None
    status: Optional[AssetStatus] = None
    condition: Optional[AssetCondition] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'category', 'status', 'condition', 'is_active')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

    @field_validator('serial_number')
    @classmethod
    def blank_serial_is_none(cls, v):
        return v.strip() if v and v.strip() else None


class AssetAssignRequest(BaseModel):
    asset_id: int
    user_id: int
    notes: Optional[str] = None


class AssetReturnRequest(BaseModel):
    asset_id: int
    return_condition: AssetCondition
    return_notes: Optional[str] = None


class AssetAssignmentResponse(BaseModel):
    id: int
    asset_id: int
    user_id: int
    assigned_by_id: Optional[int] = None
    assigned_at: datetime
    condition: AssetCondition
    notes: Optional[str] = None
    returned_at: Optional[datetime] = None
    returned_by_id: Optional[int] = None
    return_condition: Optional[AssetCondition] = None
    return_notes: Optional[str] = None
    user: Optional[UserBrief] = None

    model_config = ConfigDict(from_attributes=True)


class AssetResponse(BaseModel):
    id: int
    asset_tag: str
    name: str
    category: AssetCategory
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    description: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = None
    warranty_expiry: Optional[date] = None
    status: AssetStatus
    condition: AssetCondition
    location: Optional[str] = None
    notes: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    is_active: bool
    assigned_to_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    assigned_to: Optional[UserBrief] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AssetDetailResponse(AssetResponse):
    assignments: List[AssetAssignmentResponse] = []


class AssetAssignmentResult(BaseModel):
    asset: AssetResponse
    assignment: Optional[AssetAssignmentResponse] = None
