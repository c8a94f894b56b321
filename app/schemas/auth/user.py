from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from app.models.shared.enums import UserRole
from app.schemas.common.validators import reject_empty

class UserBrief(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)

class UserBase(BaseModel):
    email: EmailStr
    first_name: str
    last_name: str
    employee_id: Optional[str] = None
    role: UserRole = UserRole.EMPLOYEE
    phone: Optional[str] = None
    designation: Optional[str] = None
    date_of_birth: Optional[date] = None
    join_date: Optional[date] = None
    branch_id: Optional[int] = None
    department_id: Optional[int] = None
    team_id: Optional[int] = None
    manager_id: Optional[int] = None

class UserCreate(UserBase):
    password: str

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Name is required')
        return v.strip()

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters')
        return v

class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    employee_id: Optional[str] = None
    role: Optional[UserRole] = None
    phone: Optional[str] = None
    designation: Optional[str] = None
    date_of_birth: Optional[date] = None
    join_date: Optional[date] = None
    branch_id: Optional[int] = None
    department_id: Optional[int] = None
    team_id: Optional[int] = None
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator('first_name', 'last_name', 'role', 'is_active')
    @classmethod
    def validate_present(cls, v, info):
        return reject_empty(v, info)

class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    employee_id: Optional[str] = None
    role: UserRole
    phone: Optional[str] = None
    designation: Optional[str] = None
    date_of_birth: Optional[date] = None
    join_date: Optional[date] = None
    branch_id: Optional[int] = None
    department_id: Optional[int] = None
    team_id: Optional[int] = None
    manager_id: Optional[int] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
