from typing import List
from pydantic import BaseModel, EmailStr, field_validator, model_validator
from app.schemas.auth.user import UserResponse

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if not v:
            raise ValueError('Password is required')
        return v

class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetTokenValidity(BaseModel):
    valid: bool

class ResetPasswordRequest(BaseModel):
    token: str
    password: str
    confirm_password: str

    @field_validator('token')
    @classmethod
    def validate_token(cls, v):
        if not v or not v.strip():
            raise ValueError('Reset token is required')
        return v.strip()

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters')
        return v

    @model_validator(mode='after')
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self

class PermissionsResponse(BaseModel):
    role: str
    permissions: List[str]
