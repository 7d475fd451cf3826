from typing import Optional
from pydantic import BaseModel, EmailStr, validator
from datetime import datetime


def _check_password(v):
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters')
    if not any(c.isupper() for c in v):
        raise ValueError('Password must contain at least one uppercase letter')
    if not any(c.islower() for c in v):
        raise ValueError('Password must contain at least one lowercase letter')
    if not any(c.isdigit() for c in v):
        raise ValueError('Password must contain at least one digit')
    return v


class UserBase(BaseModel):
    username: str
    real_name: str
    phone: Optional[str] = None
    email: Optional[EmailStr] = None

    @validator('username')
    def username_alphanumeric(cls, v):
        if not v.replace('_', '').isalnum():
            raise ValueError('Username must be alphanumeric (underscores allowed)')
        if len(v) < 3:
            raise ValueError('Username must be at least 3 characters')
        return v

    @validator('real_name')
    def real_name_required(cls, v):
        if not v or not v.strip():
            raise ValueError('Real name is required')
        return v.strip()

class RegisterRequest(UserBase):
    password: str
    confirm_password: str

    @validator('password')
    def validate_password(cls, v):
        return _check_password(v)

    @validator('confirm_password')
    def passwords_match(cls, v, values, **kwargs):
        if 'password' in values and v != values['password']:
            raise ValueError('Passwords do not match')
        return v

class UserCreate(UserBase):
    """Account created by an administrator"""
    password: str
    dept_id: Optional[int] = None
    post_id: Optional[int] = None
    status: int = 1

    @validator('password')
    def validate_password(cls, v):
        return _check_password(v)

class UserUpdate(BaseModel):
    real_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    avatar: Optional[str] = None
    dept_id: Optional[int] = None
    post_id: Optional[int] = None
    status: Optional[int] = None
    password: Optional[str] = None

    @validator('password')
    def validate_password(cls, v):
        return _check_password(v) if v else v

class UserStatusUpdate(BaseModel):
    status: int

    @validator('status')
    def valid_status(cls, v):
        if v not in (0, 1):
            raise ValueError('Status must be 0 (disabled) or 1 (enabled)')
        return v

class UserResponse(BaseModel):
    id: int
    username: str
    real_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    dept_id: Optional[int] = None
    dept_name: Optional[str] = None
    post_id: Optional[int] = None
    post_name: Optional[str] = None
    status: int
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
