from typing import Optional, List
from pydantic import BaseModel, validator

class LoginRequest(BaseModel):
    username: str
    password: str

class LoginUserInfo(BaseModel):
    user_id: int
    username: str
    real_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    dept_id: Optional[int] = None
    dept_name: Optional[str] = None
    post_id: Optional[int] = None
    post_name: Optional[str] = None
    permissions: List[str] = []
    dashboard_role: str

class LoginResponse(BaseModel):
    user: LoginUserInfo
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str

    @validator('confirm_password')
    def passwords_match(cls, v, values, **kwargs):
        if 'new_password' in values and v != values['new_password']:
            raise ValueError('Passwords do not match')
        return v
