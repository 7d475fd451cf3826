from typing import Optional, List
from pydantic import BaseModel, validator
from datetime import datetime

from approval_system.schemas.auth.permission import Permission

class PostBase(BaseModel):
    post_code: str
    post_name: str
    post_sort: int = 0
    status: int = 1
    remark: Optional[str] = None

    @validator('post_code')
    def normalize_code(cls, v):
        v = (v or "").strip().upper()
        if not v:
            raise ValueError('Post code is required')
        return v

    @validator('post_name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Post name is required')
        return v.strip()

class PostCreate(PostBase):
    permission_ids: List[int] = []

class PostUpdate(BaseModel):
    post_code: Optional[str] = None
    post_name: Optional[str] = None
    post_sort: Optional[int] = None
    status: Optional[int] = None
    remark: Optional[str] = None
    permission_ids: Optional[List[int]] = None

    @validator('post_code')
    def normalize_code(cls, v):
        return v.strip().upper() if v else v

class PostResponse(PostBase):
    id: int
    created_at: Optional[datetime] = None
    user_count: int = 0
    permissions: List[Permission] = []

    class Config:
        from_attributes = True

class PostAssignRequest(BaseModel):
    user_id: int
    post_id: int
