from pydantic import BaseModel, EmailStr, validator
from typing import List, Optional
from datetime import datetime

class DepartmentBase(BaseModel):
    parent_id: int = 0
    dept_name: str
    leader: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    order_num: int = 0
    status: int = 1

class DepartmentCreate(DepartmentBase):
    @validator('dept_name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Department name is required')
        return v.strip()

class DepartmentUpdate(BaseModel):
    parent_id: Optional[int] = None
    dept_name: Optional[str] = None
    leader: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    order_num: Optional[int] = None
    status: Optional[int] = None

    @validator('dept_name')
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Department name cannot be empty')
        return v.strip() if v else v

class DepartmentResponse(DepartmentBase):
    id: int
    parent_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DepartmentTree(DepartmentResponse):
    children: List["DepartmentTree"] = []

DepartmentTree.model_rebuild()
