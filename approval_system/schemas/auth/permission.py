from typing import Optional
from pydantic import BaseModel

class Permission(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    resource: str
    action: str
    is_active: bool = True

    class Config:
        from_attributes = True
