from typing import Optional
from pydantic import BaseModel, validator
from datetime import datetime
from decimal import Decimal


class ApproveRequest(BaseModel):
    task_id: int
    action: int  # 1 agree, 2 reject
    comment: Optional[str] = None

    @validator('action')
    def valid_action(cls, v):
        if v not in (1, 2):
            raise ValueError('Action must be 1 (agree) or 2 (reject)')
        return v


class TaskResponse(BaseModel):
    id: int
    app_id: int
    app_no: Optional[str] = None
    app_type: Optional[str] = None
    title: Optional[str] = None
    applicant_id: Optional[int] = None
    applicant_name: Optional[str] = None
    app_status: Optional[int] = None
    node_name: str
    assignee_id: int
    assignee_name: Optional[str] = None
    status: int
    action: Optional[int] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    finish_time: Optional[datetime] = None
    days: Optional[Decimal] = None
    amount: Optional[Decimal] = None


class ApproveResult(BaseModel):
    app_id: int
    status: int
    status_label: str
    current_node: Optional[str] = None
    next_assignee_name: Optional[str] = None
