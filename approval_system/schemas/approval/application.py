from typing import List, Optional
from pydantic import BaseModel, validator
from datetime import date, datetime
from decimal import Decimal

from approval_system.models.shared.enums import LeaveType, ExpenseType


class LeaveCreate(BaseModel):
    leave_type: LeaveType
    start_time: datetime
    end_time: datetime
    reason: str
    attachment: Optional[str] = None
    approver_id: Optional[int] = None
    submit: bool = True  # False keeps the application as a draft

    @validator('reason')
    def reason_required(cls, v):
        if not v or not v.strip():
            raise ValueError('Reason is required')
        return v.strip()

    @validator('end_time')
    def end_after_start(cls, v, values, **kwargs):
        start = values.get('start_time')
        if start is not None and v <= start:
            raise ValueError('End time must be later than start time')
        return v


class ReimburseCreate(BaseModel):
    expense_type: ExpenseType
    amount: Decimal
    reason: str
    invoice_attachment: Optional[str] = None
    occur_date: Optional[date] = None
    approver_id: Optional[int] = None
    submit: bool = True

    @validator('reason')
    def reason_required(cls, v):
        if not v or not v.strip():
            raise ValueError('Reason is required')
        return v.strip()

    @validator('amount')
    def amount_positive(cls, v):
        if v <= 0:
            raise ValueError('Amount must be greater than 0')
        return v


class SubmitRequest(BaseModel):
    approver_id: int


class ApproverOption(BaseModel):
    user_id: int
    real_name: str
    dept_id: Optional[int] = None
    dept_name: Optional[str] = None
    post_id: Optional[int] = None
    post_name: Optional[str] = None


class LeaveDetail(BaseModel):
    leave_type: int
    leave_type_label: Optional[str] = None
    start_time: datetime
    end_time: datetime
    days: Decimal
    reason: str
    attachment: Optional[str] = None


class ReimburseDetail(BaseModel):
    expense_type: int
    expense_type_label: Optional[str] = None
    amount: Decimal
    reason: str
    invoice_attachment: Optional[str] = None
    occur_date: Optional[date] = None


class HistoryRecord(BaseModel):
    id: int
    task_id: Optional[int] = None
    node_name: str
    approver_id: int
    approver_name: Optional[str] = None
    action: int
    action_label: Optional[str] = None
    comment: Optional[str] = None
    approve_time: datetime


class ApplicationResponse(BaseModel):
    id: int
    app_no: str
    app_type: str
    app_type_label: Optional[str] = None
    title: str
    applicant_id: int
    applicant_name: Optional[str] = None
    dept_id: Optional[int] = None
    dept_name: Optional[str] = None
    status: int
    status_label: Optional[str] = None
    current_node: Optional[str] = None
    submit_time: Optional[datetime] = None
    finish_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    leave_type: Optional[int] = None
    days: Optional[Decimal] = None
    expense_type: Optional[int] = None
    amount: Optional[Decimal] = None
    latest_action: Optional[int] = None
    latest_comment: Optional[str] = None
    latest_approver_name: Optional[str] = None


class ApplicationDetail(ApplicationResponse):
    leave_detail: Optional[LeaveDetail] = None
    reimburse_detail: Optional[ReimburseDetail] = None
    histories: List[HistoryRecord] = []
    current_assignee_name: Optional[str] = None
