from typing import Dict, List, Optional
from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal


class TypeStat(BaseModel):
    app_type: str
    type_label: str
    count: int


class DailyStat(BaseModel):
    date: str
    count: int


class MonthlyStat(BaseModel):
    month: str
    count: int


class ApproverDashboard(BaseModel):
    real_name: Optional[str] = None
    dept_name: Optional[str] = None
    post_name: Optional[str] = None
    year: int
    month: int
    total_count: int
    approved_count: int
    rejected_count: int
    pending_count: int
    type_stats: List[TypeStat]
    daily_stats: List[DailyStat]
    monthly_stats: List[MonthlyStat]


class UserSummary(BaseModel):
    real_name: Optional[str] = None
    dept_name: Optional[str] = None
    post_name: Optional[str] = None
    total_count: int
    status_counts: Dict[str, int]
    type_counts: Dict[str, int]
    approved_leave_days: Decimal
    approved_reimburse_amount: Decimal
    approval_rate: Decimal
    last_submit_time: Optional[datetime] = None


class AdminDashboard(BaseModel):
    user_count: int
    active_user_count: int
    department_count: int
    post_count: int
    application_count: int
    open_task_count: int
    status_counts: Dict[str, int]
    type_counts: Dict[str, int]
