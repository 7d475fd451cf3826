from sqlalchemy.orm import declarative_base
from enum import Enum, IntEnum

Base = declarative_base()

# Enums
class AppType(str, Enum):
    LEAVE = "leave"
    REIMBURSE = "reimburse"

class LeaveType(IntEnum):
    PERSONAL = 1       # 事假
    SICK = 2           # 病假
    ANNUAL = 3         # 年假
    COMPENSATORY = 4   # 调休

class ExpenseType(IntEnum):
    TRAVEL = 1         # 差旅交通费
    ENTERTAINMENT = 2  # 业务招待费
    OFFICE = 3         # 日常办公费
    TRAINING = 4       # 培训教育费
    SERVICE = 5        # 服务采购费
    OTHER = 6

APP_TYPE_LABELS = {
    AppType.LEAVE.value: "请假申请",
    AppType.REIMBURSE.value: "报销申请",
}

LEAVE_TYPE_LABELS = {
    LeaveType.PERSONAL: "事假",
    LeaveType.SICK: "病假",
    LeaveType.ANNUAL: "年假",
    LeaveType.COMPENSATORY: "调休",
}

EXPENSE_TYPE_LABELS = {
    ExpenseType.TRAVEL: "差旅交通费",
    ExpenseType.ENTERTAINMENT: "业务招待费",
    ExpenseType.OFFICE: "日常办公费",
    ExpenseType.TRAINING: "培训教育费",
    ExpenseType.SERVICE: "服务采购费",
    ExpenseType.OTHER: "其他",
}
