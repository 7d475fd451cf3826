from .application import Application
from .leave_application import LeaveApplication
from .reimburse_application import ReimburseApplication
from .approval_task import ApprovalTask
from .approval_history import ApprovalHistory

__all__ = [
    "Application",
    "LeaveApplication",
    "ReimburseApplication",
    "ApprovalTask",
    "ApprovalHistory",
]
