from approval_system.models.auth.audit_log import AuditLog
from approval_system.models.auth.permission import Permission
from approval_system.models.auth.post import Post
from approval_system.models.auth.post_permission import PostPermission
from approval_system.models.auth.refresh_token import RefreshToken
from approval_system.models.auth.user import User
from approval_system.models.organization.department import Department
from approval_system.models.approval.application import Application
from approval_system.models.approval.leave_application import LeaveApplication
from approval_system.models.approval.reimburse_application import ReimburseApplication
from approval_system.models.approval.approval_task import ApprovalTask
from approval_system.models.approval.approval_history import ApprovalHistory
