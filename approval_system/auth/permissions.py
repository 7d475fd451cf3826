# approval_system/auth/permissions.py
# Permissions are granted through the user's post; each one carries a
# business code (APPROVAL_REVIEW) and a resource:action pair (approval:review).

from typing import List, Dict, Any, Optional
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)

SYSTEM_ADMIN = "SYSTEM_ADMIN"
APPROVAL_REVIEW = "APPROVAL_REVIEW"
APPLICATION_SUBMIT = "APPLICATION_SUBMIT"

DASHBOARD_ADMIN = "admin"
DASHBOARD_APPROVER = "approver"
DASHBOARD_EMPLOYEE = "employee"


class PermissionChecker:
    """
    Check user permissions loaded for the current request
    """

    def __init__(self, user_permissions: List[Dict[str, Any]]):
        self.permissions = user_permissions or []
        self._permission_map = {}
        self._codes = set()

        # Build quick lookup map
        for perm in self.permissions:
            resource = perm.get("resource")
            action = perm.get("action")
            if resource and action:
                self._permission_map[f"{resource}:{action}"] = True
            if perm.get("code"):
                self._codes.add(perm["code"])

        logger.debug(f"PermissionChecker initialized with {len(self.permissions)} permissions")

    def can(self, resource: str, action: str) -> bool:
        """
        Check if user can perform action on resource

        Examples:
            can("approval", "review")  # Check if can process approval tasks
        """
        permission_key = f"{resource}:{action}"
        if permission_key in self._permission_map:
            logger.debug(f"Permission granted: {permission_key}")
            return True

        # Check for admin permission on this resource
        admin_key = f"{resource}:admin"
        if admin_key in self._permission_map:
            logger.debug(f"Permission granted: {permission_key} (via {admin_key})")
            return True

        # Check for system admin (full access)
        if "system:admin" in self._permission_map:
            logger.debug(f"Permission granted: {permission_key} (via system:admin)")
            return True

        logger.debug(f"Permission denied: {permission_key}")
        return False

    def cannot(self, resource: str, action: str) -> bool:
        return not self.can(resource, action)

    def require(
        self,
        resource: str,
        action: str,
        custom_message: Optional[str] = None
    ):
        """
        Require permission or raise HTTPException
        """
        if self.cannot(resource, action):
            message = custom_message or f"Insufficient permissions to {action} {resource}"
            logger.warning(f"Permission check failed: {message}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=message
            )

    def has_code(self, code: str) -> bool:
        """Check a permission by its business code"""
        return code in self._codes


def resolve_dashboard_role(permission_codes: List[str]) -> str:
    """
    Pick the dashboard a user lands on.

    Administrators win over approvers, everybody else is an employee.
    """
    codes = {code.upper() for code in permission_codes or []}
    if SYSTEM_ADMIN in codes:
        return DASHBOARD_ADMIN
    if APPROVAL_REVIEW in codes:
        return DASHBOARD_APPROVER
    return DASHBOARD_EMPLOYEE


def parse_permission_name(permission_name: str) -> tuple:
    """
    Parse permission name into resource and action
    """
    if ":" not in permission_name:
        raise ValueError(f"Invalid permission format: {permission_name}. Expected 'resource:action'")

    resource, action = permission_name.split(":", 1)
    if not resource or not action:
        raise ValueError(f"Invalid permission format: {permission_name}. Expected 'resource:action'")

    return resource, action
