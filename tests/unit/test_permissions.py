import pytest
from fastapi import HTTPException

from approval_system.auth.permissions import (
    APPROVAL_REVIEW,
    SYSTEM_ADMIN,
    PermissionChecker,
    parse_permission_name,
    resolve_dashboard_role,
)

REVIEW = {"code": APPROVAL_REVIEW, "resource": "approval", "action": "review"}
ADMIN = {"code": SYSTEM_ADMIN, "resource": "system", "action": "admin"}


class TestPermissionChecker:
    def test_direct_permission(self):
        checker = PermissionChecker([REVIEW])
        assert checker.can("approval", "review")
        assert checker.cannot("system", "admin")
        assert checker.has_code(APPROVAL_REVIEW)

    def test_system_admin_implies_everything(self):
        checker = PermissionChecker([ADMIN])
        assert checker.can("approval", "review")
        assert checker.can("application", "submit")

    def test_require_raises_forbidden(self):
        with pytest.raises(HTTPException) as exc_info:
            PermissionChecker([]).require("approval", "review")
        assert exc_info.value.status_code == 403

    def test_dashboard_role(self):
        assert resolve_dashboard_role([SYSTEM_ADMIN, APPROVAL_REVIEW]) == "admin"
        assert resolve_dashboard_role([APPROVAL_REVIEW]) == "approver"
        assert resolve_dashboard_role([]) == "employee"

    def test_parse_permission_name(self):
        assert parse_permission_name("approval:review") == ("approval", "review")
        with pytest.raises(ValueError):
            parse_permission_name("approval")
