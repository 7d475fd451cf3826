from decimal import Decimal
from types import SimpleNamespace

from approval_system.workflow.routing import (
    DEFAULT_DEPT_NODE_NAME,
    NODE_DEPT,
    NODE_ESCALATION,
    needs_escalation,
    plan_route,
)


class TestRoutePlanning:
    """Which applications get a second approval node"""

    def test_leave_threshold_is_exclusive(self):
        assert not needs_escalation("leave", days=Decimal("3"))
        assert needs_escalation("leave", days=Decimal("3.5"))

    def test_reimburse_threshold_is_exclusive(self):
        assert not needs_escalation("reimburse", amount=Decimal("5000"))
        assert needs_escalation("reimburse", amount=Decimal("5000.01"))

    def test_missing_values_never_escalate(self):
        assert not needs_escalation("leave")
        assert not needs_escalation("reimburse")
        assert not needs_escalation("other", days=Decimal("10"))

    def test_short_leave_has_a_single_node(self):
        dept = SimpleNamespace(dept_name="研发部")
        approver = SimpleNamespace(id=7, real_name="张经理")

        route = plan_route("leave", dept, approver, days=Decimal("1"))

        assert route == [{
            "node": NODE_DEPT,
            "name": "研发部审批",
            "assignee_id": 7,
            "assignee_name": "张经理",
        }]

    def test_large_reimbursement_gets_escalation_placeholder(self):
        approver = SimpleNamespace(id=7, real_name="张经理")

        route = plan_route("reimburse", None, approver, amount=Decimal("8000"))

        assert [n["node"] for n in route] == [NODE_DEPT, NODE_ESCALATION]
        assert route[0]["name"] == DEFAULT_DEPT_NODE_NAME
        assert route[1]["assignee_id"] is None
