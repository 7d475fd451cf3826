from datetime import date

import pytest
from httpx import AsyncClient
from fastapi import status

from tests.conftest import auth_headers_for
from tests.integration.helpers import leave_payload, open_task_id, reimburse_payload

APPS = "/api/v1/applications"
TASKS = "/api/v1/tasks"


@pytest.mark.asyncio
class TestApprovalTasks:
    """Resolving approval tasks"""

    async def test_employees_cannot_review(self, client: AsyncClient, team):
        response = await client.get(f"{TASKS}/todo", headers=team["employee_headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_single_node_approval(self, client: AsyncClient, team):
        app = (await client.post(
            f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(team["manager"].id)
        )).json()
        task_id = await open_task_id(client, team["manager_headers"], app["id"])

        response = await client.post(f"{TASKS}/approve", headers=team["manager_headers"], json={
            "task_id": task_id, "action": 1, "comment": "同意，注意交接",
        })
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == 3
        assert response.json()["next_assignee_name"] is None

        detail = (await client.get(f"{APPS}/{app['id']}", headers=team["employee_headers"])).json()
        assert detail["status_label"] == "已通过"
        assert detail["finish_time"] is not None
        assert detail["current_assignee_name"] is None
        assert [h["action_label"] for h in detail["histories"]] == ["同意"]

        history = (await client.get(f"{APPS}/history", headers=team["employee_headers"])).json()
        assert history["data"][0]["latest_approver_name"] == "张经理"

        history = (await client.get(f"{APPS}/history", headers=team["employee_headers"],
                                    params={"approver_name": "张"})).json()
        assert history["count"] == 1
        history = (await client.get(f"{APPS}/history", headers=team["employee_headers"],
                                    params={"approver_name": "%"})).json()
        assert history["count"] == 0

        done = (await client.get(f"{TASKS}/done", headers=team["manager_headers"])).json()
        assert done["count"] == 1
        assert done["data"][0]["action"] == 1

    async def test_reject(self, client: AsyncClient, team):
        app = (await client.post(
            f"{APPS}/reimburse", headers=team["employee_headers"], json=reimburse_payload(team["manager"].id)
        )).json()
        task_id = await open_task_id(client, team["manager_headers"], app["id"])

        response = await client.post(f"{TASKS}/approve", headers=team["manager_headers"], json={
            "task_id": task_id, "action": 2, "comment": "缺少发票",
        })
        assert response.json()["status"] == 4

        history = (await client.get(f"{APPS}/history", headers=team["employee_headers"])).json()
        assert history["data"][0]["latest_comment"] == "缺少发票"

    async def test_task_can_only_be_resolved_once_by_its_assignee(self, client: AsyncClient, team, admin_headers):
        app = (await client.post(
            f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(team["manager"].id)
        )).json()
        task_id = await open_task_id(client, team["manager_headers"], app["id"])

        response = await client.post(f"{TASKS}/approve", headers=admin_headers, json={"task_id": task_id, "action": 1})
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.post(f"{TASKS}/approve", headers=team["manager_headers"],
                                     json={"task_id": task_id, "action": 1})
        assert response.status_code == status.HTTP_200_OK

        response = await client.post(f"{TASKS}/approve", headers=team["manager_headers"],
                                     json={"task_id": task_id, "action": 1})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = await client.post(f"{TASKS}/approve", headers=team["manager_headers"],
                                     json={"task_id": 424242, "action": 1})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_invalid_action(self, client: AsyncClient, team):
        response = await client.post(f"{TASKS}/approve", headers=team["manager_headers"],
                                     json={"task_id": 1, "action": 3})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_long_leave_escalates_to_parent_department(self, client: AsyncClient, team, admin_headers):
        app = (await client.post(
            f"{APPS}/leave", headers=team["employee_headers"],
            json=leave_payload(team["manager"].id, hours=24 * 5),
        )).json()
        assert app["leave_detail"]["days"] in ("5.0", "5", 5)

        task_id = await open_task_id(client, team["manager_headers"], app["id"])
        response = await client.post(f"{TASKS}/approve", headers=team["manager_headers"],
                                     json={"task_id": task_id, "action": 1})
        result = response.json()
        assert result["status"] == 2
        assert result["current_node"] == "总公司审批"
        assert result["next_assignee_name"] == "系统管理员"

        response = await client.post(f"{APPS}/{app['id']}/withdraw", headers=team["employee_headers"])
        assert response.status_code == status.HTTP_409_CONFLICT

        task_id = await open_task_id(client, admin_headers, app["id"])
        response = await client.post(f"{TASKS}/approve", headers=admin_headers,
                                     json={"task_id": task_id, "action": 1})
        assert response.json()["status"] == 3

        detail = (await client.get(f"{APPS}/{app['id']}", headers=team["employee_headers"])).json()
        assert [h["node_name"] for h in detail["histories"]] == ["总公司审批", "研发部审批"]

    async def test_escalation_skipped_when_nobody_is_eligible(self, client: AsyncClient, admin_headers,
                                                             make_user, root_department):
        """In the root department the only other approver is the administrator, who approves first"""
        admin_id = (await client.get("/api/v1/auth/me", headers=admin_headers)).json()["user_id"]
        clerk = await make_user("clerk", dept_id=root_department.id)
        clerk_headers = auth_headers_for(clerk)

        app = (await client.post(
            f"{APPS}/reimburse", headers=clerk_headers, json=reimburse_payload(admin_id, amount="9000")
        )).json()
        task_id = await open_task_id(client, admin_headers, app["id"])

        response = await client.post(f"{TASKS}/approve", headers=admin_headers,
                                     json={"task_id": task_id, "action": 1})
        assert response.json()["status"] == 3

    async def test_large_reimbursement_two_levels_then_reject(self, client: AsyncClient, team, admin_headers):
        app = (await client.post(
            f"{APPS}/reimburse", headers=team["employee_headers"],
            json=reimburse_payload(team["manager"].id, amount="5000.01"),
        )).json()

        task_id = await open_task_id(client, team["manager_headers"], app["id"])
        await client.post(f"{TASKS}/approve", headers=team["manager_headers"], json={"task_id": task_id, "action": 1})

        task_id = await open_task_id(client, admin_headers, app["id"])
        response = await client.post(f"{TASKS}/approve", headers=admin_headers,
                                     json={"task_id": task_id, "action": 2, "comment": "超出预算"})
        assert response.json()["status"] == 4

    async def test_approver_dashboard(self, client: AsyncClient, team):
        for action in (1, 2):
            app = (await client.post(
                f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(team["manager"].id)
            )).json()
            task_id = await open_task_id(client, team["manager_headers"], app["id"])
            await client.post(f"{TASKS}/approve", headers=team["manager_headers"],
                              json={"task_id": task_id, "action": action})
        await client.post(f"{APPS}/reimburse", headers=team["employee_headers"],
                          json=reimburse_payload(team["manager"].id))

        today = date.today()
        response = await client.get(f"{TASKS}/dashboard", headers=team["manager_headers"],
                                    params={"year": today.year, "month": today.month})
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["total_count"] == 2
        assert data["approved_count"] == 1
        assert data["rejected_count"] == 1
        assert data["pending_count"] == 1
        assert {s["app_type"]: s["count"] for s in data["type_stats"]} == {"leave": 2, "reimburse": 0}
        assert sum(d["count"] for d in data["daily_stats"]) == 2
        assert len(data["monthly_stats"]) == 12
        assert data["daily_stats"][today.day - 1]["count"] == 2
