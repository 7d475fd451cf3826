from datetime import datetime

import pytest
from httpx import AsyncClient
from fastapi import status

from tests.conftest import auth_headers_for
from tests.integration.helpers import leave_payload, reimburse_payload

APPS = "/api/v1/applications"


@pytest.mark.asyncio
class TestApplications:
    """Creating, submitting, withdrawing and reading applications"""

    async def test_approver_options(self, client: AsyncClient, team):
        response = await client.get(f"{APPS}/approvers", headers=team["employee_headers"])
        assert response.status_code == status.HTTP_200_OK

        approvers = response.json()
        assert [a["user_id"] for a in approvers] == [team["manager"].id]
        assert approvers[0]["post_name"] == "部门经理"

    async def test_submit_leave(self, client: AsyncClient, team):
        response = await client.post(
            f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(team["manager"].id)
        )
        assert response.status_code == status.HTTP_201_CREATED

        data = response.json()
        assert data["status"] == 1
        assert data["status_label"] == "待审批"
        assert data["app_no"].startswith(f"AP{datetime.now():%Y%m%d}")
        assert data["current_node"] == "研发部审批"
        assert data["current_assignee_name"] == "张经理"
        assert data["title"] == "请假申请-家中有事需要处理"
        assert data["leave_detail"]["days"] in ("0.5", 0.5)
        assert data["histories"] == []

    async def test_app_numbers_are_sequential(self, client: AsyncClient, team):
        first = await client.post(f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(submit=False))
        second = await client.post(f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(submit=False))

        assert first.json()["app_no"].endswith("000001")
        assert second.json()["app_no"].endswith("000002")

    async def test_submit_reimbursement(self, client: AsyncClient, team):
        response = await client.post(
            f"{APPS}/reimburse", headers=team["employee_headers"], json=reimburse_payload(team["manager"].id)
        )
        assert response.status_code == status.HTTP_201_CREATED

        data = response.json()
        assert data["app_type"] == "reimburse"
        assert data["reimburse_detail"]["expense_type_label"] == "差旅交通费"
        assert float(data["amount"]) == 320.5

    async def test_invalid_input_is_rejected(self, client: AsyncClient, team):
        payload = leave_payload(team["manager"].id)
        payload["end_time"] = payload["start_time"]
        response = await client.post(f"{APPS}/leave", headers=team["employee_headers"], json=payload)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        response = await client.post(
            f"{APPS}/reimburse", headers=team["employee_headers"], json=reimburse_payload(team["manager"].id, amount="0")
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_approver_must_be_valid(self, client: AsyncClient, team):
        headers = team["employee_headers"]

        response = await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(None))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "请选择审批人"

        response = await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(team["employee"].id))
        assert response.json()["detail"] == "申请人不能审批自己的申请"

        response = await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(team["colleague"].id))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "所选人员暂无审批权限"

    async def test_approver_from_another_department(self, client: AsyncClient, team, make_department, make_user,
                                                     root_department):
        other = await make_department("市场部", parent_id=root_department.id)
        outsider = await make_user("outsider", post_code="MANAGER", dept_id=other.id)

        response = await client.post(
            f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(outsider.id)
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "审批人必须与申请人属于同一部门"

    async def test_submission_needs_department(self, client: AsyncClient, team, make_user):
        drifter = await make_user("drifter")
        response = await client.post(
            f"{APPS}/leave", headers=auth_headers_for(drifter), json=leave_payload(team["manager"].id)
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "您尚未分配部门，暂时无法提交申请"

    async def test_draft_then_submit(self, client: AsyncClient, team):
        headers = team["employee_headers"]
        draft = (await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(submit=False))).json()
        assert draft["status"] == 0
        assert draft["submit_time"] is None

        response = await client.post(
            f"{APPS}/{draft['id']}/submit", headers=headers, json={"approver_id": team["manager"].id}
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == 1

        response = await client.post(
            f"{APPS}/{draft['id']}/submit", headers=headers, json={"approver_id": team["manager"].id}
        )
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_only_owner_submits_draft(self, client: AsyncClient, team):
        draft = (await client.post(
            f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(submit=False)
        )).json()

        response = await client.post(
            f"{APPS}/{draft['id']}/submit", headers=team["colleague_headers"], json={"approver_id": team["manager"].id}
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_delete_draft(self, client: AsyncClient, team):
        headers = team["employee_headers"]
        draft = (await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(submit=False))).json()
        pending = (await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(team["manager"].id))).json()

        response = await client.delete(f"{APPS}/{pending['id']}", headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = await client.delete(f"{APPS}/{draft['id']}", headers=headers)
        assert response.status_code == status.HTTP_200_OK

        response = await client.get(f"{APPS}/{draft['id']}", headers=headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_app_no_continues_after_draft_deleted(self, client: AsyncClient, team):
        headers = team["employee_headers"]
        first = (await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(submit=False))).json()
        second = (await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(submit=False))).json()

        response = await client.delete(f"{APPS}/{first['id']}", headers=headers)
        assert response.status_code == status.HTTP_200_OK

        response = await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(team["manager"].id))
        assert response.status_code == status.HTTP_201_CREATED
        third = response.json()
        assert third["app_no"][:-6] == second["app_no"][:-6]
        assert int(third["app_no"][-6:]) == int(second["app_no"][-6:]) + 1

    async def test_withdraw_pending(self, client: AsyncClient, team):
        headers = team["employee_headers"]
        app = (await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(team["manager"].id))).json()

        response = await client.post(f"{APPS}/{app['id']}/withdraw", headers=team["colleague_headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.post(f"{APPS}/{app['id']}/withdraw", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == 5
        assert response.json()["finish_time"] is not None

        todo = await client.get("/api/v1/tasks/todo", headers=team["manager_headers"])
        assert todo.json()["count"] == 0

        # the withdrawn application leaves the approver's view with its task
        response = await client.get(f"{APPS}/{app['id']}", headers=team["manager_headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.post(f"{APPS}/{app['id']}/withdraw", headers=headers)
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_my_lists_split_by_status(self, client: AsyncClient, team):
        headers = team["employee_headers"]
        await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(submit=False))
        pending = (await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(team["manager"].id))).json()
        withdrawn = (await client.post(f"{APPS}/reimburse", headers=headers,
                                       json=reimburse_payload(team["manager"].id))).json()
        await client.post(f"{APPS}/{withdrawn['id']}/withdraw", headers=headers)

        mine = (await client.get(f"{APPS}/my", headers=headers)).json()
        assert mine["count"] == 2
        assert {row["status"] for row in mine["data"]} == {0, 1}

        only_pending = (await client.get(f"{APPS}/my", headers=headers, params={"status": 1})).json()
        assert [row["id"] for row in only_pending["data"]] == [pending["id"]]

        outside = (await client.get(f"{APPS}/my", headers=headers, params={"status": 3})).json()
        assert outside["count"] == 0

        history = (await client.get(f"{APPS}/history", headers=headers)).json()
        assert [row["id"] for row in history["data"]] == [withdrawn["id"]]

        leave_only = (await client.get(f"{APPS}/history", headers=headers, params={"app_type": "leave"})).json()
        assert leave_only["count"] == 0

    async def test_detail_visibility(self, client: AsyncClient, team, admin_headers):
        app = (await client.post(
            f"{APPS}/leave", headers=team["employee_headers"], json=leave_payload(team["manager"].id)
        )).json()

        response = await client.get(f"{APPS}/{app['id']}", headers=team["colleague_headers"])
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.get(f"{APPS}/{app['id']}", headers=team["manager_headers"])
        assert response.status_code == status.HTTP_200_OK

        response = await client.get(f"{APPS}/{app['id']}", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK

        response = await client.get(f"{APPS}/999999", headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_summary(self, client: AsyncClient, team):
        headers = team["employee_headers"]
        await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(submit=False))
        await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(team["manager"].id))

        response = await client.get(f"{APPS}/summary", headers=headers)
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["total_count"] == 1
        assert data["status_counts"]["draft"] == 1
        assert data["status_counts"]["pending"] == 1
        assert data["type_counts"] == {"leave": 1, "reimburse": 0}
        assert data["last_submit_time"] is not None

    async def test_page_past_the_end_serves_last_page(self, client: AsyncClient, team):
        headers = team["employee_headers"]
        for _ in range(3):
            await client.post(f"{APPS}/leave", headers=headers, json=leave_payload(submit=False))

        page = (await client.get(f"{APPS}/my", headers=headers, params={"page_index": 5, "page_size": 2})).json()
        assert page["page_index"] == 2
        assert page["count"] == 3
        assert len(page["data"]) == 1
