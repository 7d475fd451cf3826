import pytest
from httpx import AsyncClient
from fastapi import status

from tests.conftest import TEST_PASSWORD
from tests.integration.helpers import leave_payload

ADMIN = "/api/v1/admin"


@pytest.mark.asyncio
class TestAdminAccess:
    async def test_admin_routes_need_system_admin(self, client: AsyncClient, team):
        for path in ("/users/", "/departments/tree", "/posts/all", "/permissions/", "/applications/", "/dashboard/"):
            response = await client.get(f"{ADMIN}{path}", headers=team["manager_headers"])
            assert response.status_code == status.HTTP_403_FORBIDDEN, path


@pytest.mark.asyncio
class TestUserAdmin:
    """User management endpoints"""

    async def test_create_update_and_list(self, client: AsyncClient, admin_headers, team):
        response = await client.post(f"{ADMIN}/users/", headers=admin_headers, json={
            "username": "hire01",
            "real_name": "赵新人",
            "password": TEST_PASSWORD,
            "dept_id": team["dept"].id,
        })
        assert response.status_code == status.HTTP_201_CREATED
        user = response.json()
        assert user["dept_name"] == "研发部"

        response = await client.put(f"{ADMIN}/users/{user['id']}", headers=admin_headers, json={"phone": "138-0000-0000"})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["phone"] == "138-0000-0000"

        page = (await client.get(f"{ADMIN}/users/", headers=admin_headers, params={"dept_id": team["dept"].id})).json()
        assert page["count"] == 4

        page = (await client.get(f"{ADMIN}/users/", headers=admin_headers, params={"real_name": "赵"})).json()
        assert [u["username"] for u in page["data"]] == ["hire01"]

    async def test_duplicate_username(self, client: AsyncClient, admin_headers, team):
        response = await client.post(f"{ADMIN}/users/", headers=admin_headers, json={
            "username": "employee", "real_name": "Dup", "password": TEST_PASSWORD,
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_disable_user_blocks_access(self, client: AsyncClient, admin_headers, team):
        response = await client.put(
            f"{ADMIN}/users/{team['employee'].id}/status", headers=admin_headers, json={"status": 0}
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == 0

        response = await client.get("/api/v1/auth/me", headers=team["employee_headers"])
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

        response = await client.post("/api/v1/auth/login", json={"username": "employee", "password": TEST_PASSWORD})
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_cannot_delete_or_disable_self(self, client: AsyncClient, admin_headers):
        admin_id = (await client.get("/api/v1/auth/me", headers=admin_headers)).json()["user_id"]

        response = await client.delete(f"{ADMIN}/users/{admin_id}", headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = await client.put(f"{ADMIN}/users/{admin_id}/status", headers=admin_headers, json={"status": 0})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_cannot_delete_user_with_open_tasks(self, client: AsyncClient, admin_headers, team):
        await client.post("/api/v1/applications/leave", headers=team["employee_headers"],
                          json=leave_payload(team["manager"].id))

        response = await client.delete(f"{ADMIN}/users/{team['manager'].id}", headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = await client.delete(f"{ADMIN}/users/{team['colleague'].id}", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK

        response = await client.get(f"{ADMIN}/users/{team['colleague'].id}", headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
class TestDepartmentAdmin:
    async def test_tree_and_crud(self, client: AsyncClient, admin_headers, root_department):
        response = await client.post(f"{ADMIN}/departments/", headers=admin_headers, json={
            "parent_id": root_department.id, "dept_name": "财务部",
        })
        assert response.status_code == status.HTTP_201_CREATED
        finance = response.json()
        assert finance["parent_name"] == "总公司"

        response = await client.post(f"{ADMIN}/departments/", headers=admin_headers, json={
            "parent_id": finance["id"], "dept_name": "核算组",
        })
        child = response.json()

        tree = (await client.get(f"{ADMIN}/departments/tree", headers=admin_headers)).json()
        assert len(tree) == 1
        assert tree[0]["children"][0]["dept_name"] == "财务部"
        assert tree[0]["children"][0]["children"][0]["dept_name"] == "核算组"

        response = await client.put(f"{ADMIN}/departments/{finance['id']}", headers=admin_headers,
                                    json={"parent_id": child["id"]})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = await client.delete(f"{ADMIN}/departments/{finance['id']}", headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = await client.delete(f"{ADMIN}/departments/{child['id']}", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK

    async def test_deleting_last_row_of_page_serves_previous_page(self, client: AsyncClient, admin_headers,
                                                                root_department):
        for name in ("财务部", "市场部"):
            response = await client.post(f"{ADMIN}/departments/", headers=admin_headers, json={
                "parent_id": root_department.id, "dept_name": name,
            })
            assert response.status_code == status.HTTP_201_CREATED

        params = {"page_index": 2, "page_size": 2}
        page = (await client.get(f"{ADMIN}/departments/", headers=admin_headers, params=params)).json()
        assert page["page_index"] == 2
        assert [d["dept_name"] for d in page["data"]] == ["市场部"]

        response = await client.delete(f"{ADMIN}/departments/{page['data'][0]['id']}", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK

        page = (await client.get(f"{ADMIN}/departments/", headers=admin_headers, params=params)).json()
        assert page["page_index"] == 1
        assert page["count"] == 2
        assert [d["dept_name"] for d in page["data"]] == ["总公司", "财务部"]

    async def test_cannot_delete_department_with_users(self, client: AsyncClient, admin_headers, team):
        response = await client.delete(f"{ADMIN}/departments/{team['dept'].id}", headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
class TestPostAdmin:
    async def test_create_post_with_permissions(self, client: AsyncClient, admin_headers):
        permissions = (await client.get(f"{ADMIN}/permissions/", headers=admin_headers)).json()
        review = next(p for p in permissions if p["code"] == "APPROVAL_REVIEW")

        response = await client.post(f"{ADMIN}/posts/", headers=admin_headers, json={
            "post_code": "team_lead", "post_name": "组长", "permission_ids": [review["id"]],
        })
        assert response.status_code == status.HTTP_201_CREATED
        post = response.json()
        assert post["post_code"] == "TEAM_LEAD"
        assert [p["code"] for p in post["permissions"]] == ["APPROVAL_REVIEW"]

        response = await client.post(f"{ADMIN}/posts/", headers=admin_headers, json={
            "post_code": "TEAM_LEAD", "post_name": "重复",
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_assign_post_grants_review(self, client: AsyncClient, admin_headers, team):
        posts = (await client.get(f"{ADMIN}/posts/all", headers=admin_headers)).json()
        manager_post = next(p for p in posts if p["post_code"] == "MANAGER")

        response = await client.post(f"{ADMIN}/posts/assign", headers=admin_headers, json={
            "user_id": team["colleague"].id, "post_id": manager_post["id"],
        })
        assert response.status_code == status.HTTP_200_OK

        response = await client.get("/api/v1/tasks/todo", headers=team["colleague_headers"])
        assert response.status_code == status.HTTP_200_OK

    async def test_cannot_delete_post_in_use(self, client: AsyncClient, admin_headers, team):
        posts = (await client.get(f"{ADMIN}/posts/all", headers=admin_headers)).json()
        employee_post = next(p for p in posts if p["post_code"] == "EMPLOYEE")
        assert employee_post["user_count"] == 2

        response = await client.delete(f"{ADMIN}/posts/{employee_post['id']}", headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
class TestApplicationAdmin:
    async def test_list_export_and_dashboard(self, client: AsyncClient, admin_headers, team):
        await client.post("/api/v1/applications/leave", headers=team["employee_headers"],
                          json=leave_payload(team["manager"].id))
        await client.post("/api/v1/applications/leave", headers=team["colleague_headers"],
                          json=leave_payload(submit=False))

        page = (await client.get(f"{ADMIN}/applications/", headers=admin_headers)).json()
        assert page["count"] == 2

        page = (await client.get(f"{ADMIN}/applications/", headers=admin_headers,
                                 params={"applicant_name": "李"})).json()
        assert [row["applicant_name"] for row in page["data"]] == ["李员工"]

        response = await client.get(f"{ADMIN}/applications/export", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert response.content[:2] == b"PK"

        dashboard = (await client.get(f"{ADMIN}/dashboard/", headers=admin_headers)).json()
        assert dashboard["user_count"] == 4
        assert dashboard["department_count"] == 2
        assert dashboard["post_count"] == 3
        assert dashboard["application_count"] == 2
        assert dashboard["open_task_count"] == 1
        assert dashboard["status_counts"]["draft"] == 1
        assert dashboard["status_counts"]["pending"] == 1

    async def test_search_text_matches_literally(self, client: AsyncClient, admin_headers, team):
        await client.post("/api/v1/applications/leave", headers=team["employee_headers"],
                          json=leave_payload(team["manager"].id))

        for params in ({"app_no": "_"}, {"app_no": "%"}, {"applicant_name": "%"}):
            page = (await client.get(f"{ADMIN}/applications/", headers=admin_headers, params=params)).json()
            assert page["count"] == 0

        page = (await client.get(f"{ADMIN}/users/", headers=admin_headers, params={"username": "_"})).json()
        assert page["count"] == 0

        page = (await client.get(f"{ADMIN}/users/", headers=admin_headers, params={"username": "employee"})).json()
        assert [u["username"] for u in page["data"]] == ["employee"]
