import pytest
from httpx import AsyncClient
from fastapi import status

from tests.conftest import ADMIN_LOGIN, TEST_PASSWORD


@pytest.mark.asyncio
class TestAuth:
    """Test authentication endpoints"""

    async def test_admin_login(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/login", json=ADMIN_LOGIN)
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["token_type"] == "bearer"
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["user"]["dashboard_role"] == "admin"
        assert "SYSTEM_ADMIN" in data["user"]["permissions"]
        assert data["user"]["dept_name"] == "总公司"

    async def test_login_invalid_credentials(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login", json={"username": "admin", "password": "wrong-password"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

        response = await client.post(
            "/api/v1/auth/login", json={"username": "nobody", "password": TEST_PASSWORD}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_register_user(self, client: AsyncClient):
        user_data = {
            "username": "newcomer",
            "real_name": "新同事",
            "email": "newcomer@example.com",
            "password": TEST_PASSWORD,
            "confirm_password": TEST_PASSWORD,
        }
        response = await client.post("/api/v1/auth/register", json=user_data)
        assert response.status_code == status.HTTP_201_CREATED

        data = response.json()
        assert data["username"] == "newcomer"
        assert data["dept_id"] is None
        assert data["post_name"] == "普通员工"
        assert "hashed_password" not in data

        response = await client.post("/api/v1/auth/register", json=user_data)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_register_rejects_weak_password(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={
            "username": "weakling",
            "real_name": "Weak",
            "password": "Password1",
            "confirm_password": "Password1",
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_me_reports_dashboard_role(self, client: AsyncClient, team):
        response = await client.get("/api/v1/auth/me", headers=team["employee_headers"])
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["dashboard_role"] == "employee"

        response = await client.get("/api/v1/auth/me", headers=team["manager_headers"])
        assert response.json()["dashboard_role"] == "approver"
        assert response.json()["dept_name"] == "研发部"

    async def test_missing_or_bad_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_refresh_and_logout(self, client: AsyncClient):
        tokens = (await client.post("/api/v1/auth/login", json=ADMIN_LOGIN)).json()

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == status.HTTP_200_OK
        assert "access_token" in response.json()

        headers = {"Authorization": f"Bearer {tokens['access_token']}"}
        response = await client.post(
            "/api/v1/auth/logout", json={"refresh_token": tokens["refresh_token"]}, headers=headers
        )
        assert response.status_code == status.HTTP_200_OK

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_change_password(self, client: AsyncClient, team):
        response = await client.post("/api/v1/auth/change-password", headers=team["employee_headers"], json={
            "current_password": TEST_PASSWORD,
            "new_password": "N3w-Secret!",
            "confirm_password": "N3w-Secret!",
        })
        assert response.status_code == status.HTTP_200_OK

        response = await client.post(
            "/api/v1/auth/login", json={"username": "employee", "password": "N3w-Secret!"}
        )
        assert response.status_code == status.HTTP_200_OK
