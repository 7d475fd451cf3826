import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-approval-system")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "approval_system_test_logs"))

from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from approval_system.core.database import get_async_session
from approval_system.core.security import create_access_token, get_password_hash
from approval_system.db.init_db import create_tables
from approval_system.db.seeds.initial_data import create_initial_data
from approval_system.main import app
from approval_system.models.auth.post import Post
from approval_system.models.auth.user import User
from approval_system.models.organization.department import Department
from approval_system.utils.rate_limiter import login_rate_limiter

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "Passw0rd!"
ADMIN_LOGIN = {"username": "admin", "password": "Admin@123456"}


@pytest.fixture
async def session_maker():
    """Fresh in-memory database with the seed data, one per test"""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(test_engine)

    maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        await create_initial_data(session)

    yield maker
    await test_engine.dispose()


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as s:
        yield s


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_async_session] = override_get_db
    login_rate_limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def admin_headers(client: AsyncClient) -> dict:
    response = await client.post("/api/v1/auth/login", json=ADMIN_LOGIN)
    tokens = response.json()
    return {"Authorization": f"Bearer {tokens['access_token']}"}


def auth_headers_for(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "username": user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_department(session_maker):
    async def _make(name: str, parent_id: int = 0) -> Department:
        async with session_maker() as s:
            dept = Department(dept_name=name, parent_id=parent_id, status=1, order_num=0)
            s.add(dept)
            await s.commit()
            return dept
    return _make


@pytest.fixture
def make_user(session_maker):
    async def _make(username: str, post_code: str = "EMPLOYEE", dept_id: Optional[int] = None,
                    real_name: Optional[str] = None) -> User:
        async with session_maker() as s:
            post_id = await s.scalar(select(Post.id).where(Post.post_code == post_code))
            user = User(
                username=username,
                real_name=real_name or username,
                hashed_password=get_password_hash(TEST_PASSWORD),
                dept_id=dept_id,
                post_id=post_id,
                status=1,
            )
            s.add(user)
            await s.commit()
            return user
    return _make


@pytest.fixture
async def root_department(session_maker) -> Department:
    async with session_maker() as s:
        return await s.scalar(select(Department).where(Department.parent_id == 0))


@pytest.fixture
async def team(make_department, make_user, root_department):
    """A department under the root with one manager and two employees"""
    dept = await make_department("研发部", parent_id=root_department.id)
    manager = await make_user("manager", post_code="MANAGER", dept_id=dept.id, real_name="张经理")
    employee = await make_user("employee", dept_id=dept.id, real_name="李员工")
    colleague = await make_user("colleague", dept_id=dept.id, real_name="王同事")
    return {
        "dept": dept,
        "manager": manager,
        "employee": employee,
        "colleague": colleague,
        "manager_headers": auth_headers_for(manager),
        "employee_headers": auth_headers_for(employee),
        "colleague_headers": auth_headers_for(colleague),
    }
