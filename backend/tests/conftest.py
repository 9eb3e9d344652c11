"""
AgenticOS 测试配置

每个测试使用独立的 SQLite 文件数据库（内存数据库在连接之间不共享数据）。
"""
import os
import tempfile

os.environ.setdefault("AGENTICOS_LOG_DIR", os.path.join(tempfile.gettempdir(), "agenticos-test-logs"))

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from agenticos.core.context import AppContext
from agenticos.database.client import SQLAlchemyRowStore
from agenticos.main import create_app
from agenticos.models.project_schemas import ProjectCreate
from agenticos.models.user_schemas import UserCreate


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def store(tmp_path):
    """未初始化结构的行存储"""
    client = SQLAlchemyRowStore(sqlite_url(tmp_path))
    yield client
    await client.close()


@pytest_asyncio.fixture
async def context(store):
    """已建表的应用上下文"""
    ctx = AppContext.build(store)
    await ctx.initialize()
    return ctx


@pytest_asyncio.fixture
async def user(context):
    """测试用户"""
    return await context.users.create(UserCreate(email="alice@example.com", name="Alice", password="secret1"))


@pytest_asyncio.fixture
async def project_id(context, user):
    """测试用户名下的项目"""
    return await context.projects.create(user.id, ProjectCreate(name="Checkout", description="Payments"))


class BusRecorder:
    """记录变更通知次数"""

    def __init__(self, bus):
        self.count = 0
        self.unsubscribe = bus.subscribe(self._on_change)

    def _on_change(self):
        self.count += 1


@pytest.fixture
def recorder(context):
    rec = BusRecorder(context.bus)
    yield rec
    rec.unsubscribe()


@pytest.fixture
def app(tmp_path):
    """绑定到临时数据库的应用"""
    return create_app(AppContext.build(SQLAlchemyRowStore(sqlite_url(tmp_path))))


@pytest.fixture
def client(app):
    """提供测试客户端（触发 lifespan：建表并写入演示用户）"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signup(client):
    """注册并返回认证头"""

    def _signup(email: str = "bob@example.com", name: str = "Bob", password: str = "secret1") -> dict:
        resp = client.post("/api/v1/auth/signup", json={"email": email, "name": name, "password": password})
        assert resp.status_code == 201, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _signup


@pytest.fixture
def auth_headers(signup):
    return signup()
