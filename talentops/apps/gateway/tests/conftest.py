"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient + 操作者请求头"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from talentops.core.store import create_store_group
from talentops.gateway.services.notifier import Notifier

_ENV_KEYS = ["TALENTOPS_DB_PATH", "TALENTOPS_PROOFS_DIR", "LOGFIRE_SEND_TO_LOGFIRE"]


def actor_headers(
    actor_id: str,
    role: str = "employee",
    project_id: str | None = None,
    org_id: str = "org-1",
) -> dict[str, str]:
    headers = {"X-Actor-Id": actor_id, "X-Actor-Role": role, "X-Org-Id": org_id}
    if project_id:
        headers["X-Project-Id"] = project_id
    return headers


@pytest.fixture
def headers_for():
    """返回构造操作者请求头的函数"""
    return actor_headers


@pytest_asyncio.fixture
async def app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（手动初始化，绕过 lifespan）"""
    os.environ["TALENTOPS_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["TALENTOPS_PROOFS_DIR"] = str(tmp_path / "proofs")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from talentops.gateway.main import create_app

    application = create_app()
    store_group = await create_store_group(
        str(tmp_path / "sqlite" / "test.db"),
        str(tmp_path / "proofs"),
        application.state.proof_config,
    )
    application.state.store_group = store_group
    application.state.notifier = Notifier()

    yield application

    await store_group.conn.close()
    for key in _ENV_KEYS:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def project_id(client: AsyncClient, headers_for) -> str:
    """经理创建的项目"""
    resp = await client.post(
        "/api/projects",
        json={"name": "Apollo"},
        headers=headers_for("mgr-1", "manager"),
    )
    assert resp.status_code == 201
    return resp.json()["project"]["project_id"]


@pytest_asyncio.fixture
async def task_id(client: AsyncClient, headers_for, project_id: str) -> str:
    """向导为 emp-1 创建的一条任务"""
    resp = await client.post(
        f"/api/projects/{project_id}/tasks",
        json={"assignments": [{"employee_id": "emp-1", "tasks": [{"title": "Build API"}]}]},
        headers=headers_for("mgr-1", "manager"),
    )
    assert resp.status_code == 201
    return resp.json()["tasks"][0]["task_id"]
