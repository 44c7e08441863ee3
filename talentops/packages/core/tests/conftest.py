"""packages/core 测试配置 -- 核心层 fixture 与任务构造辅助"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from talentops.core.models import (
    Actor,
    LifecyclePhase,
    Project,
    Role,
    SubState,
    Task,
    derive_status,
)
from talentops.core.store import StoreGroup, create_store_group
from talentops.core.store.transaction import save_project

FIXED_NOW = datetime(2025, 3, 10, 9, 30, tzinfo=UTC)


def make_task(
    task_id: str = "01JTASK0000000000000000001",
    phase: LifecyclePhase = LifecyclePhase.REQUIREMENT_REFINER,
    sub_state: SubState = SubState.IN_PROGRESS,
    assigned_to: str | None = "emp-1",
    project_id: str = "01JPROJ0000000000000000001",
    proof_url: str | None = None,
    title: str = "Build login page",
) -> Task:
    """构造任意生命周期状态的 Task"""
    return Task(
        task_id=task_id,
        project_id=project_id,
        org_id="org-1",
        title=title,
        assigned_to=assigned_to,
        assigned_by="lead-1",
        status=derive_status(phase),
        lifecycle_state=phase,
        sub_state=sub_state,
        proof_url=proof_url,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture
def task_factory():
    """返回 make_task，供测试构造任意状态的任务"""
    return make_task


@pytest.fixture
def employee() -> Actor:
    return Actor(
        actor_id="emp-1",
        role=Role.EMPLOYEE,
        org_id="org-1",
        project_id="01JPROJ0000000000000000001",
    )


@pytest.fixture
def lead() -> Actor:
    return Actor(
        actor_id="lead-1",
        role=Role.TEAM_LEAD,
        org_id="org-1",
        project_id="01JPROJ0000000000000000001",
    )


@pytest_asyncio.fixture
async def core_store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """核心层 StoreGroup（临时数据库 + 临时证明文件目录）"""
    sg = await create_store_group(
        str(tmp_path / "core_test.db"),
        str(tmp_path / "proofs"),
    )
    yield sg
    await sg.conn.close()


@pytest_asyncio.fixture
async def project(core_store_group: StoreGroup) -> Project:
    """已落盘的项目"""
    p = Project(
        project_id="01JPROJ0000000000000000001",
        org_id="org-1",
        name="Apollo",
        created_at=FIXED_NOW,
    )
    await save_project(core_store_group.conn, core_store_group.project_store, p)
    return p
