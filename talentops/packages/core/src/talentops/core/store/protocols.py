"""Store Protocol 接口定义

定义 TaskStore、ProjectStore、NoteStore、ProofStorage 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..models.note import Project, TaskNote
from ..models.proof import StoredProof
from ..models.task import Task, TaskFilter


@runtime_checkable
class TaskStore(Protocol):
    """Task 存储接口"""

    async def insert_tasks(self, tasks: list[Task]) -> None:
        """批量插入任务，失败抛出 InsertError"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """查询任务列表"""
        ...

    async def update_task_conditional(
        self,
        task_id: str,
        expected_sub_state: str,
        patch: dict[str, Any],
    ) -> bool:
        """条件更新：WHERE task_id = ? AND sub_state = ?，返回是否命中"""
        ...

    async def normalize_legacy_tasks(self) -> int:
        """补齐缺失生命周期字段的旧数据，返回处理行数"""
        ...


@runtime_checkable
class ProjectStore(Protocol):
    """Project 存储接口"""

    async def create_project(self, project: Project) -> None: ...

    async def get_project(self, project_id: str) -> Project | None: ...

    async def get_project_names(self, project_ids: list[str]) -> dict[str, str]: ...


@runtime_checkable
class NoteStore(Protocol):
    """TaskNote 存储接口

    备注表 append-only：只允许插入，不允许更新或删除。
    """

    async def append_note(self, note: TaskNote) -> None: ...

    async def list_notes(self, task_id: str) -> list[TaskNote]: ...


@runtime_checkable
class ProofStorage(Protocol):
    """证明文件存储接口"""

    @property
    def proofs_dir(self) -> Path: ...

    @property
    def max_bytes(self) -> int:
        """单个证明文件的大小上限（字节）"""
        ...

    async def upload_proof(
        self,
        task_id: str,
        actor_id: str,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> StoredProof:
        """写入证明文件，返回包含公开 URL 的 StoredProof"""
        ...

    def discard(self, proof: StoredProof) -> None:
        """删除未能关联到任务的证明文件"""
        ...
