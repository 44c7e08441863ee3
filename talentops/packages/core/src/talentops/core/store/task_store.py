"""TaskStore SQLite 实现

tasks 表只允许三类写入：创建（批量插入）、生命周期引擎的条件更新、
旧数据规整。所有方法不自动提交事务，由 transaction 模块管理。
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any

import aiosqlite

from ..exceptions import InsertError
from ..lifecycle import normalize_lifecycle
from ..models.enums import Priority
from ..models.task import PhaseValidations, Task, TaskFilter

# 条件更新允许写入的列
_UPDATABLE_COLUMNS = frozenset(
    {"proof_url", "sub_state", "lifecycle_state", "status", "updated_at"}
)

_INSERT_SQL = """
INSERT INTO tasks (task_id, project_id, org_id, title, description,
                   assigned_to, assigned_by, priority, status,
                   lifecycle_state, sub_state, proof_url, allocated_hours,
                   start_date, due_date, phase_validations,
                   created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _to_db(value: Any) -> Any:
    """把 Python 值转换为 SQLite 可存储的值"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建单条任务记录"""
        await self._conn.execute(
            _INSERT_SQL,
            (
                task.task_id,
                task.project_id,
                task.org_id,
                task.title,
                task.description,
                task.assigned_to,
                task.assigned_by,
                task.priority.value,
                task.status.value,
                task.lifecycle_state.value,
                task.sub_state.value,
                task.proof_url,
                task.allocated_hours,
                _to_db(task.start_date),
                _to_db(task.due_date),
                task.phase_validations.model_dump_json(),
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
            ),
        )

    async def insert_tasks(self, tasks: list[Task]) -> None:
        """批量插入任务

        Raises:
            InsertError: 某一行违反约束；调用方负责回滚整批
        """
        for index, task in enumerate(tasks):
            try:
                await self.create_task(task)
            except aiosqlite.IntegrityError as e:
                raise InsertError(index, task.title, str(e)) from e

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """查询任务列表，按 created_at 倒序

        未设置的筛选字段不参与查询。
        """
        task_filter = task_filter or TaskFilter()
        clauses: list[str] = []
        params: list[Any] = []
        for column in ("org_id", "project_id", "assigned_to", "status"):
            value = getattr(task_filter, column)
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(_to_db(value))

        sql = "SELECT * FROM tasks"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC, task_id DESC"

        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task_conditional(
        self,
        task_id: str,
        expected_sub_state: str,
        patch: dict[str, Any],
    ) -> bool:
        """条件更新：仅当 sub_state 仍为 expected_sub_state 时写入

        Returns:
            True 表示命中一行；False 表示任务已被其他请求修改或不存在
        """
        unknown = set(patch) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {sorted(unknown)}")
        if not patch:
            raise ValueError("Empty patch")

        columns = sorted(patch)
        assignments = ", ".join(f"{col} = ?" for col in columns)
        params = [_to_db(patch[col]) for col in columns]
        params.extend([task_id, _to_db(expected_sub_state)])

        cursor = await self._conn.execute(
            f"UPDATE tasks SET {assignments} WHERE task_id = ? AND sub_state = ?",
            params,
        )
        return cursor.rowcount == 1

    async def normalize_legacy_tasks(self) -> int:
        """补齐缺少 lifecycle_state / sub_state 的旧数据

        Returns:
            被规整的行数
        """
        cursor = await self._conn.execute(
            """
            SELECT task_id, status, lifecycle_state, sub_state FROM tasks
            WHERE lifecycle_state IS NULL OR sub_state IS NULL
            """
        )
        rows = await cursor.fetchall()
        for row in rows:
            phase, sub, status = normalize_lifecycle(
                row["status"], row["lifecycle_state"], row["sub_state"]
            )
            await self._conn.execute(
                """
                UPDATE tasks SET lifecycle_state = ?, sub_state = ?, status = ?
                WHERE task_id = ?
                """,
                (phase.value, sub.value, status.value, row["task_id"]),
            )
        return len(rows)

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型（旧数据在此处规整）"""
        phase, sub, status = normalize_lifecycle(
            row["status"], row["lifecycle_state"], row["sub_state"]
        )
        validations = json.loads(row["phase_validations"] or "{}")
        return Task(
            task_id=row["task_id"],
            project_id=row["project_id"],
            org_id=row["org_id"],
            title=row["title"],
            description=row["description"],
            assigned_to=row["assigned_to"],
            assigned_by=row["assigned_by"],
            priority=Priority(row["priority"].lower()),
            status=status,
            lifecycle_state=phase,
            sub_state=sub,
            proof_url=row["proof_url"],
            allocated_hours=row["allocated_hours"],
            start_date=_parse_date(row["start_date"]),
            due_date=_parse_date(row["due_date"]),
            phase_validations=PhaseValidations(**validations),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


def _parse_date(value: str | None) -> date | None:
    # 旧数据可能存的是完整时间戳
    if not value:
        return None
    return date.fromisoformat(value[:10])
