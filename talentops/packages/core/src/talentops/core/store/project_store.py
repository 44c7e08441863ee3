"""ProjectStore SQLite 实现

只保存任务归属和名称展示所需的最小项目信息。
"""

from datetime import datetime

import aiosqlite

from ..models.note import Project


class SqliteProjectStore:
    """ProjectStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_project(self, project: Project) -> None:
        """创建项目记录（不自动提交）"""
        await self._conn.execute(
            """
            INSERT INTO projects (project_id, org_id, name, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                project.project_id,
                project.org_id,
                project.name,
                project.created_at.isoformat(),
            ),
        )

    async def get_project(self, project_id: str) -> Project | None:
        cursor = await self._conn.execute(
            "SELECT * FROM projects WHERE project_id = ?",
            (project_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_project(row)

    async def get_project_names(self, project_ids: list[str]) -> dict[str, str]:
        """批量查询项目名称，用于高管视图关联展示"""
        ids = sorted(set(project_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        cursor = await self._conn.execute(
            f"SELECT project_id, name FROM projects WHERE project_id IN ({placeholders})",
            ids,
        )
        rows = await cursor.fetchall()
        return {row["project_id"]: row["name"] for row in rows}

    @staticmethod
    def _row_to_project(row: aiosqlite.Row) -> Project:
        return Project(
            project_id=row["project_id"],
            org_id=row["org_id"],
            name=row["name"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
