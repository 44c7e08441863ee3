"""NoteStore SQLite 实现

task_notes 表 append-only：只允许插入，不允许更新或删除。
"""

from datetime import datetime

import aiosqlite

from ..models.note import TaskNote


class SqliteNoteStore:
    """NoteStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_note(self, note: TaskNote) -> None:
        """追加备注（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            """
            INSERT INTO task_notes (note_id, task_id, org_id, author_id,
                                    note_text, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                note.note_id,
                note.task_id,
                note.org_id,
                note.author_id,
                note.note_text,
                note.created_at.isoformat(),
            ),
        )

    async def list_notes(self, task_id: str) -> list[TaskNote]:
        """查询指定任务的所有备注，最新的在前

        ULID 字典序即创建顺序，用作同一时间戳下的次级排序。
        """
        cursor = await self._conn.execute(
            """
            SELECT * FROM task_notes WHERE task_id = ?
            ORDER BY created_at DESC, note_id DESC
            """,
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_note(row) for row in rows]

    @staticmethod
    def _row_to_note(row: aiosqlite.Row) -> TaskNote:
        return TaskNote(
            note_id=row["note_id"],
            task_id=row["task_id"],
            org_id=row["org_id"],
            author_id=row["author_id"],
            note_text=row["note_text"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
