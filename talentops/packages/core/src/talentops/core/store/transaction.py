"""事务封装

每个写入操作在同一 SQLite 事务内提交，失败时回滚并原样抛出，
确保任务停留在最后一次提交的状态。

同一连接上的写事务通过 write_lock 串行执行：从第一条语句到
commit / rollback 之间不会混入其他请求的写入。
"""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite

from ..models.note import Project, TaskNote
from ..models.task import Task
from .protocols import NoteStore, ProjectStore, TaskStore

# aiosqlite.Connection -> asyncio.Lock
_write_locks: "weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def write_lock(conn: aiosqlite.Connection) -> asyncio.Lock:
    """返回该连接上的写事务锁"""
    lock = _write_locks.get(conn)
    if lock is None:
        lock = asyncio.Lock()
        _write_locks[conn] = lock
    return lock


@asynccontextmanager
async def _write_transaction(conn: aiosqlite.Connection) -> AsyncIterator[None]:
    """持有写锁执行一个事务：正常退出时提交，异常时回滚并抛出"""
    async with write_lock(conn):
        try:
            yield
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise


async def insert_tasks_atomically(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    tasks: list[Task],
) -> None:
    """整批插入任务，任意一行失败则整批回滚

    Raises:
        InsertError: 指出被拒绝的行号和标题
    """
    async with _write_transaction(conn):
        await task_store.insert_tasks(tasks)


async def update_task_guarded(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    task_id: str,
    expected_sub_state: str,
    patch: dict[str, Any],
) -> bool:
    """以 sub_state 为守卫条件更新任务并提交

    Returns:
        是否命中一行
    """
    async with _write_transaction(conn):
        updated = await task_store.update_task_conditional(
            task_id, expected_sub_state, patch
        )
    return updated


async def save_project(
    conn: aiosqlite.Connection,
    project_store: ProjectStore,
    project: Project,
) -> None:
    async with _write_transaction(conn):
        await project_store.create_project(project)


async def append_note(
    conn: aiosqlite.Connection,
    note_store: NoteStore,
    note: TaskNote,
) -> None:
    async with _write_transaction(conn):
        await note_store.append_note(note)


async def migrate_legacy_tasks(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
) -> int:
    """规整旧数据并提交

    Returns:
        被规整的行数
    """
    async with _write_transaction(conn):
        count = await task_store.normalize_legacy_tasks()
    return count
