"""TalentOps Core Store -- SQLite 持久化 + 本地证明文件存储

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite
import structlog

from ..config import ProofStorageConfig
from .note_store import SqliteNoteStore
from .project_store import SqliteProjectStore
from .proof_storage import LocalProofStorage
from .protocols import NoteStore, ProjectStore, ProofStorage, TaskStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import (
    append_note,
    insert_tasks_atomically,
    migrate_legacy_tasks,
    save_project,
    update_task_guarded,
    write_lock,
)

log = structlog.get_logger()


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        proofs_dir: Path,
        proof_config: ProofStorageConfig | None = None,
    ) -> None:
        self.conn = conn
        self.task_store: TaskStore = SqliteTaskStore(conn)
        self.project_store: ProjectStore = SqliteProjectStore(conn)
        self.note_store: NoteStore = SqliteNoteStore(conn)
        self.proof_storage: ProofStorage = LocalProofStorage(proofs_dir, proof_config)

    @property
    def write_lock(self) -> asyncio.Lock:
        """共享连接上的写事务锁，transaction 模块的写操作都持有它"""
        return write_lock(self.conn)


async def create_store_group(
    db_path: str,
    proofs_dir: str | Path,
    proof_config: ProofStorageConfig | None = None,
    normalize_legacy: bool = True,
) -> StoreGroup:
    """创建 Store 实例组

    默认在初始化表结构后立即规整旧数据，保证后续读取到的都是合法生命周期。

    Args:
        db_path: SQLite 数据库文件路径
        proofs_dir: 证明文件存储目录
        proof_config: 证明文件上传限制
        normalize_legacy: 是否在启动时规整旧数据

    Returns:
        StoreGroup 实例
    """
    proofs_path = Path(proofs_dir)
    proofs_path.mkdir(parents=True, exist_ok=True)

    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    store_group = StoreGroup(conn=conn, proofs_dir=proofs_path, proof_config=proof_config)
    if normalize_legacy:
        migrated = await migrate_legacy_tasks(conn, store_group.task_store)
        if migrated:
            await log.ainfo("legacy_tasks_normalized", count=migrated)

    return store_group


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteProjectStore",
    "SqliteNoteStore",
    "LocalProofStorage",
    "TaskStore",
    "ProjectStore",
    "NoteStore",
    "ProofStorage",
    "init_db",
    "insert_tasks_atomically",
    "update_task_guarded",
    "save_project",
    "append_note",
    "migrate_legacy_tasks",
    "write_lock",
]
