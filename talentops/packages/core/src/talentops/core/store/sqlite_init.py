"""SQLite 数据库初始化

PRAGMA 配置 + projects / tasks / task_notes 三张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# projects 表 DDL
_PROJECTS_DDL = """
CREATE TABLE IF NOT EXISTS projects (
    project_id  TEXT PRIMARY KEY,
    org_id      TEXT NOT NULL DEFAULT '',
    name        TEXT NOT NULL,
    created_at  TEXT NOT NULL
);
"""

_PROJECTS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_projects_org_id ON projects(org_id);",
]

# tasks 表 DDL
# lifecycle_state / sub_state 允许为 NULL：兼容旧版临时创建路径写入的行，
# 启动时由 normalize_legacy_tasks 补齐。
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id           TEXT PRIMARY KEY,
    project_id        TEXT NOT NULL,
    org_id            TEXT NOT NULL DEFAULT '',
    title             TEXT NOT NULL CHECK (length(trim(title)) > 0),
    description       TEXT NOT NULL DEFAULT '',
    assigned_to       TEXT,
    assigned_by       TEXT NOT NULL DEFAULT '',
    priority          TEXT NOT NULL DEFAULT 'medium',
    status            TEXT NOT NULL DEFAULT 'pending',
    lifecycle_state   TEXT,
    sub_state         TEXT,
    proof_url         TEXT,
    allocated_hours   REAL NOT NULL DEFAULT 8 CHECK (allocated_hours >= 0),
    start_date        TEXT,
    due_date          TEXT,
    phase_validations TEXT NOT NULL DEFAULT '{}',
    created_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL,

    FOREIGN KEY (project_id) REFERENCES projects(project_id)
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assigned_to ON tasks(assigned_to);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_org_status ON tasks(org_id, status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# task_notes 表 DDL（append-only）
_TASK_NOTES_DDL = """
CREATE TABLE IF NOT EXISTS task_notes (
    note_id     TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    org_id      TEXT NOT NULL DEFAULT '',
    author_id   TEXT NOT NULL,
    note_text   TEXT NOT NULL CHECK (length(trim(note_text)) > 0),
    created_at  TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_TASK_NOTES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_task_notes_task_ts ON task_notes(task_id, created_at DESC);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_PROJECTS_DDL)
    await conn.execute(_TASKS_DDL)
    await conn.execute(_TASK_NOTES_DDL)

    for idx_sql in _PROJECTS_INDEXES + _TASKS_INDEXES + _TASK_NOTES_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
