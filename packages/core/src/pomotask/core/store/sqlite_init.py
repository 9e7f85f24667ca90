"""SQLite 数据库初始化（local 模式）

PRAGMA 配置 + 表 DDL + 索引创建，表结构与托管后端的表一致。
使用 aiosqlite 异步操作。
"""

import aiosqlite

_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    id                   TEXT PRIMARY KEY,
    user_id              TEXT NOT NULL,
    title                TEXT NOT NULL,
    description          TEXT,
    priority             TEXT NOT NULL DEFAULT 'medium',
    due_date             TEXT,
    estimated_pomodoros  INTEGER NOT NULL DEFAULT 1,
    completed_pomodoros  INTEGER NOT NULL DEFAULT 0,
    is_completed         INTEGER NOT NULL DEFAULT 0,
    created_at           TEXT NOT NULL,
    updated_at           TEXT NOT NULL
);
"""

_TAGS_DDL = """
CREATE TABLE IF NOT EXISTS tags (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    name        TEXT NOT NULL,
    color       TEXT NOT NULL DEFAULT '#3B82F6',
    created_at  TEXT NOT NULL,

    UNIQUE (user_id, name)
);
"""

_TASK_TAGS_DDL = """
CREATE TABLE IF NOT EXISTS task_tags (
    task_id  TEXT NOT NULL,
    tag_id   TEXT NOT NULL,

    PRIMARY KEY (task_id, tag_id),
    FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
    FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
);
"""

_SESSIONS_DDL = """
CREATE TABLE IF NOT EXISTS pomodoro_sessions (
    id            TEXT PRIMARY KEY,
    user_id       TEXT NOT NULL,
    task_id       TEXT NOT NULL,
    duration      INTEGER NOT NULL,
    session_type  TEXT NOT NULL DEFAULT 'work',
    started_at    TEXT NOT NULL,
    completed_at  TEXT,
    status        TEXT NOT NULL DEFAULT 'running',

    FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE
);
"""

_PROFILES_DDL = """
CREATE TABLE IF NOT EXISTS profiles (
    user_id                TEXT PRIMARY KEY,
    pomodoro_duration      INTEGER NOT NULL DEFAULT 25,
    short_break_duration   INTEGER NOT NULL DEFAULT 5,
    long_break_duration    INTEGER NOT NULL DEFAULT 15,
    long_break_interval    INTEGER NOT NULL DEFAULT 4,
    notifications_enabled  INTEGER NOT NULL DEFAULT 1,
    sound_enabled          INTEGER NOT NULL DEFAULT 1,
    updated_at             TEXT NOT NULL
);
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_created ON tasks(user_id, created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_tags_user_name ON tags(user_id, name);",
    "CREATE INDEX IF NOT EXISTS idx_sessions_task_id ON pomodoro_sessions(task_id);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    for ddl in (_TASKS_DDL, _TAGS_DDL, _TASK_TAGS_DDL, _SESSIONS_DDL, _PROFILES_DDL):
        await conn.execute(ddl)

    for idx_sql in _INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效"""
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
