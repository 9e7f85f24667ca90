"""PomoTask Core Store -- local 模式 SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .cache import CachedTaskRepository
from .profile_store import SqliteProfileStore
from .protocols import Identity, ProfileRepository, SessionRepository, TaskRepository
from .session_store import SqliteSessionStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接和用户身份"""

    def __init__(self, conn: aiosqlite.Connection, identity: Identity) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn, identity)
        self.session_store = SqliteSessionStore(conn, identity)
        self.profile_store = SqliteProfileStore(conn, identity)

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(db_path: str, identity: Identity) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径
        identity: 当前用户身份

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn, identity=identity)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "init_db",
    "CachedTaskRepository",
    "SqliteTaskStore",
    "SqliteSessionStore",
    "SqliteProfileStore",
    "Identity",
    "TaskRepository",
    "SessionRepository",
    "ProfileRepository",
]
