"""全局 pytest 配置 -- 虚拟时钟与临时 SQLite 数据库 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio


class ManualTickScheduler:
    """虚拟时钟 tick 驱动 -- advance(n) 同步投递 n 次 tick"""

    def __init__(self) -> None:
        self._callback = None
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback) -> None:
        if self._callback is not None:
            return
        self._callback = callback
        self.start_calls += 1

    def stop(self) -> None:
        self._callback = None
        self.stop_calls += 1

    def advance(self, seconds: int = 1) -> int:
        """推进虚拟时间，返回实际投递的 tick 数"""
        delivered = 0
        for _ in range(seconds):
            if self._callback is None:
                break
            self._callback()
            delivered += 1
        return delivered


@pytest.fixture
def scheduler() -> ManualTickScheduler:
    return ManualTickScheduler()


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from pomotask.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()
