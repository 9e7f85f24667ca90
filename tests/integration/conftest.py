"""集成测试配置 -- 完整 lifespan（local 模式）+ 加速的真实 tick"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# 10ms 一个 tick，1 分钟的番茄钟约 0.6 秒走完
FAST_TICK_INTERVAL_S = "0.01"


@pytest.fixture
def integration_env(tmp_path: Path, monkeypatch) -> Path:
    db_path = tmp_path / "sqlite" / "integration.db"
    monkeypatch.setenv("POMOTASK_DB_PATH", str(db_path))
    monkeypatch.setenv("POMOTASK_BACKEND_MODE", "local")
    monkeypatch.setenv("POMOTASK_LOCAL_USER_ID", "local-user")
    monkeypatch.setenv("POMOTASK_TICK_INTERVAL_S", FAST_TICK_INTERVAL_S)
    return db_path


@pytest_asyncio.fixture
async def integration_app(integration_env: Path):
    from pomotask.gateway.main import create_app

    app = create_app()
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
