"""apps/gateway 测试配置 -- 手动装配运行时（绕过 lifespan）+ httpx AsyncClient"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pomotask.core.identity import StaticIdentity
from pomotask.core.models import Task, TaskCreate
from pomotask.core.store import StoreGroup, create_store_group


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    group = await create_store_group(
        str(tmp_path / "sqlite" / "gateway.db"),
        StaticIdentity("local-user"),
    )
    yield group
    await group.close()


@pytest_asyncio.fixture
async def app(store_group: StoreGroup, scheduler):
    """local 模式 app，计时器使用虚拟时钟"""
    from pomotask.gateway.main import create_app, install_runtime

    application = create_app()
    application.state.store_group = store_group
    application.state.rest_client = None
    application.state.auth = None
    install_runtime(
        application,
        task_repo=store_group.task_store,
        session_repo=store_group.session_store,
        profile_repo=store_group.profile_store,
        scheduler=scheduler,
        remote_timeout_s=1.0,
    )
    yield application

    application.state.timer_hub.detach()
    await application.state.engine.aclose()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def task(store_group: StoreGroup) -> Task:
    return await store_group.task_store.create(
        TaskCreate(title="写周报", estimated_pomodoros=2, tags=["work"])
    )
