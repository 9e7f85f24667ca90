"""FastAPI 应用主文件

app 创建 + lifespan 管理：
- 启动：按 POMOTASK_BACKEND_MODE 选择本地 SQLite 或托管后端，
  构造进程唯一的 PomodoroEngine，并加载偏好设置
- 关闭：停止计时器（尽力取消进行中的会话），关闭存储连接
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from pomotask.backend import (
    AuthClient,
    RemoteProfileRepository,
    RemoteSessionRepository,
    RemoteTaskRepository,
    RestClient,
    load_backend_config,
)
from pomotask.core.config import REMOTE_TIMEOUT_S, get_db_path, get_tick_interval_s
from pomotask.core.exceptions import PomodoroError
from pomotask.core.identity import StaticIdentity
from pomotask.core.preferences import PreferenceBinding
from pomotask.core.store import (
    CachedTaskRepository,
    ProfileRepository,
    SessionRepository,
    TaskRepository,
    create_store_group,
)
from pomotask.core.timer import AsyncioTickScheduler, PomodoroEngine, TickScheduler

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import auth, health, preferences, stream, tasks, timer
from .services.timer_hub import TimerHub

log = structlog.get_logger()


def install_runtime(
    app: FastAPI,
    *,
    task_repo: TaskRepository,
    session_repo: SessionRepository,
    profile_repo: ProfileRepository | None,
    scheduler: TickScheduler | None = None,
    remote_timeout_s: float = REMOTE_TIMEOUT_S,
) -> PomodoroEngine:
    """构造引擎、缓存、偏好绑定和快照广播器，挂到 app.state"""
    cached_tasks = CachedTaskRepository(task_repo)
    engine = PomodoroEngine(
        session_repo,
        cached_tasks,
        scheduler=scheduler or AsyncioTickScheduler(get_tick_interval_s()),
        remote_timeout_s=remote_timeout_s,
    )
    hub = TimerHub()
    hub.attach(engine)

    app.state.tasks = cached_tasks
    app.state.engine = engine
    app.state.binding = PreferenceBinding(engine, profile_repo)
    app.state.timer_hub = hub
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：mount 时构造引擎，unmount 时停止"""
    config = load_backend_config()
    app.state.backend_config = config
    app.state.store_group = None
    app.state.rest_client = None
    app.state.auth = None

    if config.mode == "remote":
        rest_client = RestClient.from_config(config)
        auth_client = AuthClient(rest_client)
        app.state.rest_client = rest_client
        app.state.auth = auth_client
        install_runtime(
            app,
            task_repo=RemoteTaskRepository(rest_client, auth_client),
            session_repo=RemoteSessionRepository(rest_client, auth_client),
            profile_repo=RemoteProfileRepository(rest_client, auth_client),
        )
        log.info("runtime_initialized", mode="remote", base_url=config.base_url)
    else:
        identity = StaticIdentity(config.local_user_id)
        store_group = await create_store_group(get_db_path(), identity)
        app.state.store_group = store_group
        install_runtime(
            app,
            task_repo=store_group.task_store,
            session_repo=store_group.session_store,
            profile_repo=store_group.profile_store,
        )
        try:
            await app.state.binding.load()
        except PomodoroError as e:
            log.warning("preferences_load_failed", error=e.message)
        log.info("runtime_initialized", mode="local", user_id=config.local_user_id)

    yield

    # 关闭：停止计时器，清理连接
    app.state.timer_hub.detach()
    await app.state.engine.aclose()
    if app.state.store_group is not None:
        await app.state.store_group.close()
    if app.state.rest_client is not None:
        await app.state.rest_client.aclose()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="PomoTask Gateway",
        version="0.1.0",
        description="PomoTask 番茄钟会话引擎 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()
    setup_logfire(app)

    app.include_router(timer.router, tags=["timer"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(preferences.router, tags=["preferences"])
    app.include_router(auth.router, tags=["auth"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
