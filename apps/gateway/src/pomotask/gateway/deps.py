"""依赖注入模块 -- 通过 FastAPI Depends 注入引擎与存储

所有实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from pomotask.backend.auth import AuthClient
from pomotask.core.preferences import PreferenceBinding
from pomotask.core.store import CachedTaskRepository
from pomotask.core.timer import PomodoroEngine

from .services.timer_hub import TimerHub


def get_engine(request: Request) -> PomodoroEngine:
    """从 app.state 获取进程唯一的 PomodoroEngine"""
    return request.app.state.engine


def get_tasks(request: Request) -> CachedTaskRepository:
    """从 app.state 获取带缓存的 TaskRepository"""
    return request.app.state.tasks


def get_binding(request: Request) -> PreferenceBinding:
    return request.app.state.binding


def get_timer_hub(request: Request) -> TimerHub:
    return request.app.state.timer_hub


def get_auth(request: Request) -> AuthClient | None:
    """remote 模式下的认证客户端，local 模式为 None"""
    return getattr(request.app.state, "auth", None)
