"""PomoTask Backend -- 托管后端（认证 + 数据表）访问层

packages/backend 的公开接口导出。
"""

from .auth import AuthClient, AuthSession
from .client import RestClient

# 配置
from .config import BackendConfig, load_backend_config

# 异常
from .exceptions import (
    AuthError,
    BackendError,
    BackendResponseError,
    BackendUnreachableError,
    RecordNotFoundError,
)
from .profiles import RemoteProfileRepository
from .sessions import RemoteSessionRepository
from .tasks import RemoteTaskRepository

__all__ = [
    "RestClient",
    "AuthClient",
    "AuthSession",
    "RemoteTaskRepository",
    "RemoteSessionRepository",
    "RemoteProfileRepository",
    "BackendConfig",
    "load_backend_config",
    "BackendError",
    "BackendUnreachableError",
    "BackendResponseError",
    "AuthError",
    "RecordNotFoundError",
]
