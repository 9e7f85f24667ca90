"""BackendConfig -- 托管后端配置加载

从环境变量加载配置，不硬编码后端地址与密钥。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class BackendConfig(BaseModel):
    """Backend 包配置 -- 从环境变量加载

    环境变量:
        POMOTASK_BACKEND_URL: 后端基础 URL
        POMOTASK_BACKEND_KEY: 项目公开访问密钥（anon key）
        POMOTASK_BACKEND_MODE: 存储模式（remote/local）
        POMOTASK_BACKEND_TIMEOUT_S: HTTP 请求超时（秒，默认 10）
        POMOTASK_LOCAL_USER_ID: local 模式下的固定用户 ID
    """

    base_url: str = Field(
        default="http://localhost:54321",
        description="托管后端基础 URL",
    )
    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="项目公开访问密钥，随每个请求以 apikey 头发送",
    )
    mode: Literal["remote", "local"] = Field(
        default="local",
        description="存储模式：remote 使用托管后端，local 使用本地 SQLite",
    )
    timeout_s: int = Field(
        default=10,
        ge=1,
        description="HTTP 请求超时（秒）",
    )
    local_user_id: str = Field(
        default="local-user",
        min_length=1,
        description="local 模式下的固定用户 ID",
    )


def load_backend_config() -> BackendConfig:
    """从环境变量加载 Backend 配置

    Returns:
        BackendConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("POMOTASK_BACKEND_URL"):
        kwargs["base_url"] = val

    if val := os.environ.get("POMOTASK_BACKEND_KEY"):
        kwargs["api_key"] = SecretStr(val)

    if val := os.environ.get("POMOTASK_BACKEND_MODE"):
        kwargs["mode"] = val

    if val := os.environ.get("POMOTASK_BACKEND_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="POMOTASK_BACKEND_TIMEOUT_S",
                value=val,
                fallback=10,
            )
            # 使用默认值，不阻塞启动

    if val := os.environ.get("POMOTASK_LOCAL_USER_ID"):
        kwargs["local_user_id"] = val

    return BackendConfig(**kwargs)
