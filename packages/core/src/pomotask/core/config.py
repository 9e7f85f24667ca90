"""配置常量模块 -- 可通过环境变量覆盖

包含本地数据库路径、tick 间隔、远端调用超时、默认番茄钟时长等可配置常量。
数值型环境变量无法解析或不为正时记录 warning 并使用默认值。
"""

import os
from pathlib import Path

import structlog

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("POMOTASK_DATA_DIR", "data"))


def _env_number(env_var: str, default: float, cast: type = float) -> float:
    val = os.environ.get(env_var)
    if not val:
        return default
    try:
        number = cast(val)
    except ValueError:
        number = None
    if number is None or number <= 0:
        log.warning("invalid_number_config", env_var=env_var, value=val, fallback=default)
        return default
    return number


def get_db_path() -> str:
    """获取本地 SQLite 数据库路径（local 模式）"""
    return os.environ.get(
        "POMOTASK_DB_PATH",
        str(_get_base_dir() / "sqlite" / "pomotask.db"),
    )


def get_tick_interval_s() -> float:
    """获取 tick 间隔（秒），测试环境可调小"""
    return _env_number("POMOTASK_TICK_INTERVAL_S", 1.0)


# 远端 create/finalize 调用超时（秒），超时按远端失败处理
REMOTE_TIMEOUT_S: float = _env_number("POMOTASK_REMOTE_TIMEOUT_S", 10.0)

# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = _env_number("POMOTASK_SSE_HEARTBEAT_INTERVAL", 15, int)

# 默认番茄钟设置（分钟）
DEFAULT_WORK_MINUTES: int = 25
DEFAULT_SHORT_BREAK_MINUTES: int = 5
DEFAULT_LONG_BREAK_MINUTES: int = 15
DEFAULT_LONG_BREAK_INTERVAL: int = 4
