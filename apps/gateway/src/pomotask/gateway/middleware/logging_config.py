"""structlog 配置模块

POMOTASK_LOG_FORMAT 选择渲染方式（dev 可读输出 / json 结构化输出），
POMOTASK_LOG_LEVEL 控制根日志级别，POMOTASK_LOGFIRE=true 时额外接入 Logfire。
标准库 logging（uvicorn、httpx、aiosqlite）经 ProcessorFormatter 统一渲染，
请求日志由 LoggingMiddleware 负责，第三方库的逐请求日志被压到 WARNING。
"""

import logging
import os

import structlog
from fastapi import FastAPI

# 与 LoggingMiddleware 重复或过于频繁的第三方日志
_QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "uvicorn.access", "sse_starlette")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging() -> None:
    """初始化 structlog 与标准库 logging，可重复调用"""
    log_format = os.environ.get("POMOTASK_LOG_FORMAT", "dev").lower()
    log_level = os.environ.get("POMOTASK_LOG_LEVEL", "INFO").upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if log_format == "json":
        # JSON 输出需要把异常栈转成字符串字段
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(log_format),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logfire(app: FastAPI) -> bool:
    """按 POMOTASK_LOGFIRE=true 启用 Logfire，失败时只记 warning

    返回是否已启用。
    """
    if os.environ.get("POMOTASK_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure()
        logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning("logfire_init_failed", error=str(e))
        return False
    return True
