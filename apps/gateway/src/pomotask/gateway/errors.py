"""错误响应 -- 统一 {"error": {"code", "message"}} 格式

领域异常到 HTTP 状态码的映射集中在此处，路由只负责捕获。
"""

from typing import Any

import structlog
from pomotask.backend.exceptions import (
    AuthError,
    BackendResponseError,
    BackendUnreachableError,
)
from pomotask.core.exceptions import (
    NotAuthenticatedError,
    NotFoundError,
    PomodoroError,
    RemoteCreateError,
    RemoteFinalizeError,
    ValidationError,
)
from starlette.responses import JSONResponse

log = structlog.get_logger()

# (异常类型, HTTP 状态码, 错误码)，按顺序匹配，子类在前
_ERROR_MAP: list[tuple[type[PomodoroError], int, str]] = [
    (NotAuthenticatedError, 401, "NOT_AUTHENTICATED"),
    (AuthError, 401, "AUTH_FAILED"),
    (NotFoundError, 404, "NOT_FOUND"),
    (ValidationError, 409, "INVALID_OPERATION"),
    (RemoteCreateError, 502, "SESSION_CREATE_FAILED"),
    (RemoteFinalizeError, 502, "SESSION_FINALIZE_FAILED"),
    (BackendUnreachableError, 502, "BACKEND_UNREACHABLE"),
    (BackendResponseError, 502, "BACKEND_ERROR"),
]


def error_response(
    status_code: int,
    code: str,
    message: str,
    **extra: Any,
) -> JSONResponse:
    """构造错误响应，extra 作为顶层附加字段"""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}, **extra},
    )


def domain_error_response(error: PomodoroError, **extra: Any) -> JSONResponse:
    """将领域异常映射为错误响应"""
    for error_type, status_code, code in _ERROR_MAP:
        if isinstance(error, error_type):
            break
    else:
        status_code, code = 500, "INTERNAL_ERROR"

    log.info(
        "domain_error_response",
        status_code=status_code,
        code=code,
        error_type=type(error).__name__,
        recoverable=error.recoverable,
    )
    return error_response(status_code, code, error.message, **extra)
