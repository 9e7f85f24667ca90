"""LoggingMiddleware -- 请求级日志

每个请求绑定 request_id（沿用调用方传入的 X-Request-ID，否则生成 ULID），
并通过 X-Request-ID 响应头返回。
计时器命令的完成日志附带命令执行后的计时器状态；
探活请求（/health、/ready）只记 debug，避免淹没业务日志。
"""

import re
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

_PROBE_PATHS = frozenset({"/health", "/ready"})
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER)
    if incoming and _VALID_REQUEST_ID.match(incoming):
        return incoming
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = _request_id(request)
        path = request.url.path
        start_time = time.monotonic()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )
        log = structlog.get_logger()
        emit = log.adebug if path in _PROBE_PATHS else log.ainfo

        await emit("request_started")
        try:
            response = await call_next(request)
        except Exception:
            await log.aexception(
                "request_failed",
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
            raise

        context: dict = {}
        if path.startswith("/api/timer"):
            engine = getattr(request.app.state, "engine", None)
            if engine is not None:
                context["timer_state"] = engine.state.value
        await emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - start_time) * 1000),
            **context,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
