"""TraceMiddleware -- 为计时器与任务操作绑定追踪上下文

/api/timer/* 请求绑定当前会话的 session_id（有进行中的会话时），
/api/tasks/{task_id}/* 请求绑定 task_id，贯穿该请求内的所有日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class TraceMiddleware(BaseHTTPMiddleware):
    """会话级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path

        if path.startswith("/api/timer"):
            engine = getattr(request.app.state, "engine", None)
            session = engine.current_session if engine is not None else None
            if session is not None:
                structlog.contextvars.bind_contextvars(
                    session_id=session.id,
                    trace_id=f"trace-{session.id}",
                )
        elif path.startswith("/api/tasks/"):
            # /api/tasks/{task_id} 或 /api/tasks/{task_id}/toggle
            parts = path.split("/")
            if len(parts) > 3 and parts[3]:
                structlog.contextvars.bind_contextvars(task_id=parts[3])

        return await call_next(request)
