"""计时器路由

GET  /api/timer: 当前计时器快照 + 建议的休息类型。
POST /api/timer/start: 为任务开始会话（远端创建成功后才进入 running）。
POST /api/timer/pause | resume: 暂停 / 恢复（重复调用为 no-op）。
POST /api/timer/complete | reset: 完成 / 放弃当前会话。
- 404: 任务不存在
- 409: 当前状态不允许该操作
- 502: 远端会话创建或更新失败（finalize 失败时本地已回到 idle，响应附带 timer）
"""

from fastapi import APIRouter, Depends
from pomotask.core.exceptions import PomodoroError, RemoteFinalizeError
from pomotask.core.models import SessionType, TimerSnapshot
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_engine, get_tasks
from ..errors import domain_error_response
from ..services.timer_service import TimerService

router = APIRouter()


class StartTimerRequest(BaseModel):
    """开始会话请求"""

    task_id: str = Field(min_length=1, description="绑定的任务 ID")
    session_type: SessionType | None = Field(
        default=None,
        description="会话类型；省略时为 work",
    )
    suggested_break: bool = Field(
        default=False,
        description="为 true 时忽略 session_type，按完成数开始短休或长休",
    )


class TimerResponse(BaseModel):
    """计时器状态响应"""

    timer: TimerSnapshot
    suggested_break: SessionType


def _timer_response(engine, status_code: int = 200) -> JSONResponse:
    body = TimerResponse(timer=engine.snapshot(), suggested_break=engine.suggested_break())
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.get("/api/timer", response_model=TimerResponse)
async def get_timer(engine=Depends(get_engine)):
    """查询计时器当前状态"""
    return _timer_response(engine)


@router.post("/api/timer/start", status_code=201, response_model=TimerResponse)
async def start_timer(
    req: StartTimerRequest,
    engine=Depends(get_engine),
    tasks=Depends(get_tasks),
):
    """开始会话"""
    service = TimerService(engine, tasks)
    try:
        if req.suggested_break:
            await service.start_suggested_break(req.task_id)
        else:
            await service.start(req.task_id, req.session_type or SessionType.WORK)
    except PomodoroError as e:
        return domain_error_response(e)
    return _timer_response(engine, status_code=201)


@router.post("/api/timer/pause", response_model=TimerResponse)
async def pause_timer(engine=Depends(get_engine)):
    engine.pause()
    return _timer_response(engine)


@router.post("/api/timer/resume", response_model=TimerResponse)
async def resume_timer(engine=Depends(get_engine)):
    engine.resume()
    return _timer_response(engine)


@router.post("/api/timer/complete", response_model=TimerResponse)
async def complete_timer(engine=Depends(get_engine)):
    """完成当前会话：会话标记 completed，任务番茄数 +1"""
    try:
        await engine.complete()
    except RemoteFinalizeError as e:
        return domain_error_response(e, timer=engine.snapshot().model_dump(mode="json"))
    except PomodoroError as e:
        return domain_error_response(e)
    return _timer_response(engine)


@router.post("/api/timer/reset", response_model=TimerResponse)
async def reset_timer(engine=Depends(get_engine)):
    """放弃当前会话：会话标记 cancelled，任务不变"""
    try:
        await engine.reset()
    except RemoteFinalizeError as e:
        return domain_error_response(e, timer=engine.snapshot().model_dump(mode="json"))
    return _timer_response(engine)
