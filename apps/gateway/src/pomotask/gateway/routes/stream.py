"""计时器 SSE 路由

GET /api/timer/stream: 先推送当前快照，之后推送每次状态变化与 tick，
空闲期间按 SSE_HEARTBEAT_INTERVAL 发送心跳保活。
"""

import asyncio
import json
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends
from pomotask.core.config import SSE_HEARTBEAT_INTERVAL
from pomotask.core.models import TimerSnapshot
from pomotask.core.timer import PomodoroEngine
from sse_starlette.sse import EventSourceResponse

from ..deps import get_engine, get_timer_hub
from ..services.timer_hub import STREAM_CLOSED, TimerHub

router = APIRouter()

SNAPSHOT_EVENT = "timer"


def _snapshot_to_sse(snapshot: TimerSnapshot) -> dict:
    return {
        "event": SNAPSHOT_EVENT,
        "data": json.dumps(snapshot.model_dump(mode="json"), ensure_ascii=False),
    }


async def snapshot_events(
    engine: PomodoroEngine,
    hub: TimerHub,
    heartbeat_interval: float = SSE_HEARTBEAT_INTERVAL,
) -> AsyncGenerator[dict, None]:
    """快照事件流：当前快照 + 实时快照 + 心跳"""
    queue = await hub.subscribe()
    try:
        yield _snapshot_to_sse(engine.snapshot())
        while True:
            try:
                snapshot = await asyncio.wait_for(queue.get(), timeout=heartbeat_interval)
            except TimeoutError:
                yield {"comment": "heartbeat"}
                continue
            if snapshot is STREAM_CLOSED:
                # 订阅已被 hub 移除，结束流让客户端重连
                return
            yield _snapshot_to_sse(snapshot)
    finally:
        await hub.unsubscribe(queue)


@router.get("/api/timer/stream")
async def stream_timer(
    engine=Depends(get_engine),
    hub=Depends(get_timer_hub),
):
    """SSE 计时器快照流"""
    return EventSourceResponse(snapshot_events(engine, hub))
