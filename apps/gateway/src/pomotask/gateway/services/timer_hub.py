"""TimerHub -- 计时器快照广播器

每个 SSE 订阅者持有一个 asyncio.Queue。引擎每次状态变化（含 tick）
同步回调 broadcast()。队列已满的慢订阅者会被移除，
其队列被清空并放入 STREAM_CLOSED，SSE 生成器读到后结束流。
"""

import asyncio
from collections.abc import Callable

import structlog
from pomotask.core.models import TimerSnapshot
from pomotask.core.timer import PomodoroEngine

log = structlog.get_logger()

# 订阅被移除的标记
STREAM_CLOSED = None


class TimerHub:
    """计时器快照发布/订阅"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        self._subscribers: set[asyncio.Queue] = set()
        self._queue_maxsize = queue_maxsize
        self._detach: Callable[[], None] | None = None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def attach(self, engine: PomodoroEngine) -> None:
        """订阅引擎状态变化"""
        self.detach()
        self._detach = engine.subscribe(self.broadcast)

    def detach(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None

    async def subscribe(self) -> asyncio.Queue:
        """订阅快照流

        Returns:
            asyncio.Queue 实例，新快照会被推送到此队列
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers.add(queue)
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def broadcast(self, snapshot: TimerSnapshot) -> None:
        """向所有订阅者广播快照"""
        dead_queues = []
        for queue in self._subscribers:
            try:
                queue.put_nowait(snapshot)
            except asyncio.QueueFull:
                dead_queues.append(queue)

        for q in dead_queues:
            self._subscribers.discard(q)
            _close(q)
        if dead_queues:
            log.warning("timer_subscribers_dropped", count=len(dead_queues))


def _close(queue: asyncio.Queue) -> None:
    while not queue.empty():
        queue.get_nowait()
    queue.put_nowait(STREAM_CLOSED)
