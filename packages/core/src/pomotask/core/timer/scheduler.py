"""Tick 调度器

每个引擎实例独占一个可取消的周期回调。stop() 之后保证不再投递任何 tick；
重复 start() 不会产生第二个定时器。
"""

import asyncio
from collections.abc import Callable
from typing import Protocol

import structlog

log = structlog.get_logger()


class TickScheduler(Protocol):
    """周期 tick 驱动接口（测试中注入虚拟时钟实现）"""

    @property
    def active(self) -> bool:
        """是否正在投递 tick"""
        ...

    def start(self, callback: Callable[[], None]) -> None:
        """开始周期投递；已在运行时为 no-op"""
        ...

    def stop(self) -> None:
        """停止投递；之后不再调用 callback"""
        ...


class AsyncioTickScheduler:
    """基于事件循环 call_at 的 tick 调度器

    以绝对 deadline 递推下一次触发时间，避免 call_later 累积漂移；
    事件循环阻塞导致落后时直接对齐到当前时间，不补发 tick。
    """

    def __init__(self, interval_s: float = 1.0) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self._interval_s = interval_s
        self._callback: Callable[[], None] | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._deadline = 0.0
        # stop() 递增代号，使已排队但未执行的旧回调失效
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self, callback: Callable[[], None]) -> None:
        if self._handle is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._callback = callback
        self._generation += 1
        self._deadline = self._loop.time() + self._interval_s
        self._handle = self._loop.call_at(self._deadline, self._fire, self._generation)

    def stop(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._callback = None

    def _fire(self, generation: int) -> None:
        if generation != self._generation or self._loop is None:
            return

        callback = self._callback
        self._deadline += self._interval_s
        now = self._loop.time()
        if self._deadline <= now:
            self._deadline = now + self._interval_s
        # 先排下一次，再执行回调：回调内部可能调用 stop()
        self._handle = self._loop.call_at(self._deadline, self._fire, generation)

        if callback is None:
            return
        try:
            callback()
        except Exception:
            log.exception("tick_callback_failed")
