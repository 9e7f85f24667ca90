"""PomodoroEngine -- 番茄钟计时状态机

负责 Start / Pause / Resume / Tick / Complete / Reset 的状态流转，
并与 SessionRepository、TaskRepository 协调远端副作用：
- Start：先创建远端会话，成功后才进入 RUNNING（失败无副作用）
- Complete：finalize 会话为 completed，任务 completed_pomodoros +1
- Reset：finalize 会话为 cancelled，任务不变
finalize 失败时本地仍回到 IDLE，错误以 RemoteFinalizeError 上报。

所有方法必须在同一个事件循环中调用；同一时刻至多一个远端流转在途。
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from ..config import REMOTE_TIMEOUT_S, get_tick_interval_s
from ..exceptions import (
    NotAuthenticatedError,
    PomodoroError,
    RemoteCreateError,
    RemoteFinalizeError,
    ValidationError,
)
from ..models import (
    ACTIVE_STATES,
    TRANSIENT_STATES,
    PomodoroSession,
    SessionStatus,
    SessionType,
    Task,
    TaskUpdate,
    TimerConfig,
    TimerSnapshot,
    TimerState,
    format_remaining,
    progress_percentage,
    validate_transition,
)
from ..store.protocols import SessionRepository, TaskRepository
from .scheduler import AsyncioTickScheduler, TickScheduler

log = structlog.get_logger()

Listener = Callable[[TimerSnapshot], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PomodoroEngine:
    """番茄钟引擎

    每个实例独占一个 tick 调度器。stop() 后不再投递 tick；
    aclose() 额外尝试取消进行中的会话并等待在途 finalize。
    """

    def __init__(
        self,
        session_repo: SessionRepository,
        task_repo: TaskRepository,
        *,
        config: TimerConfig | None = None,
        scheduler: TickScheduler | None = None,
        remote_timeout_s: float = REMOTE_TIMEOUT_S,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._sessions = session_repo
        self._tasks = task_repo
        self._config = config or TimerConfig()
        self._scheduler = scheduler or AsyncioTickScheduler(get_tick_interval_s())
        self._remote_timeout_s = remote_timeout_s
        self._clock = clock

        self._state = TimerState.IDLE
        self._current_session: PomodoroSession | None = None
        self._selected_task: Task | None = None
        self._time_remaining = self._config.work_duration_seconds
        self._completed_work_sessions = 0

        self._command_lock = asyncio.Lock()
        self._finalize_task: asyncio.Task | None = None
        self._listeners: list[Listener] = []
        self._closed = False
        self.last_error: PomodoroError | None = None

    # ============================================================
    # 只读状态
    # ============================================================

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == TimerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._state == TimerState.PAUSED

    @property
    def current_session(self) -> PomodoroSession | None:
        return self._current_session

    @property
    def selected_task(self) -> Task | None:
        return self._selected_task

    @property
    def time_remaining(self) -> int:
        return self._time_remaining

    @property
    def config(self) -> TimerConfig:
        return self._config

    @property
    def completed_work_sessions(self) -> int:
        return self._completed_work_sessions

    @property
    def configured_duration(self) -> int:
        """当前会话的计划时长；空闲时为下一次工作会话时长"""
        if self._current_session is not None:
            return self._current_session.duration
        return self._config.work_duration_seconds

    @property
    def progress(self) -> float:
        return progress_percentage(self.configured_duration, self._time_remaining)

    def snapshot(self) -> TimerSnapshot:
        session = self._current_session
        task = self._selected_task
        return TimerSnapshot(
            state=self._state,
            is_running=self.is_running,
            is_paused=self.is_paused,
            time_remaining=self._time_remaining,
            configured_duration=self.configured_duration,
            progress=self.progress,
            formatted_remaining=format_remaining(self._time_remaining),
            session_id=session.id if session else None,
            session_type=session.session_type if session else None,
            task_id=task.id if task else None,
            task_title=task.title if task else None,
            completed_work_sessions=self._completed_work_sessions,
            last_error=self.last_error.message if self.last_error else None,
        )

    def suggested_break(self) -> SessionType:
        """根据已完成的工作会话数建议下一次休息类型"""
        count = self._completed_work_sessions
        if count > 0 and count % self._config.long_break_interval == 0:
            return SessionType.LONG_BREAK
        return SessionType.SHORT_BREAK

    # ============================================================
    # 订阅
    # ============================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """订阅状态变化，返回取消订阅函数"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                log.exception("timer_listener_failed")

    # ============================================================
    # 配置
    # ============================================================

    def configure(self, config: TimerConfig) -> None:
        """更新计时配置

        进行中的会话不受影响，下一次 Start 生效；
        空闲时同步刷新剩余时间以保持“无会话时剩余 = 工作时长”。
        """
        self._config = config
        if self._state == TimerState.IDLE and self._current_session is None:
            self._time_remaining = config.work_duration_seconds
        log.info(
            "timer_configured",
            work_duration_seconds=config.work_duration_seconds,
            break_duration_seconds=config.break_duration_seconds,
            state=self._state,
        )
        self._emit()

    # ============================================================
    # 命令
    # ============================================================

    async def start(
        self,
        task: Task | None,
        session_type: SessionType = SessionType.WORK,
    ) -> PomodoroSession:
        """开始一个会话

        Raises:
            ValidationError: 未选择任务，或已有会话进行中
            NotAuthenticatedError: 未登录
            RemoteCreateError: 远端创建失败或超时（计时器保持 IDLE）
        """
        if task is None:
            raise ValidationError("请先选择一个任务")
        if self._closed:
            raise ValidationError("计时器已停止")

        async with self._command_lock:
            await self._wait_pending_finalize()
            if self._state != TimerState.IDLE:
                raise ValidationError("已有进行中的番茄钟，请先完成或重置")

            duration = self._config.duration_for(session_type)
            try:
                session = await asyncio.wait_for(
                    self._sessions.create(
                        task_id=task.id,
                        duration_seconds=duration,
                        session_type=session_type,
                    ),
                    timeout=self._remote_timeout_s,
                )
            except (NotAuthenticatedError, ValidationError):
                raise
            except Exception as e:
                log.warning(
                    "session_create_failed",
                    task_id=task.id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise RemoteCreateError(e) from e

            self._current_session = session
            self._selected_task = task
            self._time_remaining = duration
            self.last_error = None
            self._transition(TimerState.RUNNING)
            self._scheduler.start(self.tick)

            log.info(
                "pomodoro_started",
                session_id=session.id,
                task_id=task.id,
                session_type=session_type,
                duration_seconds=duration,
            )
            self._emit()
            return session

    def pause(self) -> None:
        """暂停；非 RUNNING 时为 no-op"""
        if self._state != TimerState.RUNNING:
            return
        self._scheduler.stop()
        self._transition(TimerState.PAUSED)
        log.info("pomodoro_paused", time_remaining=self._time_remaining)
        self._emit()

    def resume(self) -> None:
        """恢复；非 PAUSED 时为 no-op"""
        if self._state != TimerState.PAUSED or self._closed:
            return
        self._transition(TimerState.RUNNING)
        self._scheduler.start(self.tick)
        log.info("pomodoro_resumed", time_remaining=self._time_remaining)
        self._emit()

    def tick(self) -> None:
        """推进一秒；归零时自动进入 Complete 流转"""
        if self._state != TimerState.RUNNING or self._closed:
            return

        self._time_remaining = max(0, self._time_remaining - 1)
        if self._time_remaining == 0:
            log.info(
                "pomodoro_expired",
                session_id=self._current_session.id if self._current_session else None,
            )
            self._begin_finalize(SessionStatus.COMPLETED)
            return
        self._emit()

    async def complete(self) -> None:
        """完成当前会话

        Raises:
            ValidationError: 没有进行中的会话
            RemoteFinalizeError: 远端更新失败（本地已回到 IDLE）
        """
        async with self._command_lock:
            if self._state in TRANSIENT_STATES:
                # 计时归零触发的 finalize 已在途，不重复提交
                await self._wait_pending_finalize()
                return
            if self._state not in ACTIVE_STATES:
                raise ValidationError("没有进行中的番茄钟")
            await self._begin_finalize(SessionStatus.COMPLETED)

    async def reset(self) -> None:
        """放弃当前会话

        先停止 tick 再发起远端取消；IDLE 时为 no-op。

        Raises:
            RemoteFinalizeError: 远端更新失败（本地已回到 IDLE）
        """
        if self._state in ACTIVE_STATES:
            self._scheduler.stop()

        async with self._command_lock:
            if self._state in TRANSIENT_STATES:
                await self._wait_pending_finalize()
                return
            if self._state not in ACTIVE_STATES:
                return
            await self._begin_finalize(SessionStatus.CANCELLED)

    def stop(self) -> None:
        """停止 tick 投递（dispose），之后引擎不再推进"""
        self._closed = True
        self._scheduler.stop()

    async def aclose(self) -> None:
        """停止 tick，尽力取消进行中的会话，并等待在途 finalize"""
        self.stop()
        async with self._command_lock:
            if self._state in ACTIVE_STATES:
                try:
                    await self._begin_finalize(SessionStatus.CANCELLED)
                except RemoteFinalizeError as e:
                    log.warning("close_cancel_failed", error=e.message)
            await self._wait_pending_finalize()

    async def wait_finalized(self) -> None:
        """等待在途 finalize 结束（忽略其错误，错误见 last_error）"""
        await self._wait_pending_finalize()

    # ============================================================
    # 内部
    # ============================================================

    def _transition(self, to_state: TimerState) -> None:
        if not validate_transition(self._state, to_state):
            raise RuntimeError(f"invalid timer transition: {self._state} -> {to_state}")
        log.debug("timer_state_transition", from_state=self._state, to_state=to_state)
        self._state = to_state

    async def _wait_pending_finalize(self) -> None:
        pending = self._finalize_task
        if pending is None or pending.done():
            return
        await asyncio.gather(pending, return_exceptions=True)

    def _begin_finalize(self, status: SessionStatus) -> asyncio.Task:
        """同步进入过渡状态并派发 finalize 任务"""
        session = self._current_session
        task = self._selected_task
        assert session is not None

        self._scheduler.stop()
        if status == SessionStatus.COMPLETED:
            self._transition(TimerState.COMPLETING)
        else:
            self._transition(TimerState.RESETTING)
        self._emit()

        finalize = asyncio.get_running_loop().create_task(
            self._finalize(session, task, status)
        )
        finalize.add_done_callback(self._on_finalize_done)
        self._finalize_task = finalize
        return finalize

    async def _finalize(
        self,
        session: PomodoroSession,
        task: Task | None,
        status: SessionStatus,
    ) -> None:
        errors: list[BaseException] = []
        try:
            completed_at = self._clock() if status == SessionStatus.COMPLETED else None
            try:
                await asyncio.wait_for(
                    self._sessions.finalize(session.id, status, completed_at=completed_at),
                    timeout=self._remote_timeout_s,
                )
            except Exception as e:
                errors.append(e)
                log.warning(
                    "session_finalize_failed",
                    session_id=session.id,
                    status=status,
                    error_type=type(e).__name__,
                    error=str(e),
                )

            if status == SessionStatus.COMPLETED and session.session_type == SessionType.WORK:
                self._completed_work_sessions += 1
                # 会话 finalize 失败时仍尝试递增，以本地结果为准
                if task is not None:
                    try:
                        await asyncio.wait_for(
                            self._increment_pomodoros(task),
                            timeout=self._remote_timeout_s,
                        )
                    except Exception as e:
                        errors.append(e)
                        log.warning(
                            "task_increment_failed",
                            task_id=task.id,
                            error_type=type(e).__name__,
                            error=str(e),
                        )
        finally:
            self._current_session = None
            self._selected_task = None
            self._time_remaining = self._config.work_duration_seconds
            self._transition(TimerState.IDLE)

        if errors:
            error = RemoteFinalizeError(session.id, status.value, errors)
            self.last_error = error
            self._emit()
            raise error

        log.info(
            "pomodoro_finalized",
            session_id=session.id,
            status=status,
            completed_work_sessions=self._completed_work_sessions,
        )
        self._emit()

    async def _increment_pomodoros(self, task: Task) -> None:
        # 以服务端最新值为基准，避免覆盖其他客户端的递增
        fresh = await self._tasks.get(task.id)
        base = fresh.completed_pomodoros if fresh is not None else task.completed_pomodoros
        await self._tasks.update(task.id, TaskUpdate(completed_pomodoros=base + 1))

    def _on_finalize_done(self, finalize: asyncio.Task) -> None:
        if self._finalize_task is finalize:
            self._finalize_task = None
        if finalize.cancelled():
            return
        error = finalize.exception()
        if error is not None:
            log.warning("pomodoro_finalize_error", error=str(error))
