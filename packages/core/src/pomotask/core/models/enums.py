"""枚举定义

包含任务优先级、番茄钟会话类型/状态、计时器状态机枚举，
以及 VALID_TRANSITIONS 合法流转映射和瞬态/活跃状态集合。
"""

from enum import StrEnum


class Priority(StrEnum):
    """任务优先级"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskStatusFilter(StrEnum):
    """任务完成状态筛选"""

    COMPLETED = "completed"
    PENDING = "pending"


class SessionType(StrEnum):
    """番茄钟会话类型"""

    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


class SessionStatus(StrEnum):
    """远端会话记录状态"""

    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# 会话终态：finalize 只允许写入这两个状态
FINAL_SESSION_STATUSES: frozenset[SessionStatus] = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.CANCELLED}
)


class TimerState(StrEnum):
    """计时器状态机"""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"

    # 瞬态：等待远端 finalize 返回
    COMPLETING = "completing"
    RESETTING = "resetting"


VALID_TRANSITIONS: dict[TimerState, set[TimerState]] = {
    TimerState.IDLE: {TimerState.RUNNING},
    TimerState.RUNNING: {
        TimerState.PAUSED,
        TimerState.COMPLETING,
        TimerState.RESETTING,
    },
    TimerState.PAUSED: {
        TimerState.RUNNING,
        TimerState.COMPLETING,
        TimerState.RESETTING,
    },
    # finalize 结束后无论成败都回到 IDLE
    TimerState.COMPLETING: {TimerState.IDLE},
    TimerState.RESETTING: {TimerState.IDLE},
}

TRANSIENT_STATES: frozenset[TimerState] = frozenset(
    {TimerState.COMPLETING, TimerState.RESETTING}
)

# 持有 current_session 且可接受 complete/reset 的状态
ACTIVE_STATES: frozenset[TimerState] = frozenset(
    {TimerState.RUNNING, TimerState.PAUSED}
)


def validate_transition(from_state: TimerState, to_state: TimerState) -> bool:
    """验证状态流转是否合法

    Args:
        from_state: 当前状态
        to_state: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_state, set())
    return to_state in allowed
