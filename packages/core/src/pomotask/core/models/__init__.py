"""PomoTask Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    ACTIVE_STATES,
    FINAL_SESSION_STATUSES,
    TRANSIENT_STATES,
    VALID_TRANSITIONS,
    Priority,
    SessionStatus,
    SessionType,
    TaskStatusFilter,
    TimerState,
    validate_transition,
)
from .preferences import Preferences, TimerConfig
from .session import PomodoroSession
from .snapshot import TimerSnapshot, format_remaining, progress_percentage
from .task import DEFAULT_TAG_COLOR, Tag, Task, TaskCreate, TaskFilters, TaskUpdate

__all__ = [
    # 枚举
    "Priority",
    "TaskStatusFilter",
    "SessionType",
    "SessionStatus",
    "TimerState",
    # 状态机
    "VALID_TRANSITIONS",
    "TRANSIENT_STATES",
    "ACTIVE_STATES",
    "FINAL_SESSION_STATUSES",
    "validate_transition",
    # Task
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskFilters",
    "Tag",
    "DEFAULT_TAG_COLOR",
    # Session
    "PomodoroSession",
    # Preferences
    "Preferences",
    "TimerConfig",
    # Snapshot
    "TimerSnapshot",
    "format_remaining",
    "progress_percentage",
]
