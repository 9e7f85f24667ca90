"""TimerSnapshot -- 计时器运行时状态的只读视图

供 UI 事件层 / SSE 推送使用，不持有引擎内部对象的引用。
"""

from pydantic import BaseModel, Field

from .enums import SessionType, TimerState


def format_remaining(seconds: int) -> str:
    """格式化为 MM:SS"""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def progress_percentage(configured_duration: int, time_remaining: int) -> float:
    """进度百分比，钳制到 [0, 100]"""
    if configured_duration <= 0:
        return 0.0
    value = (configured_duration - time_remaining) / configured_duration * 100
    return max(0.0, min(100.0, value))


class TimerSnapshot(BaseModel):
    """计时器快照"""

    state: TimerState
    is_running: bool
    is_paused: bool
    time_remaining: int = Field(ge=0, description="剩余秒数")
    configured_duration: int = Field(gt=0, description="当前会话（或下次会话）的总时长")
    progress: float = Field(ge=0.0, le=100.0, description="进度百分比")
    formatted_remaining: str = Field(description="MM:SS")
    session_id: str | None = None
    session_type: SessionType | None = None
    task_id: str | None = None
    task_title: str | None = None
    completed_work_sessions: int = 0
    last_error: str | None = None
