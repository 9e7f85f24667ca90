"""用户偏好与计时器配置

Preferences 以分钟为单位（与设置页一致），TimerConfig 以秒为单位。
分钟到秒的换算只在配置时发生，tick 时不做换算。
"""

from pydantic import BaseModel, Field

from ..config import (
    DEFAULT_LONG_BREAK_INTERVAL,
    DEFAULT_LONG_BREAK_MINUTES,
    DEFAULT_SHORT_BREAK_MINUTES,
    DEFAULT_WORK_MINUTES,
)
from .enums import SessionType

SECONDS_PER_MINUTE = 60


class Preferences(BaseModel):
    """用户偏好（分钟）

    取值范围与设置表单保持一致。
    """

    pomodoro_duration: int = Field(default=DEFAULT_WORK_MINUTES, ge=1, le=60)
    short_break_duration: int = Field(default=DEFAULT_SHORT_BREAK_MINUTES, ge=1, le=30)
    long_break_duration: int = Field(default=DEFAULT_LONG_BREAK_MINUTES, ge=1, le=60)
    long_break_interval: int = Field(default=DEFAULT_LONG_BREAK_INTERVAL, ge=2, le=10)
    notifications_enabled: bool = True
    sound_enabled: bool = True


class TimerConfig(BaseModel):
    """计时器配置（秒），会话进行中不可变，下一次 Start 生效"""

    model_config = {"frozen": True}

    work_duration_seconds: int = Field(
        default=DEFAULT_WORK_MINUTES * SECONDS_PER_MINUTE, gt=0
    )
    break_duration_seconds: int = Field(
        default=DEFAULT_SHORT_BREAK_MINUTES * SECONDS_PER_MINUTE, gt=0
    )
    long_break_duration_seconds: int = Field(
        default=DEFAULT_LONG_BREAK_MINUTES * SECONDS_PER_MINUTE, gt=0
    )
    long_break_interval: int = Field(default=DEFAULT_LONG_BREAK_INTERVAL, ge=1)

    @classmethod
    def from_preferences(cls, prefs: Preferences) -> "TimerConfig":
        """将分钟偏好换算为秒配置"""
        return cls(
            work_duration_seconds=prefs.pomodoro_duration * SECONDS_PER_MINUTE,
            break_duration_seconds=prefs.short_break_duration * SECONDS_PER_MINUTE,
            long_break_duration_seconds=prefs.long_break_duration * SECONDS_PER_MINUTE,
            long_break_interval=prefs.long_break_interval,
        )

    def duration_for(self, session_type: SessionType) -> int:
        if session_type == SessionType.SHORT_BREAK:
            return self.break_duration_seconds
        if session_type == SessionType.LONG_BREAK:
            return self.long_break_duration_seconds
        return self.work_duration_seconds
