"""PomodoroSession Domain Model

每次 Start 流转恰好创建一条记录，之后至多再修改一次（completed 或 cancelled），
正常流程下从不删除。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import SessionStatus, SessionType


class PomodoroSession(BaseModel):
    """PomodoroSession 数据模型"""

    id: str = Field(description="唯一标识")
    user_id: str = Field(description="所属用户 ID")
    task_id: str = Field(description="绑定的 Task ID")
    duration: int = Field(gt=0, description="计划时长（秒）")
    session_type: SessionType = Field(default=SessionType.WORK, description="会话类型")
    started_at: datetime = Field(description="开始时间")
    completed_at: datetime | None = Field(default=None, description="完成时间")
    status: SessionStatus = Field(default=SessionStatus.RUNNING, description="会话状态")

    @property
    def is_final(self) -> bool:
        return self.status != SessionStatus.RUNNING
