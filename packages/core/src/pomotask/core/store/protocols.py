"""Repository Protocol 接口定义

定义 Identity、TaskRepository、SessionRepository、ProfileRepository 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
远端实现位于 pomotask.backend，本地实现位于 pomotask.core.store。
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models import (
    PomodoroSession,
    Preferences,
    SessionStatus,
    SessionType,
    Tag,
    Task,
    TaskCreate,
    TaskFilters,
    TaskUpdate,
)


class Identity(Protocol):
    """当前用户身份"""

    def require_user_id(self) -> str:
        """返回当前用户 ID，未登录时抛出 NotAuthenticatedError"""
        ...


class TaskRepository(Protocol):
    """Task 存储接口

    所有操作限定在当前用户范围内（由远端存储强制，客户端不做越权校验）。
    """

    async def list(self, filters: TaskFilters | None = None) -> list[Task]:
        """查询任务列表，按 created_at 倒序"""
        ...

    async def get(self, task_id: str) -> Task | None:
        """根据 ID 查询任务"""
        ...

    async def create(self, fields: TaskCreate) -> Task:
        """创建任务（含标签关联）"""
        ...

    async def update(self, task_id: str, changes: TaskUpdate) -> Task:
        """部分更新：只修改显式提供的字段"""
        ...

    async def delete(self, task_id: str) -> None:
        """删除任务"""
        ...

    async def list_tags(self) -> list[Tag]:
        """查询当前用户的所有标签，按名称排序"""
        ...

    async def create_tag(self, name: str, color: str | None = None) -> Tag:
        """创建标签"""
        ...


class SessionRepository(Protocol):
    """PomodoroSession 存储接口"""

    async def create(
        self,
        task_id: str,
        duration_seconds: int,
        session_type: SessionType,
    ) -> PomodoroSession:
        """创建会话记录（status=running, started_at=now）"""
        ...

    async def finalize(
        self,
        session_id: str,
        status: SessionStatus,
        completed_at: datetime | None = None,
    ) -> None:
        """将会话标记为终态；相同终态重复调用不破坏数据"""
        ...

    async def get(self, session_id: str) -> PomodoroSession | None:
        """根据 ID 查询会话"""
        ...


class ProfileRepository(Protocol):
    """用户偏好存储接口"""

    async def get_preferences(self) -> Preferences:
        """读取当前用户偏好，不存在时返回默认值"""
        ...

    async def save_preferences(self, prefs: Preferences) -> Preferences:
        """保存当前用户偏好"""
        ...
