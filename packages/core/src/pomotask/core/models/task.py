"""Task Domain Model

任务由远端存储拥有，客户端只持有读穿缓存。
tags 为标签名集合，顺序无意义。
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .enums import Priority, TaskStatusFilter

DEFAULT_TAG_COLOR = "#3B82F6"


class Tag(BaseModel):
    """用户标签"""

    id: str = Field(description="标签 ID")
    name: str = Field(min_length=1, description="标签名（同一用户内唯一）")
    color: str = Field(default=DEFAULT_TAG_COLOR, description="展示颜色")


class Task(BaseModel):
    """Task 数据模型

    completed_pomodoros 正常流程下单调不减，只通过 update 修改。
    """

    id: str = Field(description="服务端分配的唯一标识")
    user_id: str = Field(description="所属用户 ID")
    title: str = Field(min_length=1, description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    tags: set[str] = Field(default_factory=set, description="标签名集合")
    due_date: datetime | None = Field(default=None, description="截止时间")
    estimated_pomodoros: int = Field(default=1, ge=1, description="预估番茄数")
    completed_pomodoros: int = Field(default=0, ge=0, description="已完成番茄数")
    is_completed: bool = Field(default=False, description="是否已完成")
    created_at: datetime = Field(description="创建时间（服务端维护）")
    updated_at: datetime = Field(description="更新时间（服务端维护）")


class TaskCreate(BaseModel):
    """创建任务的输入字段"""

    title: str = Field(min_length=1)
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    estimated_pomodoros: int = Field(default=1, ge=1)
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """部分更新

    只有显式赋值的字段会被提交（model_dump(exclude_unset=True)），
    未提供的字段在服务端保持不变。
    """

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    priority: Priority | None = None
    estimated_pomodoros: int | None = Field(default=None, ge=1)
    completed_pomodoros: int | None = Field(default=None, ge=0)
    is_completed: bool | None = None
    due_date: datetime | None = None

    @field_validator(
        "title", "priority", "estimated_pomodoros", "completed_pomodoros", "is_completed"
    )
    @classmethod
    def _reject_null(cls, value):
        # 这些字段可以不提供，但不能显式置空
        if value is None:
            raise ValueError("字段不能为 null")
        return value

    def changes(self) -> dict:
        """返回显式提供的字段"""
        return self.model_dump(exclude_unset=True)


class TaskFilters(BaseModel):
    """任务列表筛选条件

    priority / status 在服务端筛选；search / tags 在客户端筛选。
    """

    priority: Priority | None = None
    status: TaskStatusFilter | None = None
    search: str | None = None
    tags: list[str] = Field(default_factory=list)

    def cache_key(self) -> tuple:
        """生成与字段顺序、标签顺序无关的缓存键"""
        return (
            self.priority,
            self.status,
            (self.search or "").lower(),
            tuple(sorted(set(self.tags))),
        )
