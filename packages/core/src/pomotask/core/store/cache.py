"""TaskRepository 读穿缓存

list(filters) 的结果按筛选键缓存；任何写操作（包括引擎的番茄数递增）
都会整体失效，下一次读取重新从存储获取。
"""

from __future__ import annotations

import structlog

from ..exceptions import NotFoundError
from ..models import Tag, Task, TaskCreate, TaskFilters, TaskUpdate
from .protocols import TaskRepository

log = structlog.get_logger()


class CachedTaskRepository:
    """包装任意 TaskRepository 的读穿缓存"""

    def __init__(self, inner: TaskRepository) -> None:
        self._inner = inner
        self._lists: dict[tuple, list[Task]] = {}
        self._tags: list[Tag] | None = None

    def invalidate(self) -> None:
        """丢弃全部缓存"""
        if self._lists or self._tags is not None:
            log.debug("task_cache_invalidated", entries=len(self._lists))
        self._lists.clear()
        self._tags = None

    async def list(self, filters: TaskFilters | None = None) -> list[Task]:
        key = (filters or TaskFilters()).cache_key()
        cached = self._lists.get(key)
        if cached is not None:
            return list(cached)
        tasks = await self._inner.list(filters)
        self._lists[key] = tasks
        return list(tasks)

    async def get(self, task_id: str) -> Task | None:
        # 单条读取总是穿透，引擎递增前需要服务端最新值
        return await self._inner.get(task_id)

    async def create(self, fields: TaskCreate) -> Task:
        try:
            return await self._inner.create(fields)
        finally:
            self.invalidate()

    async def update(self, task_id: str, changes: TaskUpdate) -> Task:
        try:
            return await self._inner.update(task_id, changes)
        finally:
            self.invalidate()

    async def delete(self, task_id: str) -> None:
        try:
            await self._inner.delete(task_id)
        finally:
            self.invalidate()

    async def toggle_completed(self, task_id: str) -> Task:
        """翻转任务完成状态"""
        task = await self._inner.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return await self.update(task_id, TaskUpdate(is_completed=not task.is_completed))

    async def list_tags(self) -> list[Tag]:
        if self._tags is None:
            self._tags = await self._inner.list_tags()
        return list(self._tags)

    async def create_tag(self, name: str, color: str | None = None) -> Tag:
        try:
            return await self._inner.create_tag(name, color)
        finally:
            self.invalidate()
