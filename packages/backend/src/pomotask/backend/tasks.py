"""RemoteTaskRepository -- 托管后端 tasks / tags / task_tags 表

列表查询嵌入标签（task_tags -> tags），priority 与完成状态作为查询条件下推，
search 与 tags 交由 pomotask.core.filters 在客户端筛选。
"""

from __future__ import annotations

import structlog

from pomotask.core.exceptions import ValidationError
from pomotask.core.filters import apply_client_filters
from pomotask.core.models import (
    DEFAULT_TAG_COLOR,
    Tag,
    Task,
    TaskCreate,
    TaskFilters,
    TaskStatusFilter,
    TaskUpdate,
)
from pomotask.core.store.protocols import Identity

from .client import RestClient, eq
from .exceptions import BackendResponseError, RecordNotFoundError

log = structlog.get_logger()

TASKS_TABLE = "tasks"
TAGS_TABLE = "tags"
TASK_TAGS_TABLE = "task_tags"

# 任务行 + 嵌入标签
TASK_SELECT = "*,task_tags(tags(id,name,color))"


def _row_to_task(row: dict) -> Task:
    tags = {
        link["tags"]["name"]
        for link in row.get("task_tags") or []
        if link.get("tags")
    }
    return Task(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row.get("description"),
        priority=row.get("priority") or "medium",
        tags=tags,
        due_date=row.get("due_date"),
        estimated_pomodoros=row.get("estimated_pomodoros") or 1,
        completed_pomodoros=row.get("completed_pomodoros") or 0,
        is_completed=bool(row.get("is_completed")),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class RemoteTaskRepository:
    """TaskRepository 的托管后端实现"""

    def __init__(self, client: RestClient, identity: Identity) -> None:
        self._client = client
        self._identity = identity

    async def list(self, filters: TaskFilters | None = None) -> list[Task]:
        user_id = self._identity.require_user_id()
        params = {
            "select": TASK_SELECT,
            "user_id": eq(user_id),
            "order": "created_at.desc",
        }
        if filters is not None:
            if filters.priority is not None:
                params["priority"] = eq(filters.priority.value)
            if filters.status == TaskStatusFilter.COMPLETED:
                params["is_completed"] = eq(True)
            elif filters.status == TaskStatusFilter.PENDING:
                params["is_completed"] = eq(False)

        rows = await self._client.select(TASKS_TABLE, params)
        tasks = [_row_to_task(row) for row in rows]
        return apply_client_filters(tasks, filters)

    async def get(self, task_id: str) -> Task | None:
        user_id = self._identity.require_user_id()
        rows = await self._client.select(
            TASKS_TABLE,
            {"select": TASK_SELECT, "id": eq(task_id), "user_id": eq(user_id)},
        )
        if not rows:
            return None
        return _row_to_task(rows[0])

    async def create(self, fields: TaskCreate) -> Task:
        """创建任务，并按名称 get-or-create 标签后建立关联"""
        user_id = self._identity.require_user_id()
        values = fields.model_dump(mode="json", exclude={"tags"})
        values["user_id"] = user_id
        rows = await self._client.insert(TASKS_TABLE, values)
        task = _row_to_task(rows[0])

        names = list(dict.fromkeys(fields.tags))
        if names:
            links = []
            for name in names:
                tag_id = await self._get_or_create_tag_id(user_id, name)
                links.append({"task_id": task.id, "tag_id": tag_id})
            await self._client.insert(TASK_TAGS_TABLE, links)
            task = task.model_copy(update={"tags": set(names)})

        log.info("task_created", task_id=task.id, tag_count=len(names))
        return task

    async def update(self, task_id: str, changes: TaskUpdate) -> Task:
        """部分更新：请求体只包含显式提供的字段"""
        user_id = self._identity.require_user_id()
        values = changes.model_dump(mode="json", exclude_unset=True)
        if not values:
            task = await self.get(task_id)
            if task is None:
                raise RecordNotFoundError(TASKS_TABLE, task_id)
            return task

        rows = await self._client.update(
            TASKS_TABLE,
            values,
            {"select": TASK_SELECT, "id": eq(task_id), "user_id": eq(user_id)},
        )
        if not rows:
            raise RecordNotFoundError(TASKS_TABLE, task_id)
        return _row_to_task(rows[0])

    async def delete(self, task_id: str) -> None:
        user_id = self._identity.require_user_id()
        await self._client.delete(
            TASKS_TABLE,
            {"id": eq(task_id), "user_id": eq(user_id)},
        )
        log.info("task_deleted", task_id=task_id)

    async def list_tags(self) -> list[Tag]:
        user_id = self._identity.require_user_id()
        rows = await self._client.select(
            TAGS_TABLE,
            {"select": "id,name,color", "user_id": eq(user_id), "order": "name.asc"},
        )
        return [Tag.model_validate(row) for row in rows]

    async def create_tag(self, name: str, color: str | None = None) -> Tag:
        user_id = self._identity.require_user_id()
        try:
            rows = await self._client.insert(
                TAGS_TABLE,
                {"user_id": user_id, "name": name, "color": color or DEFAULT_TAG_COLOR},
            )
        except BackendResponseError as e:
            # (user_id, name) 唯一约束冲突
            if e.status_code == 409:
                raise ValidationError(f"标签已存在: {name}") from e
            raise
        return Tag.model_validate(rows[0])

    async def _get_or_create_tag_id(self, user_id: str, name: str) -> str:
        rows = await self._client.select(
            TAGS_TABLE,
            {"select": "id", "user_id": eq(user_id), "name": eq(name)},
        )
        if rows:
            return rows[0]["id"]
        created = await self._client.insert(
            TAGS_TABLE,
            {"user_id": user_id, "name": name, "color": DEFAULT_TAG_COLOR},
        )
        return created[0]["id"]
