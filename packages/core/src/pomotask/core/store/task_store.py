"""TaskRepository SQLite 实现（local 模式）

所有查询都限定在 identity 的当前用户范围内；
priority / 完成状态在 SQL 中筛选，search / tags 走客户端筛选函数。
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from enum import Enum

import aiosqlite
from ulid import ULID

from ..exceptions import NotFoundError, ValidationError
from ..filters import apply_client_filters
from ..models import (
    DEFAULT_TAG_COLOR,
    Tag,
    Task,
    TaskCreate,
    TaskFilters,
    TaskStatusFilter,
    TaskUpdate,
)
from .protocols import Identity

# TaskUpdate 字段到列名（布尔列以整数存储）
_UPDATABLE_COLUMNS = {
    "title",
    "description",
    "priority",
    "estimated_pomodoros",
    "completed_pomodoros",
    "is_completed",
    "due_date",
}


def _to_db_value(value):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class SqliteTaskStore:
    """TaskRepository 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, identity: Identity) -> None:
        self._conn = conn
        self._identity = identity

    async def list(self, filters: TaskFilters | None = None) -> list[Task]:
        """查询任务列表，按 created_at 倒序"""
        user_id = self._identity.require_user_id()
        sql = "SELECT * FROM tasks WHERE user_id = ?"
        params: list = [user_id]
        if filters is not None:
            if filters.priority is not None:
                sql += " AND priority = ?"
                params.append(filters.priority.value)
            if filters.status == TaskStatusFilter.COMPLETED:
                sql += " AND is_completed = 1"
            elif filters.status == TaskStatusFilter.PENDING:
                sql += " AND is_completed = 0"
        sql += " ORDER BY created_at DESC, rowid DESC"

        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        tags_by_task = await self._load_tag_names([row["id"] for row in rows])
        tasks = [self._row_to_task(row, tags_by_task.get(row["id"], set())) for row in rows]
        return apply_client_filters(tasks, filters)

    async def get(self, task_id: str) -> Task | None:
        user_id = self._identity.require_user_id()
        cursor = await self._conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND user_id = ?",
            (task_id, user_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        tags_by_task = await self._load_tag_names([task_id])
        return self._row_to_task(row, tags_by_task.get(task_id, set()))

    async def create(self, fields: TaskCreate) -> Task:
        """创建任务，并按名称 get-or-create 标签后建立关联"""
        user_id = self._identity.require_user_id()
        task_id = str(ULID())
        now = datetime.now(UTC).isoformat()
        try:
            await self._conn.execute(
                """
                INSERT INTO tasks (id, user_id, title, description, priority, due_date,
                                   estimated_pomodoros, completed_pomodoros, is_completed,
                                   created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, 0, 0, ?, ?)
                """,
                (
                    task_id,
                    user_id,
                    fields.title,
                    fields.description,
                    fields.priority.value,
                    _to_db_value(fields.due_date),
                    fields.estimated_pomodoros,
                    now,
                    now,
                ),
            )
            for name in dict.fromkeys(fields.tags):
                tag_id = await self._get_or_create_tag_id(user_id, name)
                await self._conn.execute(
                    "INSERT OR IGNORE INTO task_tags (task_id, tag_id) VALUES (?, ?)",
                    (task_id, tag_id),
                )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

        task = await self.get(task_id)
        assert task is not None
        return task

    async def update(self, task_id: str, changes: TaskUpdate) -> Task:
        """部分更新：只写入显式提供的字段"""
        user_id = self._identity.require_user_id()
        values = {k: v for k, v in changes.changes().items() if k in _UPDATABLE_COLUMNS}
        if values:
            assignments = ", ".join(f"{column} = ?" for column in values)
            params = [_to_db_value(v) for v in values.values()]
            params += [datetime.now(UTC).isoformat(), task_id, user_id]
            try:
                cursor = await self._conn.execute(
                    f"UPDATE tasks SET {assignments}, updated_at = ? WHERE id = ? AND user_id = ?",
                    params,
                )
            except sqlite3.IntegrityError as e:
                await self._conn.rollback()
                raise ValidationError(f"任务字段不合法: {e}") from e
            await self._conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError("task", task_id)

        task = await self.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    async def delete(self, task_id: str) -> None:
        user_id = self._identity.require_user_id()
        await self._conn.execute(
            "DELETE FROM tasks WHERE id = ? AND user_id = ?",
            (task_id, user_id),
        )
        await self._conn.commit()

    async def list_tags(self) -> list[Tag]:
        user_id = self._identity.require_user_id()
        cursor = await self._conn.execute(
            "SELECT id, name, color FROM tags WHERE user_id = ? ORDER BY name ASC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [Tag(id=row["id"], name=row["name"], color=row["color"]) for row in rows]

    async def create_tag(self, name: str, color: str | None = None) -> Tag:
        user_id = self._identity.require_user_id()
        tag = Tag(id=str(ULID()), name=name, color=color or DEFAULT_TAG_COLOR)
        try:
            await self._conn.execute(
                "INSERT INTO tags (id, user_id, name, color, created_at) VALUES (?, ?, ?, ?, ?)",
                (tag.id, user_id, tag.name, tag.color, datetime.now(UTC).isoformat()),
            )
        except sqlite3.IntegrityError as e:
            await self._conn.rollback()
            raise ValidationError(f"标签已存在: {name}") from e
        await self._conn.commit()
        return tag

    async def _get_or_create_tag_id(self, user_id: str, name: str) -> str:
        """查找同名标签，不存在则创建（不提交事务）"""
        cursor = await self._conn.execute(
            "SELECT id FROM tags WHERE user_id = ? AND name = ?",
            (user_id, name),
        )
        row = await cursor.fetchone()
        if row is not None:
            return row["id"]
        tag_id = str(ULID())
        await self._conn.execute(
            "INSERT INTO tags (id, user_id, name, created_at) VALUES (?, ?, ?, ?)",
            (tag_id, user_id, name, datetime.now(UTC).isoformat()),
        )
        return tag_id

    async def _load_tag_names(self, task_ids: list[str]) -> dict[str, set[str]]:
        if not task_ids:
            return {}
        placeholders = ", ".join("?" for _ in task_ids)
        cursor = await self._conn.execute(
            f"""
            SELECT tt.task_id, t.name
            FROM task_tags tt JOIN tags t ON t.id = tt.tag_id
            WHERE tt.task_id IN ({placeholders})
            """,
            task_ids,
        )
        result: dict[str, set[str]] = {}
        for row in await cursor.fetchall():
            result.setdefault(row["task_id"], set()).add(row["name"])
        return result

    @staticmethod
    def _row_to_task(row: aiosqlite.Row, tags: set[str]) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            description=row["description"],
            priority=row["priority"],
            tags=tags,
            due_date=datetime.fromisoformat(row["due_date"]) if row["due_date"] else None,
            estimated_pomodoros=row["estimated_pomodoros"],
            completed_pomodoros=row["completed_pomodoros"],
            is_completed=bool(row["is_completed"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
