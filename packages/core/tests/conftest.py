"""packages/core 测试配置 -- 内存 Repository 替身与本地 StoreGroup"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from pomotask.core.exceptions import NotFoundError
from pomotask.core.filters import apply_client_filters, matches_server_filters
from pomotask.core.identity import StaticIdentity
from pomotask.core.models import (
    PomodoroSession,
    SessionStatus,
    SessionType,
    Tag,
    Task,
    TaskCreate,
    TaskFilters,
    TaskUpdate,
)
from pomotask.core.store import StoreGroup, create_store_group
from pomotask.core.timer import PomodoroEngine


class InMemoryTaskRepository:
    """TaskRepository 内存替身"""

    def __init__(self, user_id: str = "user-1") -> None:
        self.user_id = user_id
        self.tasks: dict[str, Task] = {}
        self.tags: dict[str, Tag] = {}
        self.update_calls: list[tuple[str, dict]] = []
        self.list_calls = 0
        self.update_error: Exception | None = None
        self._seq = 0

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._seq}"

    def add(self, title: str, **fields) -> Task:
        now = datetime.now(UTC)
        task = Task(
            id=self._next_id("task"),
            user_id=self.user_id,
            title=title,
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.tasks[task.id] = task
        return task

    async def list(self, filters: TaskFilters | None = None) -> list[Task]:
        self.list_calls += 1
        tasks = [
            t
            for t in reversed(list(self.tasks.values()))
            if filters is None or matches_server_filters(t, filters)
        ]
        return apply_client_filters(tasks, filters)

    async def get(self, task_id: str) -> Task | None:
        return self.tasks.get(task_id)

    async def create(self, fields: TaskCreate) -> Task:
        return self.add(
            fields.title,
            description=fields.description,
            priority=fields.priority,
            estimated_pomodoros=fields.estimated_pomodoros,
            tags=set(fields.tags),
        )

    async def update(self, task_id: str, changes: TaskUpdate) -> Task:
        self.update_calls.append((task_id, changes.changes()))
        if self.update_error is not None:
            raise self.update_error
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        updated = task.model_copy(update={**changes.changes(), "updated_at": datetime.now(UTC)})
        self.tasks[task_id] = updated
        return updated

    async def delete(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)

    async def list_tags(self) -> list[Tag]:
        return sorted(self.tags.values(), key=lambda t: t.name)

    async def create_tag(self, name: str, color: str | None = None) -> Tag:
        tag = Tag(id=self._next_id("tag"), name=name, **({"color": color} if color else {}))
        self.tags[tag.id] = tag
        return tag


class InMemorySessionRepository:
    """SessionRepository 内存替身，可注入失败与阻塞"""

    def __init__(self, user_id: str = "user-1") -> None:
        self.user_id = user_id
        self.sessions: dict[str, PomodoroSession] = {}
        self.create_calls: list[dict] = []
        self.finalize_calls: list[tuple[str, SessionStatus, datetime | None]] = []
        self.create_error: Exception | None = None
        self.finalize_error: Exception | None = None
        # 设置后 create / finalize 会阻塞到 gate.set()
        self.create_gate: asyncio.Event | None = None
        self.finalize_gate: asyncio.Event | None = None
        self._seq = 0

    async def create(
        self,
        task_id: str,
        duration_seconds: int,
        session_type: SessionType,
    ) -> PomodoroSession:
        self.create_calls.append(
            {"task_id": task_id, "duration": duration_seconds, "session_type": session_type}
        )
        if self.create_gate is not None:
            await self.create_gate.wait()
        if self.create_error is not None:
            raise self.create_error
        self._seq += 1
        session = PomodoroSession(
            id=f"session-{self._seq}",
            user_id=self.user_id,
            task_id=task_id,
            duration=duration_seconds,
            session_type=session_type,
            started_at=datetime.now(UTC),
        )
        self.sessions[session.id] = session
        return session

    async def finalize(
        self,
        session_id: str,
        status: SessionStatus,
        completed_at: datetime | None = None,
    ) -> None:
        self.finalize_calls.append((session_id, status, completed_at))
        if self.finalize_gate is not None:
            await self.finalize_gate.wait()
        if self.finalize_error is not None:
            raise self.finalize_error
        session = self.sessions[session_id]
        self.sessions[session_id] = session.model_copy(
            update={"status": status, "completed_at": completed_at}
        )

    async def get(self, session_id: str) -> PomodoroSession | None:
        return self.sessions.get(session_id)


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def session_repo() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def sample_task(task_repo: InMemoryTaskRepository) -> Task:
    return task_repo.add("写周报", estimated_pomodoros=3)


@pytest_asyncio.fixture
async def engine(session_repo, task_repo, scheduler) -> PomodoroEngine:
    """使用虚拟时钟的引擎，远端超时 1 秒"""
    eng = PomodoroEngine(
        session_repo,
        task_repo,
        scheduler=scheduler,
        remote_timeout_s=1.0,
    )
    yield eng
    eng.stop()
    await eng.wait_finalized()


@pytest_asyncio.fixture
async def store_group(tmp_path: Path):
    """已初始化的本地 StoreGroup（user-1）"""
    group: StoreGroup = await create_store_group(
        str(tmp_path / "sqlite" / "core.db"),
        StaticIdentity("user-1"),
    )
    yield group
    await group.close()
