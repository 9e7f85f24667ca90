"""RemoteSessionRepository -- 托管后端 pomodoro_sessions 表"""

from datetime import UTC, datetime

import structlog

from pomotask.core.exceptions import ValidationError
from pomotask.core.models import (
    FINAL_SESSION_STATUSES,
    PomodoroSession,
    SessionStatus,
    SessionType,
)
from pomotask.core.store.protocols import Identity

from .client import RestClient, eq
from .exceptions import RecordNotFoundError

log = structlog.get_logger()

SESSIONS_TABLE = "pomodoro_sessions"


class RemoteSessionRepository:
    """SessionRepository 的托管后端实现"""

    def __init__(self, client: RestClient, identity: Identity) -> None:
        self._client = client
        self._identity = identity

    async def create(
        self,
        task_id: str,
        duration_seconds: int,
        session_type: SessionType,
    ) -> PomodoroSession:
        user_id = self._identity.require_user_id()
        rows = await self._client.insert(
            SESSIONS_TABLE,
            {
                "user_id": user_id,
                "task_id": task_id,
                "duration": duration_seconds,
                "session_type": session_type.value,
                "started_at": datetime.now(UTC).isoformat(),
                "status": SessionStatus.RUNNING.value,
            },
        )
        session = PomodoroSession.model_validate(rows[0])
        log.info("session_created", session_id=session.id, task_id=task_id)
        return session

    async def finalize(
        self,
        session_id: str,
        status: SessionStatus,
        completed_at: datetime | None = None,
    ) -> None:
        """标记终态；相同终态重复提交时后端只是覆盖同样的值"""
        if status not in FINAL_SESSION_STATUSES:
            raise ValidationError(f"会话只能标记为终态: {status}")
        user_id = self._identity.require_user_id()
        values: dict = {"status": status.value}
        if completed_at is not None:
            values["completed_at"] = completed_at.isoformat()
        rows = await self._client.update(
            SESSIONS_TABLE,
            values,
            {"id": eq(session_id), "user_id": eq(user_id)},
        )
        if not rows:
            raise RecordNotFoundError(SESSIONS_TABLE, session_id)
        log.info("session_finalized", session_id=session_id, status=status)

    async def get(self, session_id: str) -> PomodoroSession | None:
        user_id = self._identity.require_user_id()
        rows = await self._client.select(
            SESSIONS_TABLE,
            {"select": "*", "id": eq(session_id), "user_id": eq(user_id)},
        )
        if not rows:
            return None
        return PomodoroSession.model_validate(rows[0])
