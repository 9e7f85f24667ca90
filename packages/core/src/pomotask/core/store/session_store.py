"""SessionRepository SQLite 实现（local 模式）

每条会话创建时为 running，之后至多 finalize 一次；
相同终态的重复 finalize 只是覆盖写，不破坏数据。
"""

from datetime import UTC, datetime

import aiosqlite
from ulid import ULID

from ..exceptions import NotFoundError, ValidationError
from ..models import FINAL_SESSION_STATUSES, PomodoroSession, SessionStatus, SessionType
from .protocols import Identity


class SqliteSessionStore:
    """SessionRepository 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, identity: Identity) -> None:
        self._conn = conn
        self._identity = identity

    async def create(
        self,
        task_id: str,
        duration_seconds: int,
        session_type: SessionType,
    ) -> PomodoroSession:
        """创建会话记录（status=running, started_at=now）"""
        user_id = self._identity.require_user_id()
        session = PomodoroSession(
            id=str(ULID()),
            user_id=user_id,
            task_id=task_id,
            duration=duration_seconds,
            session_type=session_type,
            started_at=datetime.now(UTC),
        )
        await self._conn.execute(
            """
            INSERT INTO pomodoro_sessions (id, user_id, task_id, duration, session_type,
                                           started_at, completed_at, status)
            VALUES (?, ?, ?, ?, ?, ?, NULL, ?)
            """,
            (
                session.id,
                session.user_id,
                session.task_id,
                session.duration,
                session.session_type.value,
                session.started_at.isoformat(),
                session.status.value,
            ),
        )
        await self._conn.commit()
        return session

    async def finalize(
        self,
        session_id: str,
        status: SessionStatus,
        completed_at: datetime | None = None,
    ) -> None:
        if status not in FINAL_SESSION_STATUSES:
            raise ValidationError(f"会话只能标记为终态: {status}")
        user_id = self._identity.require_user_id()
        cursor = await self._conn.execute(
            """
            UPDATE pomodoro_sessions SET status = ?, completed_at = ?
            WHERE id = ? AND user_id = ?
            """,
            (
                status.value,
                completed_at.isoformat() if completed_at else None,
                session_id,
                user_id,
            ),
        )
        await self._conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError("session", session_id)

    async def get(self, session_id: str) -> PomodoroSession | None:
        user_id = self._identity.require_user_id()
        cursor = await self._conn.execute(
            "SELECT * FROM pomodoro_sessions WHERE id = ? AND user_id = ?",
            (session_id, user_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_session(row)

    @staticmethod
    def _row_to_session(row: aiosqlite.Row) -> PomodoroSession:
        completed_at = row["completed_at"]
        return PomodoroSession(
            id=row["id"],
            user_id=row["user_id"],
            task_id=row["task_id"],
            duration=row["duration"],
            session_type=row["session_type"],
            started_at=datetime.fromisoformat(row["started_at"]),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            status=row["status"],
        )
