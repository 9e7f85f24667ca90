"""ProfileRepository SQLite 实现（local 模式）"""

from datetime import UTC, datetime

import aiosqlite

from ..models import Preferences
from .protocols import Identity


class SqliteProfileStore:
    """用户偏好的 SQLite 实现，一个用户一行"""

    def __init__(self, conn: aiosqlite.Connection, identity: Identity) -> None:
        self._conn = conn
        self._identity = identity

    async def get_preferences(self) -> Preferences:
        user_id = self._identity.require_user_id()
        cursor = await self._conn.execute(
            "SELECT * FROM profiles WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return Preferences()
        return Preferences(
            pomodoro_duration=row["pomodoro_duration"],
            short_break_duration=row["short_break_duration"],
            long_break_duration=row["long_break_duration"],
            long_break_interval=row["long_break_interval"],
            notifications_enabled=bool(row["notifications_enabled"]),
            sound_enabled=bool(row["sound_enabled"]),
        )

    async def save_preferences(self, prefs: Preferences) -> Preferences:
        user_id = self._identity.require_user_id()
        await self._conn.execute(
            """
            INSERT INTO profiles (user_id, pomodoro_duration, short_break_duration,
                                  long_break_duration, long_break_interval,
                                  notifications_enabled, sound_enabled, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                pomodoro_duration = excluded.pomodoro_duration,
                short_break_duration = excluded.short_break_duration,
                long_break_duration = excluded.long_break_duration,
                long_break_interval = excluded.long_break_interval,
                notifications_enabled = excluded.notifications_enabled,
                sound_enabled = excluded.sound_enabled,
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                prefs.pomodoro_duration,
                prefs.short_break_duration,
                prefs.long_break_duration,
                prefs.long_break_interval,
                int(prefs.notifications_enabled),
                int(prefs.sound_enabled),
                datetime.now(UTC).isoformat(),
            ),
        )
        await self._conn.commit()
        return prefs
