"""RemoteSessionRepository / RemoteProfileRepository 单元测试"""

from datetime import UTC, datetime

import pytest
from pomotask.backend import (
    RecordNotFoundError,
    RemoteProfileRepository,
    RemoteSessionRepository,
)
from pomotask.core.exceptions import ValidationError
from pomotask.core.models import Preferences, SessionStatus, SessionType


def _session_row(**overrides) -> dict:
    row = {
        "id": "s1",
        "user_id": "user-1",
        "task_id": "t1",
        "duration": 1500,
        "session_type": "work",
        "started_at": "2026-01-05T09:00:00+00:00",
        "completed_at": None,
        "status": "running",
    }
    row.update(overrides)
    return row


@pytest.fixture
def sessions(rest_client, identity) -> RemoteSessionRepository:
    return RemoteSessionRepository(rest_client, identity)


@pytest.fixture
def profiles(rest_client, identity) -> RemoteProfileRepository:
    return RemoteProfileRepository(rest_client, identity)


class TestSessionCreate:
    async def test_inserts_running_row(self, sessions, backend):
        backend.respond("POST", "/rest/v1/pomodoro_sessions", [_session_row()], 201)

        session = await sessions.create("t1", 1500, SessionType.WORK)

        body = backend.body(backend.last())
        assert body["user_id"] == "user-1"
        assert body["task_id"] == "t1"
        assert body["duration"] == 1500
        assert body["session_type"] == "work"
        assert body["status"] == "running"
        assert datetime.fromisoformat(body["started_at"]).tzinfo is not None
        assert session.id == "s1"
        assert session.status == SessionStatus.RUNNING


class TestSessionFinalize:
    async def test_completed_with_timestamp(self, sessions, backend):
        backend.respond("PATCH", "/rest/v1/pomodoro_sessions", [_session_row(status="completed")])
        completed_at = datetime(2026, 1, 5, 9, 25, tzinfo=UTC)

        await sessions.finalize("s1", SessionStatus.COMPLETED, completed_at)

        request = backend.last()
        assert backend.body(request) == {
            "status": "completed",
            "completed_at": completed_at.isoformat(),
        }
        assert request.url.params["id"] == "eq.s1"

    async def test_cancelled_without_timestamp(self, sessions, backend):
        backend.respond("PATCH", "/rest/v1/pomodoro_sessions", [_session_row(status="cancelled")])

        await sessions.finalize("s1", SessionStatus.CANCELLED)

        assert backend.body(backend.last()) == {"status": "cancelled"}

    async def test_rejects_running(self, sessions, backend):
        with pytest.raises(ValidationError):
            await sessions.finalize("s1", SessionStatus.RUNNING)
        assert backend.requests == []

    async def test_missing_row(self, sessions, backend):
        backend.respond("PATCH", "/rest/v1/pomodoro_sessions", [])

        with pytest.raises(RecordNotFoundError):
            await sessions.finalize("missing", SessionStatus.COMPLETED, datetime.now(UTC))


class TestSessionGet:
    async def test_found_and_missing(self, sessions, backend):
        backend.respond("GET", "/rest/v1/pomodoro_sessions", [_session_row(status="completed")])
        backend.respond("GET", "/rest/v1/pomodoro_sessions", [])

        assert (await sessions.get("s1")).status == SessionStatus.COMPLETED
        assert await sessions.get("missing") is None


class TestProfiles:
    async def test_null_columns_fall_back_to_defaults(self, profiles, backend):
        backend.respond(
            "GET",
            "/rest/v1/profiles",
            [{"pomodoro_duration": 50, "short_break_duration": None, "sound_enabled": False}],
        )

        prefs = await profiles.get_preferences()

        assert prefs.pomodoro_duration == 50
        assert prefs.short_break_duration == 5
        assert prefs.sound_enabled is False
        assert backend.last().url.params["id"] == "eq.user-1"

    async def test_missing_profile(self, profiles, backend):
        backend.respond("GET", "/rest/v1/profiles", [])
        assert await profiles.get_preferences() == Preferences()

    async def test_save_upserts_by_user(self, profiles, backend):
        stored = {"id": "user-1", **Preferences(pomodoro_duration=45).model_dump()}
        backend.respond("POST", "/rest/v1/profiles", [stored], 201)

        saved = await profiles.save_preferences(Preferences(pomodoro_duration=45))

        request = backend.last()
        assert request.url.params["on_conflict"] == "id"
        assert backend.body(request)["id"] == "user-1"
        assert saved.pomodoro_duration == 45
