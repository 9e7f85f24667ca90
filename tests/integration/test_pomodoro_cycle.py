"""番茄钟全链路集成测试

HTTP -> 引擎 -> SQLite：开始、自然到期、任务番茄数递增、长休建议。
"""

import asyncio

from httpx import AsyncClient
from pomotask.core.models import SessionStatus


async def _wait_for_state(client: AsyncClient, state: str, timeout: float = 5.0) -> dict:
    deadline = asyncio.get_running_loop().time() + timeout
    while True:
        data = (await client.get("/api/timer")).json()
        if data["timer"]["state"] == state:
            return data
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"timer stuck in {data['timer']['state']}")
        await asyncio.sleep(0.05)


class TestPomodoroCycle:
    async def test_session_runs_to_completion(self, client: AsyncClient, integration_app):
        await client.put("/api/preferences", json={"pomodoro_duration": 1})
        task = (
            await client.post("/api/tasks", json={"title": "集成测试", "estimated_pomodoros": 2})
        ).json()

        started = await client.post("/api/timer/start", json={"task_id": task["id"]})
        assert started.status_code == 201
        session_id = started.json()["timer"]["session_id"]
        assert started.json()["timer"]["time_remaining"] == 60

        data = await _wait_for_state(client, "idle")

        assert data["timer"]["completed_work_sessions"] == 1
        assert data["timer"]["time_remaining"] == 60
        refreshed = (await client.get(f"/api/tasks/{task['id']}")).json()
        assert refreshed["completed_pomodoros"] == 1
        session = await integration_app.state.store_group.session_store.get(session_id)
        assert session.status == SessionStatus.COMPLETED
        assert session.completed_at is not None

    async def test_pause_freezes_countdown(self, client: AsyncClient):
        await client.put("/api/preferences", json={"pomodoro_duration": 1})
        task = (await client.post("/api/tasks", json={"title": "暂停测试"})).json()
        await client.post("/api/timer/start", json={"task_id": task["id"]})
        await asyncio.sleep(0.1)

        paused = (await client.post("/api/timer/pause")).json()["timer"]
        await asyncio.sleep(0.1)
        still = (await client.get("/api/timer")).json()["timer"]

        assert paused["state"] == "paused"
        assert still["time_remaining"] == paused["time_remaining"]
        assert 0 < paused["time_remaining"] < 60

        reset = (await client.post("/api/timer/reset")).json()["timer"]
        assert reset["state"] == "idle"
        refreshed = (await client.get(f"/api/tasks/{task['id']}")).json()
        assert refreshed["completed_pomodoros"] == 0

    async def test_long_break_suggested_after_interval(self, client: AsyncClient):
        await client.put(
            "/api/preferences",
            json={"pomodoro_duration": 1, "long_break_interval": 2},
        )
        task = (await client.post("/api/tasks", json={"title": "长休测试"})).json()

        for _ in range(2):
            await client.post("/api/timer/start", json={"task_id": task["id"]})
            await client.post("/api/timer/complete")

        data = (await client.get("/api/timer")).json()
        assert data["timer"]["completed_work_sessions"] == 2
        assert data["suggested_break"] == "long_break"

        started = await client.post(
            "/api/timer/start",
            json={"task_id": task["id"], "suggested_break": True},
        )
        assert started.json()["timer"]["session_type"] == "long_break"
        await client.post("/api/timer/reset")

        refreshed = (await client.get(f"/api/tasks/{task['id']}")).json()
        assert refreshed["completed_pomodoros"] == 2
