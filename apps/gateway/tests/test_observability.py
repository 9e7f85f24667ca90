"""可观测性测试 -- X-Request-ID、追踪上下文与 structlog 配置"""

import logging
from unittest.mock import MagicMock, patch

import structlog
from httpx import AsyncClient
from pomotask.gateway.middleware.logging_config import setup_logfire, setup_logging


class TestRequestId:
    async def test_response_has_request_id(self, client: AsyncClient):
        resp = await client.get("/health")

        request_id = resp.headers.get("X-Request-ID")
        assert request_id is not None
        assert len(request_id) == 26  # ULID

    async def test_request_ids_unique(self, client: AsyncClient):
        first = await client.get("/health")
        second = await client.get("/health")

        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]

    async def test_incoming_request_id_reused(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "client-req-42"})

        assert resp.headers["X-Request-ID"] == "client-req-42"

    async def test_malformed_incoming_request_id_replaced(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "bad id with spaces"})

        assert resp.headers["X-Request-ID"] != "bad id with spaces"
        assert len(resp.headers["X-Request-ID"]) == 26

    async def test_error_responses_carry_request_id(self, client: AsyncClient):
        resp = await client.get("/api/tasks/missing")

        assert resp.status_code == 404
        assert "X-Request-ID" in resp.headers


class TestTraceContext:
    async def test_timer_request_binds_session(self, client: AsyncClient, task, monkeypatch):
        bound: list[dict] = []
        original = structlog.contextvars.bind_contextvars

        def capture(**kwargs):
            bound.append(kwargs)
            return original(**kwargs)

        monkeypatch.setattr(structlog.contextvars, "bind_contextvars", capture)
        started = (await client.post("/api/timer/start", json={"task_id": task.id})).json()

        await client.post("/api/timer/pause")

        session_id = started["timer"]["session_id"]
        assert {"session_id": session_id, "trace_id": f"trace-{session_id}"} in bound

    async def test_task_request_binds_task_id(self, client: AsyncClient, task, monkeypatch):
        bound: list[dict] = []
        original = structlog.contextvars.bind_contextvars

        def capture(**kwargs):
            bound.append(kwargs)
            return original(**kwargs)

        monkeypatch.setattr(structlog.contextvars, "bind_contextvars", capture)

        await client.post(f"/api/tasks/{task.id}/toggle")

        assert {"task_id": task.id} in bound


class TestLoggingConfig:
    def test_json_format(self, monkeypatch):
        monkeypatch.setenv("POMOTASK_LOG_FORMAT", "json")
        monkeypatch.setenv("POMOTASK_LOG_LEVEL", "DEBUG")

        setup_logging()

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("aiosqlite").level == logging.WARNING
        assert len(logging.getLogger().handlers) == 1

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("POMOTASK_LOG_LEVEL", "chatty")

        setup_logging()

        assert logging.getLogger().level == logging.INFO


class TestLogfire:
    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("POMOTASK_LOGFIRE", raising=False)

        with patch("logfire.configure") as configure:
            assert setup_logfire(MagicMock()) is False
        configure.assert_not_called()

    def test_enabled_instruments_app(self, monkeypatch):
        monkeypatch.setenv("POMOTASK_LOGFIRE", "true")
        app = MagicMock()

        with (
            patch("logfire.configure") as configure,
            patch("logfire.instrument_fastapi") as instrument,
        ):
            assert setup_logfire(app) is True
        configure.assert_called_once()
        instrument.assert_called_once_with(app)

    def test_init_failure_degrades(self, monkeypatch):
        monkeypatch.setenv("POMOTASK_LOGFIRE", "true")

        with patch("logfire.configure", side_effect=RuntimeError("no token")):
            assert setup_logfire(MagicMock()) is False
