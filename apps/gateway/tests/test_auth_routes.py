"""认证路由测试 -- local 模式拒绝 + remote 模式（MockTransport 托管后端）"""

import json

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pomotask.backend import (
    AuthClient,
    RemoteProfileRepository,
    RemoteSessionRepository,
    RemoteTaskRepository,
    RestClient,
)

_TOKEN_PAYLOAD = {
    "access_token": "user-token",
    "refresh_token": "refresh",
    "expires_in": 3600,
    "user": {"id": "user-1", "email": "me@example.com"},
}


class TestLocalMode:
    async def test_auth_routes_unavailable(self, client: AsyncClient):
        for method, path, body in (
            ("POST", "/api/auth/sign-in", {"email": "me@example.com", "password": "secret1"}),
            ("POST", "/api/auth/sign-out", None),
            ("GET", "/api/auth/me", None),
        ):
            resp = await client.request(method, path, json=body)
            assert resp.status_code == 409
            assert resp.json()["error"]["code"] == "LOCAL_MODE"


def _backend_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/auth/v1/token":
        body = json.loads(request.content)
        if body["password"] != "secret1":
            return httpx.Response(
                400, json={"error": "invalid_grant", "error_description": "Invalid login"}
            )
        return httpx.Response(200, json=_TOKEN_PAYLOAD)
    if path == "/auth/v1/signup":
        return httpx.Response(200, json={"id": "user-2", "email": "new@example.com"})
    if path in ("/auth/v1/logout", "/auth/v1/recover"):
        return httpx.Response(204)
    if path == "/rest/v1/profiles":
        return httpx.Response(200, json=[{"pomodoro_duration": 40}])
    return httpx.Response(404, json={"message": "not found"})


@pytest_asyncio.fixture
async def remote_app(scheduler):
    from pomotask.gateway.main import create_app, install_runtime

    rest_client = RestClient(
        base_url="http://backend.test",
        api_key="anon-key",
        transport=httpx.MockTransport(_backend_handler),
    )
    auth = AuthClient(rest_client)
    application = create_app()
    application.state.store_group = None
    application.state.rest_client = rest_client
    application.state.auth = auth
    install_runtime(
        application,
        task_repo=RemoteTaskRepository(rest_client, auth),
        session_repo=RemoteSessionRepository(rest_client, auth),
        profile_repo=RemoteProfileRepository(rest_client, auth),
        scheduler=scheduler,
        remote_timeout_s=1.0,
    )
    yield application

    application.state.timer_hub.detach()
    await application.state.engine.aclose()
    await rest_client.aclose()


@pytest_asyncio.fixture
async def remote_client(remote_app):
    async with AsyncClient(
        transport=ASGITransport(app=remote_app),
        base_url="http://test",
    ) as ac:
        yield ac


class TestRemoteMode:
    async def test_me_requires_sign_in(self, remote_client: AsyncClient):
        resp = await remote_client.get("/api/auth/me")

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "NOT_AUTHENTICATED"

    async def test_sign_in_loads_preferences(self, remote_client: AsyncClient):
        resp = await remote_client.post(
            "/api/auth/sign-in",
            json={"email": "me@example.com", "password": "secret1"},
        )

        assert resp.status_code == 200
        assert resp.json() == {"user_id": "user-1", "email": "me@example.com"}
        me = await remote_client.get("/api/auth/me")
        assert me.json()["user_id"] == "user-1"
        timer = (await remote_client.get("/api/timer")).json()["timer"]
        assert timer["time_remaining"] == 2400

    async def test_sign_in_rejected(self, remote_client: AsyncClient):
        resp = await remote_client.post(
            "/api/auth/sign-in",
            json={"email": "me@example.com", "password": "wrong-pw"},
        )

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "AUTH_FAILED"

    async def test_sign_up_pending_verification(self, remote_client: AsyncClient):
        resp = await remote_client.post(
            "/api/auth/sign-up",
            json={"email": "new@example.com", "password": "secret1", "full_name": "New"},
        )

        assert resp.status_code == 201
        assert resp.json() == {"user_id": None, "pending_verification": True}

    async def test_sign_out(self, remote_client: AsyncClient):
        await remote_client.post(
            "/api/auth/sign-in",
            json={"email": "me@example.com", "password": "secret1"},
        )

        resp = await remote_client.post("/api/auth/sign-out")

        assert resp.status_code == 204
        assert (await remote_client.get("/api/auth/me")).status_code == 401

    async def test_reset_password(self, remote_client: AsyncClient):
        resp = await remote_client.post(
            "/api/auth/reset-password",
            json={"email": "me@example.com"},
        )

        assert resp.status_code == 202

    async def test_tasks_require_sign_in(self, remote_client: AsyncClient):
        resp = await remote_client.get("/api/tasks")
        assert resp.status_code == 401
