"""Backend 包测试 fixtures -- httpx.MockTransport 模拟托管后端"""

import json

import httpx
import pytest
import pytest_asyncio
from pomotask.backend import RestClient
from pomotask.core.identity import StaticIdentity

BASE_URL = "http://backend.test"


class FakeBackend:
    """按 (method, path) 返回预置响应，并记录全部请求

    同一路由预置多个响应时按顺序消费，最后一个响应会一直复用。
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list] = {}
        self.error: Exception | None = None

    def respond(self, method: str, path: str, body=None, status: int = 200) -> None:
        self._routes.setdefault((method, path), []).append((status, body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        queued = self._routes.get((request.method, request.url.path))
        if not queued:
            return httpx.Response(404, json={"message": f"no route: {request.url.path}"})
        status, body = queued.pop(0) if len(queued) > 1 else queued[0]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def last(self, method: str | None = None, path: str | None = None) -> httpx.Request:
        """最近一个匹配的请求"""
        for request in reversed(self.requests):
            if method is not None and request.method != method:
                continue
            if path is not None and request.url.path != path:
                continue
            return request
        raise AssertionError(f"no request matched {method} {path}")

    @staticmethod
    def body(request: httpx.Request):
        return json.loads(request.content)


def _task_row(task_id: str = "t1", **overrides) -> dict:
    row = {
        "id": task_id,
        "user_id": "user-1",
        "title": "写周报",
        "description": None,
        "priority": "medium",
        "due_date": None,
        "estimated_pomodoros": 3,
        "completed_pomodoros": 0,
        "is_completed": False,
        "created_at": "2026-01-05T09:00:00+00:00",
        "updated_at": "2026-01-05T09:00:00+00:00",
        "task_tags": [],
    }
    row.update(overrides)
    return row


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def rest_client(backend: FakeBackend):
    client = RestClient(
        base_url=BASE_URL,
        api_key="anon-key",
        timeout_s=5,
        transport=httpx.MockTransport(backend.handler),
    )
    yield client
    await client.aclose()


@pytest.fixture
def task_row():
    """任务行工厂（含嵌入标签字段）"""
    return _task_row


@pytest.fixture
def identity() -> StaticIdentity:
    return StaticIdentity("user-1")
