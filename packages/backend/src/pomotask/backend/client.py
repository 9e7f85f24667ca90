"""RestClient -- 托管后端 HTTP 调用封装

数据表通过 /rest/v1/{table} 的 PostgREST 风格接口访问，
认证通过 /auth/v1/* 接口访问。每个请求携带 apikey 头，
登录后 Authorization 使用用户访问令牌（由后端行级权限限定用户范围）。
"""

import time
from typing import Any

import httpx
import structlog

from .config import BackendConfig
from .exceptions import BackendResponseError, BackendUnreachableError

log = structlog.get_logger()

# 健康检查超时（硬编码，应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

# 连接类异常类型集合（映射为 BackendUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
    httpx.NetworkError,
)


def _error_message(resp: httpx.Response) -> tuple[str, str | None]:
    """从错误响应中提取 message 与 code（数据接口与认证接口格式不同）"""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase, None
    if not isinstance(body, dict):
        return str(body), None
    message = (
        body.get("message")
        or body.get("msg")
        or body.get("error_description")
        or body.get("error")
        or resp.reason_phrase
    )
    code = body.get("code") or body.get("error_code")
    return str(message), str(code) if code is not None else None


class RestClient:
    """托管后端客户端

    一个进程持有一个实例，内部复用 httpx.AsyncClient 连接池。
    """

    def __init__(
        self,
        base_url: str = "http://localhost:54321",
        api_key: str = "",
        timeout_s: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: 后端基础 URL
            api_key: 项目公开访问密钥
            timeout_s: 请求超时（秒）
            transport: 自定义 transport（测试中注入 httpx.MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout_s,
            transport=transport,
        )
        self.access_token: str | None = None

    @classmethod
    def from_config(
        cls,
        config: BackendConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "RestClient":
        return cls(
            base_url=config.base_url,
            api_key=config.api_key.get_secret_value(),
            timeout_s=config.timeout_s,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        bearer = self.access_token or self._api_key
        headers = {"apikey": self._api_key}
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """发送请求并返回解析后的 JSON（空响应返回 None）

        Raises:
            BackendUnreachableError: 连接失败或超时
            BackendResponseError: 非 2xx 响应
        """
        start_time = time.monotonic()
        try:
            resp = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(headers),
            )
        except _CONNECTION_ERROR_TYPES as e:
            log.error(
                "backend_request_unreachable",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise BackendUnreachableError(self._base_url, e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        if resp.status_code >= 400:
            message, code = _error_message(resp)
            log.warning(
                "backend_request_failed",
                method=method,
                path=path,
                status_code=resp.status_code,
                code=code,
                duration_ms=duration_ms,
            )
            raise BackendResponseError(resp.status_code, message, code)

        log.debug(
            "backend_request_completed",
            method=method,
            path=path,
            status_code=resp.status_code,
            duration_ms=duration_ms,
        )
        if not resp.content:
            return None
        return resp.json()

    # ============================================================
    # 数据表操作
    # ============================================================

    async def select(self, table: str, params: dict[str, str]) -> list[dict]:
        rows = await self.request("GET", f"/rest/v1/{table}", params=params)
        return rows or []

    async def insert(
        self,
        table: str,
        values: dict | list[dict],
    ) -> list[dict]:
        rows = await self.request(
            "POST",
            f"/rest/v1/{table}",
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return rows or []

    async def upsert(
        self,
        table: str,
        values: dict | list[dict],
        on_conflict: str,
    ) -> list[dict]:
        rows = await self.request(
            "POST",
            f"/rest/v1/{table}",
            params={"on_conflict": on_conflict},
            json=values,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return rows or []

    async def update(
        self,
        table: str,
        values: dict,
        params: dict[str, str],
    ) -> list[dict]:
        rows = await self.request(
            "PATCH",
            f"/rest/v1/{table}",
            params=params,
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return rows or []

    async def delete(self, table: str, params: dict[str, str]) -> None:
        await self.request("DELETE", f"/rest/v1/{table}", params=params)

    async def health_check(self) -> bool:
        """检查后端可达性

        注意: 此方法不抛出异常，所有异常内部捕获并返回 False。
        """
        try:
            resp = await self._http.get(
                "/auth/v1/health",
                headers=self._headers(),
                timeout=HEALTH_CHECK_TIMEOUT_S,
            )
            return resp.status_code == 200
        except Exception as e:
            log.debug("health_check_failed", base_url=self._base_url, error=str(e))
            return False


def eq(value: object) -> str:
    """PostgREST 等值过滤表达式"""
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"
