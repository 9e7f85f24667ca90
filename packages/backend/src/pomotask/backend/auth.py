"""AuthClient -- 托管认证服务

提供登录、注册、登出、找回密码，并作为远端 Repository 的用户身份来源。
登录成功后把访问令牌写入 RestClient，后续数据请求以该用户身份发出。
"""

import structlog
from pydantic import BaseModel, Field

from pomotask.core.exceptions import NotAuthenticatedError

from .client import RestClient
from .exceptions import AuthError, BackendResponseError

log = structlog.get_logger()


class AuthSession(BaseModel):
    """当前登录会话"""

    access_token: str = Field(description="访问令牌")
    refresh_token: str | None = Field(default=None, description="刷新令牌")
    expires_in: int | None = Field(default=None, description="有效期（秒）")
    user_id: str = Field(description="用户 ID")
    email: str | None = Field(default=None, description="登录邮箱")


def _session_from_payload(payload: dict) -> AuthSession:
    user = payload.get("user") or {}
    return AuthSession(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token"),
        expires_in=payload.get("expires_in"),
        user_id=user["id"],
        email=user.get("email"),
    )


class AuthClient:
    """认证客户端，同时实现 Identity 接口"""

    def __init__(self, client: RestClient) -> None:
        self._client = client
        self._session: AuthSession | None = None

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def user_id(self) -> str | None:
        return self._session.user_id if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def require_user_id(self) -> str:
        """返回当前用户 ID，未登录时抛出 NotAuthenticatedError"""
        if self._session is None:
            raise NotAuthenticatedError()
        return self._session.user_id

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """邮箱密码登录

        Raises:
            AuthError: 凭据错误或邮箱未验证
            BackendUnreachableError: 认证服务不可达
        """
        try:
            payload = await self._client.request(
                "POST",
                "/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except BackendResponseError as e:
            if e.status_code < 500:
                log.info("sign_in_rejected", status_code=e.status_code, code=e.code)
                raise AuthError(e.detail) from e
            raise

        self._set_session(_session_from_payload(payload))
        log.info("signed_in", user_id=self.user_id)
        return self._session

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
    ) -> AuthSession | None:
        """注册新用户

        需要邮箱验证时后端不返回会话，此时返回 None，用户保持未登录。
        """
        body: dict = {"email": email, "password": password}
        if full_name:
            body["data"] = {"full_name": full_name}
        try:
            payload = await self._client.request("POST", "/auth/v1/signup", json=body)
        except BackendResponseError as e:
            if e.status_code < 500:
                raise AuthError(e.detail) from e
            raise

        if not payload or not payload.get("access_token"):
            log.info("signed_up_pending_verification", email=email)
            return None

        self._set_session(_session_from_payload(payload))
        log.info("signed_up", user_id=self.user_id)
        return self._session

    async def sign_out(self) -> None:
        """登出：无论远端是否成功，本地会话都会清除"""
        if self._session is None:
            return
        user_id = self._session.user_id
        try:
            await self._client.request("POST", "/auth/v1/logout")
        except BackendResponseError as e:
            # 令牌已过期等情况下远端会拒绝，本地照常登出
            log.warning("sign_out_remote_failed", user_id=user_id, status_code=e.status_code)
        finally:
            self._set_session(None)
        log.info("signed_out", user_id=user_id)

    async def reset_password(self, email: str, redirect_to: str | None = None) -> None:
        """发送找回密码邮件"""
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._client.request(
            "POST",
            "/auth/v1/recover",
            params=params,
            json={"email": email},
        )
        log.info("password_reset_requested", email=email)

    def _set_session(self, session: AuthSession | None) -> None:
        self._session = session
        self._client.access_token = session.access_token if session else None
