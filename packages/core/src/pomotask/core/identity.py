"""用户身份

所有 Repository 操作都隐式限定在当前用户范围内。
远端模式下身份来自认证服务（pomotask.backend.auth.AuthClient），
本地模式使用固定身份。
"""

from .exceptions import NotAuthenticatedError


class StaticIdentity:
    """固定用户身份（local 模式 / 测试）"""

    def __init__(self, user_id: str | None) -> None:
        self._user_id = user_id

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def require_user_id(self) -> str:
        """返回当前用户 ID，未登录时抛出 NotAuthenticatedError"""
        if not self._user_id:
            raise NotAuthenticatedError()
        return self._user_id
