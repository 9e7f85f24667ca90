"""Backend 异常体系

传输层错误统一继承 BackendError（同时是 PomodoroError），
引擎与网关按基类区分处理，不依赖 httpx 异常类型。
"""

from pomotask.core.exceptions import NotFoundError, PomodoroError


class BackendError(PomodoroError):
    """Backend 包基础异常"""


class BackendUnreachableError(BackendError):
    """托管后端不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, base_url: str, original_error: Exception) -> None:
        """
        Args:
            base_url: 尝试连接的后端地址
            original_error: 原始异常
        """
        super().__init__(
            f"后端服务不可达: {base_url} -- {original_error}",
            recoverable=True,
        )
        self.base_url = base_url
        self.original_error = original_error


class BackendResponseError(BackendError):
    """后端返回非 2xx 响应"""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str | None = None,
    ) -> None:
        super().__init__(
            f"后端请求失败 ({status_code}): {message}",
            recoverable=status_code >= 500 or status_code == 429,
        )
        self.status_code = status_code
        self.detail = message
        self.code = code


class AuthError(BackendError):
    """认证失败（凭据错误、邮箱未验证、令牌过期等）"""

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=True)


class RecordNotFoundError(NotFoundError):
    """按 ID 更新或读取时后端没有返回任何行"""

    def __init__(self, table: str, record_id: str) -> None:
        super().__init__(table, record_id)
        self.table = table
