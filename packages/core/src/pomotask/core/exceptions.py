"""Core 异常体系

ValidationError 在任何状态变更和网络调用之前同步抛出；
RemoteCreateError 表示 Start 失败且无副作用；
RemoteFinalizeError 表示本地已回到 IDLE，但远端状态未知。
"""

from collections.abc import Sequence


class PomodoroError(Exception):
    """PomoTask 基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述（面向用户，可直接展示）
            recoverable: 用户是否可通过重试恢复
        """
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class ValidationError(PomodoroError):
    """操作参数或当前状态不合法（例如未选择任务就 Start）"""

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=True)


class NotAuthenticatedError(PomodoroError):
    """没有活跃的用户身份"""

    def __init__(self, message: str = "用户未登录，请先登录") -> None:
        super().__init__(message, recoverable=True)


class RemoteCreateError(PomodoroError):
    """远端会话创建失败，Start 被拒绝，计时器保持 IDLE"""

    def __init__(self, original_error: BaseException) -> None:
        super().__init__(
            f"创建番茄钟会话失败: {original_error}",
            recoverable=True,
        )
        self.original_error = original_error


# Start 语义下的别名
SessionCreateError = RemoteCreateError


class RemoteFinalizeError(PomodoroError):
    """远端 finalize（completed/cancelled）失败

    本地状态已回到 IDLE，会话 ID 已丢弃，不会自动重试；
    本地与远端的差异由下一次拉取服务端数据时修正。
    """

    def __init__(
        self,
        session_id: str,
        status: str,
        original_errors: Sequence[BaseException],
    ) -> None:
        detail = "; ".join(str(e) for e in original_errors) or "unknown error"
        super().__init__(
            f"会话 {session_id} 标记为 {status} 失败: {detail}",
            recoverable=False,
        )
        self.session_id = session_id
        self.status = status
        self.original_errors = list(original_errors)


class NotFoundError(PomodoroError):
    """记录不存在或不属于当前用户"""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} 不存在: {record_id}", recoverable=False)
        self.kind = kind
        self.record_id = record_id
