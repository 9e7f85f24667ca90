"""TimerService -- 计时器命令编排

把 HTTP 层传入的 task_id 解析为 Task 后交给引擎；
引擎本身只接受已解析的 Task 对象。
"""

from pomotask.core.exceptions import NotFoundError
from pomotask.core.models import PomodoroSession, SessionType
from pomotask.core.store.protocols import TaskRepository
from pomotask.core.timer import PomodoroEngine


class TimerService:
    """计时器业务逻辑"""

    def __init__(self, engine: PomodoroEngine, tasks: TaskRepository) -> None:
        self._engine = engine
        self._tasks = tasks

    async def start(
        self,
        task_id: str,
        session_type: SessionType = SessionType.WORK,
    ) -> PomodoroSession:
        """为指定任务开始会话

        Raises:
            NotFoundError: 任务不存在
            ValidationError / RemoteCreateError: 见 PomodoroEngine.start
        """
        task = await self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return await self._engine.start(task, session_type)

    async def start_suggested_break(self, task_id: str) -> PomodoroSession:
        """按已完成工作会话数开始短休或长休"""
        return await self.start(task_id, self._engine.suggested_break())
