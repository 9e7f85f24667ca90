"""CLI 入口模块 -- python -m pomotask.core <command>

支持的命令（local 模式，数据库路径见 POMOTASK_DB_PATH）：
  init-db                      初始化本地数据库
  tasks                        列出未完成的任务
  run <task_id> [session_type] 在终端运行一个番茄钟，Ctrl+C 放弃
"""

import asyncio
import os
import sys

from .config import get_db_path, get_tick_interval_s
from .exceptions import NotFoundError, PomodoroError
from .identity import StaticIdentity
from .models import SessionType, TaskFilters, TaskStatusFilter, TimerSnapshot, TimerState

_USAGE = """用法: python -m pomotask.core <command>
命令:
  init-db                      初始化本地数据库
  tasks                        列出未完成的任务
  run <task_id> [session_type] 运行一个番茄钟（work / short_break / long_break）"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]
    try:
        if command == "init-db":
            asyncio.run(init_db())
        elif command == "tasks":
            asyncio.run(list_tasks())
        elif command == "run" and len(sys.argv) >= 3:
            try:
                session_type = SessionType(sys.argv[3]) if len(sys.argv) >= 4 else SessionType.WORK
            except ValueError:
                print(f"未知会话类型: {sys.argv[3]}")
                print(_USAGE)
                sys.exit(1)
            asyncio.run(run_timer(sys.argv[2], session_type))
        else:
            print(f"未知命令: {command}")
            print(_USAGE)
            sys.exit(1)
    except PomodoroError as e:
        print(f"错误: {e.message}")
        sys.exit(2)


def _identity() -> StaticIdentity:
    return StaticIdentity(os.environ.get("POMOTASK_LOCAL_USER_ID", "local-user"))


async def init_db() -> None:
    from .store import create_store_group

    db_path = get_db_path()
    store_group = await create_store_group(db_path, _identity())
    await store_group.close()
    print(f"数据库已初始化: {db_path}")


async def list_tasks() -> None:
    from .store import create_store_group

    store_group = await create_store_group(get_db_path(), _identity())
    try:
        tasks = await store_group.task_store.list(TaskFilters(status=TaskStatusFilter.PENDING))
        for task in tasks:
            print(
                f"{task.id}  [{task.priority}] {task.title}  "
                f"{task.completed_pomodoros}/{task.estimated_pomodoros}"
            )
        print(f"共 {len(tasks)} 个未完成任务")
    finally:
        await store_group.close()


async def run_timer(task_id: str, session_type: SessionType) -> None:
    """运行单个会话直到完成；Ctrl+C 时放弃会话"""
    from .preferences import PreferenceBinding
    from .store import create_store_group
    from .timer import AsyncioTickScheduler, PomodoroEngine

    store_group = await create_store_group(get_db_path(), _identity())
    engine = PomodoroEngine(
        store_group.session_store,
        store_group.task_store,
        scheduler=AsyncioTickScheduler(get_tick_interval_s()),
    )
    finished = asyncio.Event()

    def on_change(snapshot: TimerSnapshot) -> None:
        print(f"\r{snapshot.formatted_remaining}  {snapshot.progress:5.1f}%", end="", flush=True)
        if snapshot.state == TimerState.IDLE:
            finished.set()

    try:
        await PreferenceBinding(engine, store_group.profile_store).load()
        task = await store_group.task_store.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        await engine.start(task, session_type)
        engine.subscribe(on_change)
        try:
            await finished.wait()
        except asyncio.CancelledError:
            await engine.reset()
            raise
        print()
        if engine.last_error is not None:
            print(f"会话未能保存: {engine.last_error.message}")
        else:
            print("会话完成")
    finally:
        engine.stop()
        await engine.wait_finalized()
        await store_group.close()


if __name__ == "__main__":
    main()
