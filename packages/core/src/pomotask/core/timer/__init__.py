"""番茄钟计时引擎"""

from .engine import PomodoroEngine
from .scheduler import AsyncioTickScheduler, TickScheduler

__all__ = ["AsyncioTickScheduler", "PomodoroEngine", "TickScheduler"]
