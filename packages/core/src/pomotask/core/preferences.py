"""Preference Binding -- 用户偏好到计时器配置的单向绑定

加载 profile、偏好变更、显式保存三种时机都会把新的 TimerConfig 推给引擎。
引擎保证进行中的会话不受影响，新配置只在下一次 Start 生效。
"""

import structlog

from .exceptions import ValidationError
from .models import Preferences, TimerConfig
from .store.protocols import ProfileRepository
from .timer.engine import PomodoroEngine

log = structlog.get_logger()


class PreferenceBinding:
    """将 Preferences 绑定到 PomodoroEngine"""

    def __init__(
        self,
        engine: PomodoroEngine,
        profiles: ProfileRepository | None = None,
    ) -> None:
        self._engine = engine
        self._profiles = profiles
        self._preferences = Preferences()

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    def apply(self, prefs: Preferences) -> TimerConfig:
        """换算并推送配置（偏好变更时调用）"""
        config = TimerConfig.from_preferences(prefs)
        self._preferences = prefs
        self._engine.configure(config)
        log.info(
            "preferences_applied",
            pomodoro_duration=prefs.pomodoro_duration,
            short_break_duration=prefs.short_break_duration,
            long_break_duration=prefs.long_break_duration,
            long_break_interval=prefs.long_break_interval,
        )
        return config

    async def load(self) -> TimerConfig:
        """从 profile 存储加载偏好并推送"""
        prefs = await self._require_profiles().get_preferences()
        return self.apply(prefs)

    async def save(self, prefs: Preferences) -> TimerConfig:
        """保存偏好，以存储返回值为准推送"""
        saved = await self._require_profiles().save_preferences(prefs)
        return self.apply(saved)

    def _require_profiles(self) -> ProfileRepository:
        if self._profiles is None:
            raise ValidationError("未配置偏好存储")
        return self._profiles
