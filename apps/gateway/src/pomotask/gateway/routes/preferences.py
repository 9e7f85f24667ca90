"""偏好设置路由

GET /api/preferences: 当前生效的偏好（分钟）与计时配置（秒）。
PUT /api/preferences: 保存偏好并推送给计时器，进行中的会话不受影响。
"""

from fastapi import APIRouter, Depends
from pomotask.core.exceptions import PomodoroError
from pomotask.core.models import Preferences, TimerConfig
from pydantic import BaseModel

from ..deps import get_binding, get_engine
from ..errors import domain_error_response

router = APIRouter()


class PreferencesResponse(BaseModel):
    preferences: Preferences
    timer_config: TimerConfig


@router.get("/api/preferences", response_model=PreferencesResponse)
async def get_preferences(binding=Depends(get_binding), engine=Depends(get_engine)):
    return PreferencesResponse(preferences=binding.preferences, timer_config=engine.config)


@router.put("/api/preferences", response_model=PreferencesResponse)
async def save_preferences(
    prefs: Preferences,
    binding=Depends(get_binding),
):
    try:
        config = await binding.save(prefs)
    except PomodoroError as e:
        return domain_error_response(e)
    return PreferencesResponse(preferences=binding.preferences, timer_config=config)
