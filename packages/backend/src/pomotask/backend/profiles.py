"""RemoteProfileRepository -- 托管后端 profiles 表（偏好设置列）"""

from pomotask.core.models import Preferences
from pomotask.core.store.protocols import Identity

from .client import RestClient, eq

PROFILES_TABLE = "profiles"

_PREFERENCE_COLUMNS = ",".join(Preferences.model_fields)


class RemoteProfileRepository:
    """ProfileRepository 的托管后端实现

    profiles 行由后端在注册时创建，主键与用户 ID 相同。
    """

    def __init__(self, client: RestClient, identity: Identity) -> None:
        self._client = client
        self._identity = identity

    async def get_preferences(self) -> Preferences:
        user_id = self._identity.require_user_id()
        rows = await self._client.select(
            PROFILES_TABLE,
            {"select": _PREFERENCE_COLUMNS, "id": eq(user_id)},
        )
        if not rows:
            return Preferences()
        # 未设置的列为 null，回落到默认值
        values = {k: v for k, v in rows[0].items() if v is not None}
        return Preferences.model_validate(values)

    async def save_preferences(self, prefs: Preferences) -> Preferences:
        user_id = self._identity.require_user_id()
        rows = await self._client.upsert(
            PROFILES_TABLE,
            {"id": user_id, **prefs.model_dump()},
            on_conflict="id",
        )
        if not rows:
            return prefs
        values = {
            k: v for k, v in rows[0].items() if k in Preferences.model_fields and v is not None
        }
        return Preferences.model_validate(values)
