"""Site settings key/value store."""
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Setting


class SettingsService:
    """Read and upsert site settings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str) -> Optional[Setting]:
        return await self.db.scalar(select(Setting).where(Setting.key == key))

    async def all(self) -> Dict[str, str]:
        result = await self.db.execute(select(Setting).order_by(Setting.key))
        return {setting.key: setting.value for setting in result.scalars()}

    async def set(self, key: str, value: str, type: str = "string") -> Setting:
        setting = await self.db.scalar(select(Setting).where(Setting.key == key))
        if setting is None:
            setting = Setting(key=key, value=value, type=type)
            self.db.add(setting)
        else:
            setting.value = value
            setting.type = type

        await self.db.commit()
        return setting
