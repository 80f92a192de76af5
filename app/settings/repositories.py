from sqlalchemy import select

from app.commons.repositories import BaseRepository
from app.settings.models import SystemSetting


class SystemSettingRepository(BaseRepository[SystemSetting]):
    model = SystemSetting

    async def get_by_key(self, key: str) -> SystemSetting | None:
        result = await self.db.execute(select(self.model).filter_by(key=key))
        return result.scalars().first()

    async def list_all(self) -> list[SystemSetting]:
        result = await self.db.execute(select(self.model).order_by(self.model.key))
        return list(result.scalars().all())
