from sqlalchemy import func, select

from app.catalog.models import Model, Provider
from app.commons.repositories import BaseRepository


class ProviderRepository(BaseRepository[Provider]):
    model = Provider

    async def get_by_name(self, name: str) -> Provider | None:
        result = await self.db.execute(select(self.model).filter_by(name=name))
        return result.scalars().first()

    async def list_ordered(self, enabled_only: bool = False) -> list[Provider]:
        stmt = select(self.model).order_by(self.model.order, self.model.id)
        if enabled_only:
            stmt = stmt.where(self.model.is_enabled.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_totals(self) -> tuple[int, int]:
        """Returns (all providers, enabled providers)."""
        result = await self.db.execute(
            select(func.count(self.model.id), func.count(self.model.id).filter(self.model.is_enabled.is_(True)))
        )
        total, enabled = result.one()
        return total, enabled


class ModelRepository(BaseRepository[Model]):
    model = Model

    async def get_by_provider_and_model_id(self, provider_id: int, model_id: str) -> Model | None:
        result = await self.db.execute(
            select(self.model).filter_by(provider_id=provider_id, model_id=model_id)
        )
        return result.scalars().first()

    async def list_ordered(self, provider_id: int | None = None) -> list[Model]:
        stmt = (
            select(self.model)
            .join(Provider, Provider.id == self.model.provider_id)
            .order_by(Provider.order, self.model.order, self.model.id)
        )
        if provider_id is not None:
            stmt = stmt.where(self.model.provider_id == provider_id)
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def list_enabled(self, ids: list[int] | None = None) -> list[Model]:
        """Enabled models whose provider is enabled too, optionally restricted to `ids`."""
        stmt = (
            select(self.model)
            .join(Provider, Provider.id == self.model.provider_id)
            .where(self.model.is_enabled.is_(True), Provider.is_enabled.is_(True))
            .order_by(Provider.order, self.model.order, self.model.id)
        )
        if ids is not None:
            stmt = stmt.where(self.model.id.in_(ids))
        result = await self.db.execute(stmt)
        return list(result.unique().scalars().all())

    async def list_model_ids_for_provider(self, provider_id: int) -> set[str]:
        result = await self.db.execute(
            select(self.model.model_id).where(self.model.provider_id == provider_id)
        )
        return set(result.scalars().all())

    async def count_totals(self) -> tuple[int, int]:
        """Returns (all models, enabled models)."""
        result = await self.db.execute(
            select(func.count(self.model.id), func.count(self.model.id).filter(self.model.is_enabled.is_(True)))
        )
        total, enabled = result.one()
        return total, enabled

    async def get_max_order(self, provider_id: int) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.max(self.model.order), -1)).where(self.model.provider_id == provider_id)
        )
        return result.scalar_one()
