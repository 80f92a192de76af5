from datetime import datetime
from decimal import Decimal

from sqlalchemy import Select, distinct, func, select

from app.commons.repositories import BaseRepository
from app.usage.models import TokenUsage
from app.users.models import User


class TokenUsageRepository(BaseRepository[TokenUsage]):
    model = TokenUsage

    def _in_range(self, stmt: Select, start: datetime | None, end: datetime | None) -> Select:
        if start is not None:
            stmt = stmt.where(self.model.created_at >= start)
        if end is not None:
            stmt = stmt.where(self.model.created_at <= end)
        return stmt

    def _sums(self):
        return (
            func.coalesce(func.sum(self.model.prompt_tokens), 0).label("prompt_tokens"),
            func.coalesce(func.sum(self.model.completion_tokens), 0).label("completion_tokens"),
            func.coalesce(func.sum(self.model.total_tokens), 0).label("total_tokens"),
            func.coalesce(func.sum(self.model.cost), 0).label("total_cost"),
            func.count(self.model.id).label("message_count"),
        )

    async def sum_cost_since(self, user_id: int, since: datetime | None) -> Decimal:
        stmt = select(func.coalesce(func.sum(self.model.cost), 0)).where(self.model.user_id == user_id)
        if since is not None:
            stmt = stmt.where(self.model.created_at >= since)
        result = await self.db.execute(stmt)
        return Decimal(str(result.scalar_one()))

    async def aggregate_for_user(self, user_id: int, start: datetime | None = None, end: datetime | None = None):
        stmt = self._in_range(select(*self._sums()).where(self.model.user_id == user_id), start, end)
        result = await self.db.execute(stmt)
        return result.one()

    async def count_conversations(self, user_id: int, start: datetime | None = None, end: datetime | None = None) -> int:
        stmt = select(func.count(distinct(self.model.conversation_id))).where(self.model.user_id == user_id)
        result = await self.db.execute(self._in_range(stmt, start, end))
        return result.scalar_one()

    async def list_for_user(
        self,
        user_id: int,
        limit: int = 50,
        offset: int = 0,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[TokenUsage]:
        stmt = self._in_range(select(self.model).where(self.model.user_id == user_id), start, end)
        stmt = stmt.order_by(self.model.created_at.desc(), self.model.id.desc()).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def leaderboard(self, start: datetime | None = None, end: datetime | None = None, limit: int = 10):
        total_tokens = func.coalesce(func.sum(self.model.total_tokens), 0)
        stmt = (
            select(
                User.id.label("user_id"),
                User.username,
                User.role,
                total_tokens.label("total_tokens"),
                func.coalesce(func.sum(self.model.cost), 0).label("total_cost"),
                func.count(self.model.id).label("message_count"),
            )
            .join(User, User.id == self.model.user_id)
            .group_by(User.id, User.username, User.role)
            .order_by(total_tokens.desc())
            .limit(limit)
        )
        result = await self.db.execute(self._in_range(stmt, start, end))
        return list(result.all())

    async def model_stats(self, start: datetime | None = None, end: datetime | None = None):
        stmt = (
            select(self.model.model_id, self.model.model_key, self.model.provider_id, *self._sums())
            .group_by(self.model.model_id, self.model.model_key, self.model.provider_id)
            .order_by(func.sum(self.model.total_tokens).desc())
        )
        result = await self.db.execute(self._in_range(stmt, start, end))
        return list(result.all())

    async def aggregate_all(self, start: datetime | None = None, end: datetime | None = None):
        result = await self.db.execute(self._in_range(select(*self._sums()), start, end))
        return result.one()
