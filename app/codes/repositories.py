from sqlalchemy import func, select, update

from app.codes.models import AccessCode, InviteCode
from app.commons.repositories import BaseRepository
from app.commons.utils import utcnow


class InviteCodeRepository(BaseRepository[InviteCode]):
    model = InviteCode

    async def get_by_code(self, code: str) -> InviteCode | None:
        result = await self.db.execute(select(self.model).filter_by(code=code))
        return result.scalars().first()

    async def list_by_creator(self, user_id: int) -> list[InviteCode]:
        result = await self.db.execute(
            select(self.model)
            .filter_by(created_by=user_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[InviteCode]:
        result = await self.db.execute(select(self.model).order_by(self.model.created_at.desc(), self.model.id.desc()))
        return list(result.scalars().all())

    async def count_by_creator(self, user_id: int) -> int:
        return len(await self.list_by_creator(user_id))

    async def count_totals(self) -> tuple[int, int]:
        """Returns (all invite codes, used invite codes)."""
        result = await self.db.execute(
            select(func.count(self.model.id), func.count(self.model.id).filter(self.model.is_used.is_(True)))
        )
        total, used = result.one()
        return total, used

    async def mark_used(self, invite_code: InviteCode, user_id: int) -> InviteCode:
        await self.db.execute(
            update(self.model)
            .where(self.model.id == invite_code.id)
            .values(
                current_uses=self.model.current_uses + 1,
                is_used=True,
                used_by=user_id,
                used_at=utcnow(),
            )
        )
        await self.db.flush()
        await self.db.refresh(invite_code)
        return invite_code


class AccessCodeRepository(BaseRepository[AccessCode]):
    model = AccessCode

    async def get_by_code(self, code: str) -> AccessCode | None:
        result = await self.db.execute(select(self.model).filter_by(code=code))
        return result.scalars().first()

    async def list_by_creator(self, user_id: int) -> list[AccessCode]:
        result = await self.db.execute(
            select(self.model)
            .filter_by(created_by=user_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[AccessCode]:
        result = await self.db.execute(select(self.model).order_by(self.model.created_at.desc(), self.model.id.desc()))
        return list(result.scalars().all())

    async def count_by_creator(self, user_id: int) -> int:
        return len(await self.list_by_creator(user_id))

    async def count_totals(self) -> tuple[int, int]:
        """Returns (all access codes, active access codes)."""
        result = await self.db.execute(
            select(func.count(self.model.id), func.count(self.model.id).filter(self.model.is_active.is_(True)))
        )
        total, active = result.one()
        return total, active

    async def increment_uses(self, access_code: AccessCode) -> AccessCode:
        await self.db.execute(
            update(self.model)
            .where(self.model.id == access_code.id)
            .values(current_uses=self.model.current_uses + 1)
        )
        await self.db.flush()
        await self.db.refresh(access_code)
        return access_code
