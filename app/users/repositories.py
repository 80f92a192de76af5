from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import selectinload

from app.commons.repositories import BaseRepository
from app.users.enums import LimitType, UserRole
from app.users.models import User, UserPermission, UserSettings


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(self.model).filter_by(username=username))
        return result.scalars().first()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(self.model).where(func.lower(self.model.email) == email.lower())
        )
        return result.scalars().first()

    async def get_by_username_or_email(self, username: str, email: str | None) -> User | None:
        conditions = [self.model.username == username]
        if email:
            conditions.append(func.lower(self.model.email) == email.lower())
        result = await self.db.execute(select(self.model).where(or_(*conditions)).limit(1))
        return result.scalars().first()

    async def admin_exists(self) -> bool:
        result = await self.db.execute(
            select(self.model.id).where(self.model.role == UserRole.ADMIN).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_filtered(
        self,
        role: UserRole | None = None,
        is_active: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        filters = []
        if role is not None:
            filters.append(self.model.role == role)
        if is_active is not None:
            filters.append(self.model.is_active == is_active)

        total = await self.db.execute(select(func.count(self.model.id)).where(*filters))
        result = await self.db.execute(
            select(self.model)
            .where(*filters)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total.scalar_one()

    async def count_by_role_and_status(self) -> list[tuple[UserRole, bool, int]]:
        result = await self.db.execute(
            select(self.model.role, self.model.is_active, func.count(self.model.id)).group_by(
                self.model.role, self.model.is_active
            )
        )
        return [tuple(row) for row in result.all()]


class UserPermissionRepository(BaseRepository[UserPermission]):
    model = UserPermission

    async def get_by_user_id(self, user_id: int) -> UserPermission | None:
        result = await self.db.execute(select(self.model).filter_by(user_id=user_id))
        return result.scalars().first()

    async def increment_token_used(self, user_id: int, tokens: int) -> None:
        await self.db.execute(
            update(self.model)
            .where(self.model.user_id == user_id)
            .values(token_used=self.model.token_used + tokens)
        )
        await self.db.flush()

    async def list_with_limits(self) -> list[UserPermission]:
        result = await self.db.execute(
            select(self.model)
            .options(selectinload(self.model.user))
            .where(or_(self.model.limit_type != LimitType.NONE, self.model.token_limit.isnot(None)))
            .order_by(self.model.updated_at.desc())
        )
        return list(result.scalars().all())


class UserSettingsRepository(BaseRepository[UserSettings]):
    model = UserSettings

    async def get_by_user_id(self, user_id: int) -> UserSettings | None:
        result = await self.db.execute(select(self.model).filter_by(user_id=user_id))
        return result.scalars().first()
