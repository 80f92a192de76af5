from datetime import datetime, time

from app.catalog.repositories import ModelRepository, ProviderRepository
from app.codes.repositories import AccessCodeRepository, InviteCodeRepository
from app.commons.utils import utcnow
from app.usage.repositories import TokenUsageRepository
from app.usage.schemas import (
    CatalogUsageStats,
    CodeUsageStats,
    SystemDashboard,
    SystemStats,
    SystemTokenStats,
    UserCountStats,
)
from app.users.enums import UserRole
from app.users.repositories import UserRepository


class SystemDashboardService:
    """System-wide counters for the admin dashboard."""

    def __init__(
        self,
        usage_repo: TokenUsageRepository,
        user_repo: UserRepository,
        invite_repo: InviteCodeRepository,
        access_repo: AccessCodeRepository,
        provider_repo: ProviderRepository,
        model_repo: ModelRepository,
    ):
        self.usage_repo = usage_repo
        self.user_repo = user_repo
        self.invite_repo = invite_repo
        self.access_repo = access_repo
        self.provider_repo = provider_repo
        self.model_repo = model_repo

    async def get_dashboard(self) -> SystemDashboard:
        stats = await self.get_system_stats()
        return SystemDashboard(
            total_users=stats.user_count.total,
            active_users=stats.user_count.active,
            total_tokens=stats.token_usage.total_tokens,
            total_cost=stats.token_usage.total_cost,
            today_tokens=stats.token_usage.today_tokens,
            today_cost=stats.token_usage.today_cost,
            detailed=stats,
        )

    async def get_system_stats(self) -> SystemStats:
        return SystemStats(
            user_count=await self._user_counts(),
            token_usage=await self._token_usage(),
            code_usage=await self._code_usage(),
            model_usage=await self._catalog_usage(),
        )

    async def _user_counts(self) -> UserCountStats:
        counts = UserCountStats()
        for role, is_active, count in await self.user_repo.count_by_role_and_status():
            counts.total += count
            if role == UserRole.ADMIN:
                counts.admin += count
            elif role == UserRole.USER:
                counts.user += count
            elif role == UserRole.GUEST:
                counts.guest += count
            if is_active:
                counts.active += count
            else:
                counts.inactive += count
        return counts

    async def _token_usage(self) -> SystemTokenStats:
        totals = await self.usage_repo.aggregate_all()
        today = await self.usage_repo.aggregate_all(start=datetime.combine(utcnow().date(), time.min))
        return SystemTokenStats(
            total_tokens=totals.total_tokens,
            total_cost=totals.total_cost,
            today_tokens=today.total_tokens,
            today_cost=today.total_cost,
        )

    async def _code_usage(self) -> CodeUsageStats:
        total_invites, used_invites = await self.invite_repo.count_totals()
        total_access, active_access = await self.access_repo.count_totals()
        return CodeUsageStats(
            total_invite_codes=total_invites,
            used_invite_codes=used_invites,
            total_access_codes=total_access,
            active_access_codes=active_access,
        )

    async def _catalog_usage(self) -> CatalogUsageStats:
        total_models, active_models = await self.model_repo.count_totals()
        total_providers, active_providers = await self.provider_repo.count_totals()
        return CatalogUsageStats(
            total_models=total_models,
            active_models=active_models,
            total_providers=total_providers,
            active_providers=active_providers,
        )
