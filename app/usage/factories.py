from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.repositories import ModelRepository, ProviderRepository
from app.codes.repositories import AccessCodeRepository, InviteCodeRepository
from app.conversations.repositories import ConversationRepository, MessageRepository
from app.settings.factories import build_system_settings_service
from app.usage.dashboard import SystemDashboardService
from app.usage.repositories import TokenUsageRepository
from app.usage.services import UsageService
from app.users.factories import build_user_service
from app.users.repositories import UserRepository


async def build_usage_service(db: AsyncSession) -> UsageService:
    return UsageService(
        usage_repo=TokenUsageRepository(db=db),
        model_repo=ModelRepository(db=db),
        provider_repo=ProviderRepository(db=db),
        conversation_repo=ConversationRepository(db=db),
        message_repo=MessageRepository(db=db),
        user_service=await build_user_service(db),
        settings_service=await build_system_settings_service(db),
    )


async def build_system_dashboard_service(db: AsyncSession) -> SystemDashboardService:
    return SystemDashboardService(
        usage_repo=TokenUsageRepository(db=db),
        user_repo=UserRepository(db=db),
        invite_repo=InviteCodeRepository(db=db),
        access_repo=AccessCodeRepository(db=db),
        provider_repo=ProviderRepository(db=db),
        model_repo=ModelRepository(db=db),
    )
