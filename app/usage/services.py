import logging
from datetime import datetime, time
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from app.catalog.repositories import ModelRepository, ProviderRepository
from app.commons.utils import utcnow
from app.conversations.repositories import ConversationRepository, MessageRepository
from app.settings.enums import SystemSettingKey
from app.settings.services import SystemSettingsService
from app.usage.estimation import estimate_usage
from app.usage.exceptions import UsageReferenceNotFoundException, UsageTrackingException
from app.usage.models import TokenUsage
from app.usage.pricing import calculate_cost
from app.usage.repositories import TokenUsageRepository
from app.usage.schemas import (
    LeaderboardEntry,
    ModelUsageStats,
    UsageCounts,
    UsageFilter,
    UsageRecordCreate,
    UsageStats,
    UserLimitStatus,
)
from app.users.enums import UserRole
from app.users.exceptions import UserException, UserNotFoundException
from app.users.services import UserService

logger = logging.getLogger(__name__)


class UsageService:
    def __init__(
        self,
        usage_repo: TokenUsageRepository,
        model_repo: ModelRepository,
        provider_repo: ProviderRepository,
        conversation_repo: ConversationRepository,
        message_repo: MessageRepository,
        user_service: UserService,
        settings_service: SystemSettingsService,
    ):
        self.usage_repo = usage_repo
        self.model_repo = model_repo
        self.provider_repo = provider_repo
        self.conversation_repo = conversation_repo
        self.message_repo = message_repo
        self.user_service = user_service
        self.settings_service = settings_service

    async def record_usage(self, record_in: UsageRecordCreate) -> TokenUsage | None:
        """
        Stores one accounting operation: a row for the acting user and, for a guest
        with a host, an identical mirrored row for the host. Both users' running
        counters are incremented after a lazy period reset.

        The mirror runs inside a savepoint; if it fails it is rolled back and logged
        while the guest's own row is kept.

        Returns None when token tracking is disabled system-wide. Raises
        UsageReferenceNotFoundException when a referenced row is missing or the
        conversation belongs to someone else.
        """
        if not await self.settings_service.get_bool(SystemSettingKey.ENABLE_TOKEN_TRACKING, True):
            logger.info(f"Token tracking disabled; skipping usage for user {record_in.user_id}")
            return None

        try:
            user = await self.user_service.get_user(record_in.user_id)
        except UserNotFoundException as e:
            raise UsageTrackingException(str(e)) from e

        model = await self._resolve_references(user.id, record_in)
        counts = self.resolve_counts(record_in)
        model_key = record_in.model_key or (model.model_id if model else None)
        cost = calculate_cost(model, model_key, counts.prompt_tokens, counts.completion_tokens)

        row = {
            "conversation_id": record_in.conversation_id,
            "message_id": record_in.message_id,
            "provider_id": record_in.provider_id or (model.provider_id if model else None),
            "model_id": model.id if model else None,
            "model_key": model_key,
            "prompt_tokens": counts.prompt_tokens,
            "completion_tokens": counts.completion_tokens,
            "total_tokens": counts.total_tokens,
            "is_estimated": counts.is_estimated,
            "input_chars": len(record_in.input_text) if record_in.input_text else None,
            "output_chars": len(record_in.output_text) if record_in.output_text else None,
            "cost": cost,
        }

        usage = await self.usage_repo.create({**row, "user_id": user.id})
        await self._charge(user.id, counts.total_tokens)

        if user.role == UserRole.GUEST and user.host_user_id:
            try:
                async with self.usage_repo.db.begin_nested():
                    await self.usage_repo.create({**row, "user_id": user.host_user_id})
                    await self._charge(user.host_user_id, counts.total_tokens)
            except (SQLAlchemyError, UserException) as e:
                logger.error(
                    f"Failed to mirror usage of guest {user.id} to host {user.host_user_id}: {e}", exc_info=True
                )

        logger.debug(
            f"Usage recorded [user={user.id}, model={model_key}]: "
            f"in={counts.prompt_tokens} out={counts.completion_tokens} cost=${cost:.6f}"
            f"{' (estimated)' if counts.is_estimated else ''}"
        )
        return usage

    async def _resolve_references(self, user_id: int, record_in: UsageRecordCreate):
        model = None
        if record_in.model_id is not None:
            model = await self.model_repo.get(record_in.model_id)
            if model is None:
                raise UsageReferenceNotFoundException(f"Model with id {record_in.model_id} not found.")
        if record_in.provider_id is not None and await self.provider_repo.get(record_in.provider_id) is None:
            raise UsageReferenceNotFoundException(f"Provider with id {record_in.provider_id} not found.")
        if record_in.conversation_id is not None:
            if await self.conversation_repo.get_for_user(record_in.conversation_id, user_id) is None:
                raise UsageReferenceNotFoundException(f"Conversation with id {record_in.conversation_id} not found.")
        if record_in.message_id is not None:
            message = await self.message_repo.get(record_in.message_id)
            if message is None or message.conversation_id != record_in.conversation_id:
                raise UsageReferenceNotFoundException(f"Message with id {record_in.message_id} not found.")
        return model

    @staticmethod
    def resolve_counts(record_in: UsageRecordCreate) -> UsageCounts:
        """Explicit counts win; otherwise both sides are estimated from the texts."""
        if record_in.prompt_tokens is None and record_in.completion_tokens is None:
            if record_in.total_tokens is not None and not (record_in.input_text or record_in.output_text):
                return UsageCounts(
                    completion_tokens=record_in.total_tokens,
                    total_tokens=record_in.total_tokens,
                    is_estimated=record_in.is_estimated,
                )
            return estimate_usage(record_in.input_text, record_in.output_text)

        prompt_tokens = record_in.prompt_tokens or 0
        completion_tokens = record_in.completion_tokens or 0
        return UsageCounts(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            is_estimated=record_in.is_estimated,
        )

    async def _charge(self, user_id: int, tokens: int) -> None:
        permission = await self.user_service.permission_repo.get_by_user_id(user_id)
        if permission is None:
            return
        await self.user_service.reset_usage_if_period_elapsed(permission)
        await self.user_service.permission_repo.increment_token_used(user_id, tokens)

    async def get_cost_since(self, user_id: int, since: datetime | None) -> Decimal:
        return await self.usage_repo.sum_cost_since(user_id, since)

    # reporting

    async def get_user_stats(
        self, user_id: int, start: datetime | None = None, end: datetime | None = None
    ) -> UsageStats:
        totals = await self.usage_repo.aggregate_for_user(user_id, start, end)
        today_start = datetime.combine(utcnow().date(), time.min)
        today = await self.usage_repo.aggregate_for_user(user_id, today_start)
        return UsageStats(
            prompt_tokens=totals.prompt_tokens,
            completion_tokens=totals.completion_tokens,
            total_tokens=totals.total_tokens,
            total_cost=totals.total_cost,
            message_count=totals.message_count,
            conversation_count=await self.usage_repo.count_conversations(user_id, start, end),
            today_tokens=today.total_tokens,
            today_cost=today.total_cost,
        )

    async def get_user_history(self, user_id: int, filters: UsageFilter) -> list[TokenUsage]:
        return await self.usage_repo.list_for_user(
            user_id,
            limit=filters.limit,
            offset=filters.offset,
            start=filters.start_date,
            end=filters.end_date,
        )

    async def get_leaderboard(
        self, start: datetime | None = None, end: datetime | None = None, limit: int = 10
    ) -> list[LeaderboardEntry]:
        rows = await self.usage_repo.leaderboard(start, end, limit)
        return [LeaderboardEntry.model_validate(dict(row._mapping)) for row in rows]

    async def get_model_stats(self, start: datetime | None = None, end: datetime | None = None) -> list[ModelUsageStats]:
        rows = await self.usage_repo.model_stats(start, end)
        return [ModelUsageStats.model_validate(dict(row._mapping)) for row in rows]

    async def get_user_limit_statuses(self) -> list[UserLimitStatus]:
        statuses = []
        for permission in await self.user_service.list_limited_users():
            statuses.append(
                UserLimitStatus(
                    user_id=permission.user_id,
                    username=permission.user.username,
                    role=permission.user.role,
                    limit_type=permission.limit_type,
                    limit_period=permission.limit_period,
                    token_limit=permission.token_limit,
                    token_used=permission.token_used,
                    cost_limit=permission.cost_limit,
                    cost_used=await self.usage_repo.sum_cost_since(permission.user_id, permission.last_reset_at),
                    last_reset_at=permission.last_reset_at,
                )
            )
        return statuses
