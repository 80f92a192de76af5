import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Any, AsyncIterator

from app.catalog.client import ProviderClient
from app.catalog.exceptions import ProviderRequestException
from app.catalog.services import CatalogService
from app.chat.exceptions import ChatPermissionDeniedException
from app.chat.schemas import ChatRequest, UpstreamRequest
from app.chat.services.permissions import ChatPermissionService
from app.chat.streaming import (
    DONE_FRAME,
    ParseError,
    StreamAccumulator,
    extract_message_content,
    format_event,
    format_token_usage,
    parse_sse_line,
    strip_sensitive_fields,
    usage_from_payload,
)
from app.conversations.exceptions import ConversationsException
from app.conversations.factories import build_conversation_service
from app.core.db import DatabaseSessionManager
from app.usage.estimation import estimate_usage
from app.usage.factories import build_usage_service
from app.usage.schemas import UsageCounts, UsageRecordCreate
from app.users.models import User

logger = logging.getLogger(__name__)

GENERATION_PARAMS = ("max_tokens", "temperature", "top_p", "frequency_penalty", "presence_penalty")

# strong references to accounting tasks still running after their stream was closed
_pending_persists: set[asyncio.Task] = set()


class ChatRelayService:
    """
    Relays chat requests to the model's OpenAI-compatible provider and accounts for them.

    Accounting runs in its own database session once the reply is complete, so a
    streamed response never depends on the request-scoped session.
    """

    def __init__(
        self,
        catalog_service: CatalogService,
        permission_service: ChatPermissionService,
        provider_client: ProviderClient,
        db: DatabaseSessionManager,
    ):
        self.catalog_service = catalog_service
        self.permission_service = permission_service
        self.provider_client = provider_client
        self.db = db

    async def prepare(self, user: User, chat_in: ChatRequest) -> UpstreamRequest:
        """
        Runs the permission gate and resolves the catalog entry. Raises before any
        upstream call is made when the model is missing, disabled or not allowed.
        """
        model = await self.catalog_service.get_model(chat_in.model_id)

        check = await self.permission_service.check(user.id, chat_in.model_id)
        if not check.can_chat:
            raise ChatPermissionDeniedException(check.error or "Chat is not allowed")

        model = await self.catalog_service.get_available_model(model.id)
        provider = model.provider
        return UpstreamRequest(
            user_id=user.id,
            can_save_to_database=check.can_save_to_database,
            conversation_id=chat_in.conversation_id,
            provider_id=provider.id,
            model_id=model.id,
            model_key=model.model_id,
            base_url=provider.base_url,
            api_key=self.catalog_service.get_provider_api_key(provider),
            body=self.build_upstream_body(model, chat_in),
            prompt_text=chat_in.prompt_text,
        )

    @staticmethod
    def build_upstream_body(model, chat_in: ChatRequest) -> dict[str, Any]:
        """Model defaults overridden by the request's generation parameters."""
        body: dict[str, Any] = {
            "model": model.model_id,
            "messages": [message.model_dump(mode="json") for message in chat_in.messages],
            "stream": chat_in.stream,
        }
        for param in GENERATION_PARAMS:
            value = getattr(chat_in, param)
            if value is None:
                value = getattr(model, param)
            if value is not None:
                body[param] = value
        return body

    async def complete(self, target: UpstreamRequest) -> dict[str, Any]:
        response = await self.provider_client.chat_completion(target.base_url, target.api_key, target.body)
        content, finish_reason = extract_message_content(response)
        usage = usage_from_payload(response.get("usage")) or estimate_usage(target.prompt_text, content)
        await self.persist(target, usage, content, finish_reason)
        return response

    async def open_stream(self, target: UpstreamRequest) -> AsyncIterator[str]:
        """
        Opens the upstream stream. Status and connection errors surface here, before
        any response headers are sent; the returned iterator yields SSE frames.
        """
        stack = AsyncExitStack()
        lines = await stack.enter_async_context(
            self.provider_client.stream_chat_completion(target.base_url, target.api_key, target.body)
        )
        return self._relay_stream(target, lines, stack)

    async def _relay_stream(
        self, target: UpstreamRequest, lines: AsyncIterator[str], stack: AsyncExitStack
    ) -> AsyncIterator[str]:
        """
        Yields the relayed frames. Accounting always runs once the stream ends: on
        completion, on an upstream failure, and when the client goes away before
        `[DONE]`. An interrupted reply is charged with estimated usage.
        """
        accumulator = StreamAccumulator()
        usage: UsageCounts | None = None
        try:
            async with stack:
                async for line in lines:
                    event = parse_sse_line(line)
                    if event is None:
                        continue
                    if isinstance(event, ParseError):
                        logger.warning(f"Dropping malformed upstream chunk: {event.reason} ({event.raw[:200]!r})")
                        continue
                    if event.done:
                        break
                    accumulator.add(event.payload)
                    yield format_event(strip_sensitive_fields(event.payload))

            yield DONE_FRAME

            usage = accumulator.usage
            if usage is None:
                usage = estimate_usage(target.prompt_text, accumulator.content)
                yield format_token_usage(usage)
        except ProviderRequestException as e:
            logger.error(f"Upstream stream for user {target.user_id} failed mid-response: {e}")
        finally:
            if usage is not None:
                await self._persist_detached(target, usage, accumulator.content, accumulator.finish_reason)
            elif accumulator.parts:
                logger.info(f"Stream for user {target.user_id} ended before completion; charging the partial reply")
                partial_usage = accumulator.usage or estimate_usage(target.prompt_text, accumulator.content)
                await self._persist_detached(target, partial_usage, accumulator.content, None)

    async def _persist_detached(
        self, target: UpstreamRequest, usage: UsageCounts, content: str, finish_reason: str | None
    ) -> None:
        # runs as its own task so a cancelled client connection cannot interrupt accounting
        task = asyncio.create_task(self.persist(target, usage, content, finish_reason))
        _pending_persists.add(task)
        task.add_done_callback(_pending_persists.discard)
        await asyncio.shield(task)

    async def persist(
        self, target: UpstreamRequest, usage: UsageCounts, content: str, finish_reason: str | None
    ) -> None:
        """Stores the reply and its usage. Failures are logged and never reach the client."""
        try:
            async with self.db.session() as session:
                usage_service = await build_usage_service(session)
                message_id = None

                if target.can_save_to_database and target.conversation_id and content:
                    user = await usage_service.user_service.get_user(target.user_id)
                    conversation_service = await build_conversation_service(session)
                    try:
                        message = await conversation_service.save_assistant_reply(
                            user,
                            target.conversation_id,
                            content,
                            model_id=target.model_id,
                            provider_id=target.provider_id,
                            finish_reason=finish_reason,
                            token_usage=usage.model_dump(),
                        )
                        message_id = message.id
                    except ConversationsException as e:
                        logger.warning(f"Could not store reply for user {target.user_id}: {e}")

                await usage_service.record_usage(
                    UsageRecordCreate(
                        user_id=target.user_id,
                        conversation_id=target.conversation_id if message_id else None,
                        message_id=message_id,
                        provider_id=target.provider_id,
                        model_id=target.model_id,
                        model_key=target.model_key,
                        prompt_tokens=usage.prompt_tokens,
                        completion_tokens=usage.completion_tokens,
                        is_estimated=usage.is_estimated,
                    )
                )
                await usage_service.user_service.set_last_used_model(target.user_id, target.model_id)
        except Exception as e:
            logger.error(f"Failed to persist usage for user {target.user_id}: {e}", exc_info=True)
