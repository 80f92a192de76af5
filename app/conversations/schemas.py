from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.commons.schemas import ApiSchema
from app.conversations.enums import MessageRole


class ConversationCreate(ApiSchema):
    title: str = Field(default="New Chat", min_length=1, max_length=200)
    model_id: int | None = None
    provider_id: int | None = None


class ConversationUpdate(ApiSchema):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    model_id: int | None = None
    provider_id: int | None = None
    is_archived: bool | None = None
    is_pinned: bool | None = None


class ConversationRead(ApiSchema):
    id: int
    user_id: int
    title: str
    model_id: int | None = None
    provider_id: int | None = None
    is_archived: bool
    is_pinned: bool
    created_at: datetime
    updated_at: datetime


class MessageCreate(ApiSchema):
    role: MessageRole
    content: str = Field(min_length=1, max_length=100000)
    raw_content: str | None = None
    model_id: int | None = None
    provider_id: int | None = None
    finish_reason: str | None = None
    token_usage: dict[str, Any] | None = None


class MessageUpdate(ApiSchema):
    content: str = Field(min_length=1, max_length=100000)


class MessageRead(ApiSchema):
    id: int
    conversation_id: int
    user_id: int
    role: MessageRole
    content: str
    raw_content: str | None = None
    model_id: int | None = None
    provider_id: int | None = None
    finish_reason: str | None = None
    token_usage: dict[str, Any] | None = None
    is_edited: bool
    is_deleted: bool
    created_at: datetime


class ConversationWithMessages(ConversationRead):
    messages: list[MessageRead]


class MessageFilter(BaseModel):
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)
    include_deleted: bool = False
