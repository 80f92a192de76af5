from typing import Any

from pydantic import BaseModel, Field

from app.commons.schemas import ApiSchema
from app.conversations.enums import MessageRole


class ChatMessage(ApiSchema):
    role: MessageRole
    content: str = Field(min_length=1, max_length=100000)


class ChatRequest(ApiSchema):
    messages: list[ChatMessage] = Field(min_length=1)
    model_id: int
    stream: bool = True
    temperature: float | None = Field(default=None, ge=0, le=2)
    max_tokens: int | None = Field(default=None, ge=1)
    top_p: float | None = Field(default=None, ge=0, le=1)
    frequency_penalty: float | None = Field(default=None, ge=-2, le=2)
    presence_penalty: float | None = Field(default=None, ge=-2, le=2)
    conversation_id: int | None = None

    @property
    def prompt_text(self) -> str:
        return "\n".join(message.content for message in self.messages)


class ChatPermissionCheck(ApiSchema):
    can_chat: bool
    can_save_to_database: bool
    allowed_models: list[int] = []
    error: str | None = None


class UpstreamRequest(BaseModel):
    """Everything needed to call the provider and to account for the call afterwards."""

    user_id: int
    can_save_to_database: bool
    conversation_id: int | None = None
    provider_id: int
    model_id: int
    model_key: str
    base_url: str
    api_key: str | None = None
    body: dict[str, Any]
    prompt_text: str
