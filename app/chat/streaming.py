"""
Parsing and re-emission of OpenAI-compatible server-sent event streams.
"""

import json
from typing import Any

from pydantic import BaseModel

from app.usage.schemas import UsageCounts

DONE_SENTINEL = "[DONE]"
DONE_FRAME = f"data: {DONE_SENTINEL}\n\n"
TOKEN_USAGE_PREFIX = "[TOKEN_USAGE]"

SENSITIVE_FIELDS = frozenset({"user", "provider", "system_fingerprint", "x_groq", "provider_id", "user_id"})


class ParsedEvent(BaseModel):
    payload: dict[str, Any] = {}
    done: bool = False


class ParseError(BaseModel):
    raw: str
    reason: str


def parse_sse_line(line: str) -> ParsedEvent | ParseError | None:
    """
    Parses one upstream line. Returns None for lines that carry no data
    (blank keep-alives, comments, `event:` fields).
    """
    line = line.strip()
    if not line.startswith("data:"):
        return None

    data = line[len("data:"):].strip()
    if data == DONE_SENTINEL:
        return ParsedEvent(done=True)

    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        return ParseError(raw=data, reason=str(e))

    if not isinstance(payload, dict):
        return ParseError(raw=data, reason="event payload is not a JSON object")
    return ParsedEvent(payload=payload)


def strip_sensitive_fields(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if key not in SENSITIVE_FIELDS}


def format_event(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def format_token_usage(usage: UsageCounts) -> str:
    return f"{TOKEN_USAGE_PREFIX}{usage.model_dump_json()}\n\n"


def _token_count(value: Any) -> int | None:
    if value is None:
        return 0
    if isinstance(value, bool):
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        return None
    return count if count >= 0 else None


def usage_from_payload(usage: Any) -> UsageCounts | None:
    """
    Reads an upstream `usage` object; the total is always recomputed. A lone
    `total_tokens` counts as completion tokens. Counts that are not non-negative
    integers make the object unusable and None is returned.
    """
    if not isinstance(usage, dict):
        return None
    prompt_tokens = _token_count(usage.get("prompt_tokens"))
    completion_tokens = _token_count(usage.get("completion_tokens"))
    total_tokens = _token_count(usage.get("total_tokens"))
    if prompt_tokens is None or completion_tokens is None or total_tokens is None:
        return None
    if not prompt_tokens and not completion_tokens:
        completion_tokens = total_tokens
    return UsageCounts(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
    )


def _choices(payload: dict[str, Any]) -> list[dict[str, Any]]:
    choices = payload.get("choices")
    if not isinstance(choices, list):
        return []
    return [choice for choice in choices if isinstance(choice, dict)]


def extract_message_content(response: dict[str, Any]) -> tuple[str, str | None]:
    """Returns `choices[0].message.content` and its finish reason from a non-stream completion."""
    choices = _choices(response)
    if not choices:
        return "", None
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    finish_reason = choices[0].get("finish_reason")
    return content if isinstance(content, str) else "", finish_reason if isinstance(finish_reason, str) else None


class StreamAccumulator:
    """
    Collects the assistant reply while a stream is relayed.
    A chunk carrying `usage` is authoritative and replaces any earlier one.
    """

    def __init__(self):
        self.parts: list[str] = []
        self.usage: UsageCounts | None = None
        self.finish_reason: str | None = None

    def add(self, payload: dict[str, Any]) -> None:
        for choice in _choices(payload):
            delta = choice.get("delta")
            if isinstance(delta, dict) and isinstance(delta.get("content"), str):
                self.parts.append(delta["content"])
            if isinstance(choice.get("finish_reason"), str):
                self.finish_reason = choice["finish_reason"]

        usage = usage_from_payload(payload.get("usage"))
        if usage is not None:
            self.usage = usage

    @property
    def content(self) -> str:
        return "".join(self.parts)
