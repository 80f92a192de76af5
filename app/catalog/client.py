import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from app.catalog.exceptions import (
    ProviderRequestException,
    UpstreamStatusException,
    UpstreamTimeoutException,
)
from app.core.config import settings

logger = logging.getLogger(__name__)


class ProviderClient:
    """
    Thin client for OpenAI-compatible provider APIs (`/models` and `/chat/completions`).
    """

    def __init__(self, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _headers(api_key: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def list_models(self, base_url: str, api_key: str | None) -> list[str]:
        url = f"{base_url.rstrip('/')}/models"
        try:
            async with self._client() as client:
                resp = await client.get(url, headers=self._headers(api_key))
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutException(f"Timed out fetching models from {url}") from e
        except httpx.HTTPError as e:
            raise ProviderRequestException(f"Failed to fetch models from {url}: {e}") from e

        if resp.status_code >= 400:
            raise UpstreamStatusException(
                f"Provider answered {resp.status_code} when listing models",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise ProviderRequestException(f"Provider returned invalid JSON from {url}") from e

        return [item["id"] for item in payload.get("data", []) if isinstance(item, dict) and item.get("id")]

    async def chat_completion(self, base_url: str, api_key: str | None, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{base_url.rstrip('/')}/chat/completions"
        try:
            async with self._client() as client:
                resp = await client.post(url, headers=self._headers(api_key), json=body)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutException("Upstream request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderRequestException(f"Upstream request failed: {e}") from e

        if resp.status_code >= 400:
            logger.warning(f"Upstream error {resp.status_code}: {resp.text[:500]}")
            raise UpstreamStatusException(
                "Upstream request failed", status_code=resp.status_code, body=resp.text
            )

        try:
            return resp.json()
        except ValueError as e:
            raise ProviderRequestException("Upstream returned invalid JSON") from e

    @asynccontextmanager
    async def stream_chat_completion(
        self, base_url: str, api_key: str | None, body: dict[str, Any]
    ) -> AsyncIterator[AsyncIterator[str]]:
        """
        Opens a streaming completion and yields an iterator over its raw lines.
        Status errors are raised before anything is yielded.
        """
        url = f"{base_url.rstrip('/')}/chat/completions"
        try:
            async with self._client() as client:
                async with client.stream("POST", url, headers=self._headers(api_key), json=body) as resp:
                    if resp.status_code >= 400:
                        raw = await resp.aread()
                        text = raw.decode("utf-8", errors="replace")
                        logger.warning(f"Upstream stream error {resp.status_code}: {text[:500]}")
                        raise UpstreamStatusException(
                            "Upstream request failed", status_code=resp.status_code, body=text
                        )
                    yield resp.aiter_lines()
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutException("Upstream request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderRequestException(f"Upstream request failed: {e}") from e
