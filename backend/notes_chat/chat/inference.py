"""Streaming client for an OpenAI-compatible chat-completions API."""
from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from notes_chat.config import AppConfig
from notes_chat.errors import ProviderError

logger = logging.getLogger(__name__)


class CompletionStream:
    """An open streamed completion; yields text deltas until ``[DONE]``."""

    def __init__(self, response: httpx.Response, owned_client: Optional[httpx.AsyncClient] = None):
        self._response = response
        self._owned_client = owned_client
        self._closed = False

    async def chunks(self) -> AsyncIterator[str]:
        try:
            async for line in self._response.aiter_lines():
                if not line.startswith("data:"):
                    continue

                data_str = line[5:].strip()
                if data_str == "[DONE]":
                    break

                try:
                    data = json.loads(data_str)
                except json.JSONDecodeError:
                    continue

                if "error" in data:
                    raise ProviderError(f"Provider stream error: {data['error']}")

                choices = data.get("choices") or []
                if not choices:
                    continue
                content = (choices[0].get("delta") or {}).get("content")
                if content:
                    yield content
        except httpx.HTTPError as exc:
            raise ProviderError(f"Provider stream failed: {exc}") from exc

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()
        if self._owned_client is not None:
            await self._owned_client.aclose()


class InferenceClient:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str,
        *,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def from_config(cls, config: AppConfig) -> "InferenceClient":
        return cls(
            api_key=config.inference_api_key,
            base_url=config.inference_base_url,
            model=config.chat_model,
            timeout=config.inference_timeout_seconds,
        )

    def _payload(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {"model": self.model, "messages": messages, "stream": True}

    async def open_stream(self, messages: List[Dict[str, Any]]) -> CompletionStream:
        """Send the conversation and wait for the provider's response headers.

        A non-2xx status is raised here as :class:`ProviderError`, before any
        text has been relayed.
        """
        if not self.api_key:
            raise ProviderError("Inference API key is not configured")

        owned = self._http_client is None
        client = self._http_client or httpx.AsyncClient(timeout=self.timeout)
        request = client.build_request(
            "POST",
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json=self._payload(messages),
        )

        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            if owned:
                await client.aclose()
            logger.error(f"Inference API unreachable: {exc}")
            raise ProviderError(f"Inference API unreachable: {exc}") from exc

        if response.status_code >= 400:
            body = await response.aread()
            await response.aclose()
            if owned:
                await client.aclose()
            logger.error(
                f"Inference API error: {response.status_code} - {body[:500].decode('utf-8', 'replace')}"
            )
            raise ProviderError("Inference API error", status_code=response.status_code)

        return CompletionStream(response, client if owned else None)
