from __future__ import annotations

from typing import AsyncIterator, Callable, Dict, List, Optional, Protocol, Union

import httpx

from notes_chat.errors import NetworkError, ProviderError


class ChatTransport(Protocol):
    def stream(
        self, messages: List[Dict[str, str]], system_context: Optional[str]
    ) -> AsyncIterator[str]:
        """Post the conversation and yield reply text as it arrives."""
        ...


class HttpChatTransport:
    """Talks to ``POST /api/chat`` and yields the streamed reply text."""

    def __init__(
        self,
        endpoint_url: str,
        token: Union[str, Callable[[], Optional[str]], None],
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint_url = endpoint_url
        self._token = token
        self._http_client = http_client

    def _headers(self) -> Dict[str, str]:
        token = self._token() if callable(self._token) else self._token
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def stream(
        self, messages: List[Dict[str, str]], system_context: Optional[str]
    ) -> AsyncIterator[str]:
        body: Dict[str, object] = {"messages": messages}
        if system_context is not None:
            body["systemContext"] = system_context

        client = self._http_client or httpx.AsyncClient(timeout=None)
        try:
            async with client.stream(
                "POST", self.endpoint_url, json=body, headers=self._headers()
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise ProviderError(
                        f"Chat endpoint returned {response.status_code}",
                        status_code=response.status_code,
                    )
                async for text in response.aiter_text():
                    if text:
                        yield text
        except httpx.HTTPError as exc:
            raise NetworkError(str(exc) or type(exc).__name__) from exc
        finally:
            if self._http_client is None:
                await client.aclose()
