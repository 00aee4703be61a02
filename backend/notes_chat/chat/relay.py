"""Producer/consumer channel between the provider stream and the HTTP response.

A producer task pulls deltas from the provider and pushes them into a bounded
queue; the response body consumes them in order. Closing the relay (normal end,
failure or client disconnect) cancels the producer and closes the provider
connection.
"""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional

from notes_chat.chat.inference import CompletionStream

logger = logging.getLogger(__name__)

_END = object()


class _Failure:
    def __init__(self, exc: BaseException):
        self.exc = exc


class StreamRelay:
    def __init__(self, stream: CompletionStream, *, maxsize: int = 64):
        self._stream = stream
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._producer: Optional[asyncio.Task] = None
        self._closed = False

    async def _produce(self) -> None:
        try:
            async for chunk in self._stream.chunks():
                await self._queue.put(chunk)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            await self._queue.put(_Failure(exc))
            return
        await self._queue.put(_END)

    async def iter_chunks(self) -> AsyncIterator[str]:
        self._producer = asyncio.create_task(self._produce())
        try:
            while True:
                item = await self._queue.get()
                if item is _END:
                    return
                if isinstance(item, _Failure):
                    logger.error(f"Chat stream aborted: {item.exc}")
                    raise item.exc
                yield item
        finally:
            await self.close()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._producer is not None and not self._producer.done():
            self._producer.cancel()
            await asyncio.gather(self._producer, return_exceptions=True)
        await self._stream.aclose()
