"""Base async iterator that turns provider chunks into partial responses."""

from __future__ import annotations

import abc
import asyncio
from collections import deque
from typing import Any, AsyncIterator, Deque, Dict, List, Protocol

from ..response import GenerateContentResponse


class StreamNormalizer(Protocol):
    def normalize_chunk(self, chunk: Dict[str, Any]) -> List[GenerateContentResponse]:
        """Map one provider chunk to zero or more partial responses."""

    def finish(self) -> List[GenerateContentResponse]:
        """Return the responses owed once the provider stream is exhausted."""


class BaseStreamIterator(AsyncIterator[GenerateContentResponse], metaclass=abc.ABCMeta):
    """Shared async iterator driving provider-specific streaming adapters.

    Subclasses source raw provider chunks by implementing
    :meth:`_get_next_chunk`. Each chunk is handed to a :class:`StreamNormalizer`
    which owns all accumulation state for the stream and may produce several
    responses at once; they are buffered and handed out one at a time in the
    order produced. When the provider stream ends the normalizer is flushed a
    single time, then the iterator closes. Iteration is single-use.
    """

    def __init__(self, normalizer: StreamNormalizer) -> None:
        self._normalizer = normalizer
        self._buffer: Deque[GenerateContentResponse] = deque()
        self._closed = False
        self._exhausted = False
        self._close_lock = asyncio.Lock()

    def __aiter__(self) -> BaseStreamIterator:
        return self

    async def __anext__(self) -> GenerateContentResponse:
        while True:
            if self._buffer:
                return self._buffer.popleft()

            if self._closed:
                raise StopAsyncIteration

            if self._exhausted:
                await self.close()
                raise StopAsyncIteration

            try:
                chunk = await self._get_next_chunk()
                responses = self._normalizer.normalize_chunk(chunk)
            except StopAsyncIteration:
                self._exhausted = True
                self._buffer.extend(self._normalizer.finish())
                continue
            except BaseException:
                await self.close()
                raise

            self._buffer.extend(responses)

    async def close(self) -> None:
        """Release provider resources and prevent additional iteration."""

        async with self._close_lock:
            if self._closed:
                return

            self._closed = True
            self._buffer.clear()
            await self._on_close()

    async def aclose(self) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @abc.abstractmethod
    async def _get_next_chunk(self) -> Dict[str, Any]:
        """Retrieve the next raw chunk from the provider stream."""

    async def _on_close(self) -> None:
        """Allow subclasses to dispose provider resources when closing."""


async def replay_stream(iterator: BaseStreamIterator) -> List[GenerateContentResponse]:
    """Collect all responses emitted by a stream iterator."""

    responses: List[GenerateContentResponse] = []
    try:
        async for response in iterator:
            responses.append(response)
    finally:
        await iterator.close()
    return responses
