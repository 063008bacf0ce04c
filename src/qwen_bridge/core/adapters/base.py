"""Content generator interface shared by provider implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from typing import Any

from ..response import CountTokensResponse, GenerateContentResponse
from ..schema import CountTokensParameters, EmbedContentParameters, GenerateContentParameters


class ContentGenerator(ABC):
    """Abstract interface an agent drives to obtain model output."""

    @abstractmethod
    async def generate_content(
        self,
        request: GenerateContentParameters | Mapping[str, Any],
        /,
    ) -> GenerateContentResponse:
        """Return one complete response for the request."""

    @abstractmethod
    async def generate_content_stream(
        self,
        request: GenerateContentParameters | Mapping[str, Any],
        /,
    ) -> AsyncIterator[GenerateContentResponse]:
        """Start a streaming request and return an async iterator of partial responses."""

    @abstractmethod
    async def count_tokens(
        self,
        request: CountTokensParameters | Mapping[str, Any],
        /,
    ) -> CountTokensResponse:
        """Return an estimated token count for the request contents."""

    @abstractmethod
    async def embed_content(
        self,
        request: EmbedContentParameters | Mapping[str, Any],
        /,
    ) -> Any:
        """Return embeddings for the request contents."""
