"""Qwen/DeepSeek adapter over the DashScope OpenAI-compatible chat API."""

from __future__ import annotations

import dataclasses
import inspect
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel

from ...config import BridgeSettings
from ...models import supports_reasoning
from ..content import Content, ContentRole, TextPart, extract_text_from_contents, normalize_contents
from ..errors import AdapterError, TransportError, UnsupportedOperationError
from ..response import (
    Candidate,
    CountTokensResponse,
    FinishReason,
    FunctionCall,
    GenerateContentResponse,
)
from ..schema import (
    CountTokensParameters,
    EmbedContentParameters,
    GenerateContentConfig,
    GenerateContentParameters,
)
from .base import ContentGenerator
from .stream import BaseStreamIterator, StreamNormalizer
from .toolbridge import parse_tool_arguments, tools_to_openai
from .utils import contents_to_openai, map_finish_reason, openai_to_response, usage_from_openai

LOGGER = logging.getLogger(__name__)

GENERATE_FAILED = "通义千问API调用失败 (Qwen API call failed)"
STREAM_FAILED = "通义千问流式API调用失败 (Qwen streaming API call failed)"
EMBEDDING_UNSUPPORTED = "通义千问暂不支持嵌入功能 (Qwen does not support embeddings)"

REASONING_HEADER = "[思考过程] "
ANSWER_SEPARATOR = "\n\n[完整回复]\n\n"

_RequestT = TypeVar("_RequestT", bound=BaseModel)


async def create_chat_completion(client: Any, payload: Mapping[str, Any]) -> Any:
    """Issue the chat completion call; sync and async clients are both accepted."""

    result = client.chat.completions.create(**payload)
    if inspect.isawaitable(result):
        result = await result
    return result


class QwenAdapter(ContentGenerator):
    """Drive a Qwen/DeepSeek chat endpoint with Contents-schema requests."""

    def __init__(
        self,
        client: Any | None = None,
        *,
        settings: BridgeSettings | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> None:
        resolved = settings or BridgeSettings()
        overrides: dict[str, Any] = {}
        if api_key is not None:
            overrides["api_key"] = api_key
        if base_url is not None:
            overrides["base_url"] = base_url
        if overrides:
            resolved = dataclasses.replace(resolved, **overrides)
        self._settings = resolved

        if client is None:
            client = AsyncOpenAI(api_key=resolved.api_key, base_url=resolved.base_url)
        self._client = client

    @property
    def settings(self) -> BridgeSettings:
        return self._settings

    async def generate_content(
        self,
        request: GenerateContentParameters | Mapping[str, Any],
        /,
    ) -> GenerateContentResponse:
        params = _coerce_request(request, GenerateContentParameters)
        payload = self._build_payload(params, stream=False)

        try:
            completion = await create_chat_completion(self._client, payload)
        except Exception as exc:
            msg = f"{GENERATE_FAILED}: {exc}"
            raise TransportError(msg) from exc

        return openai_to_response(completion)

    async def generate_content_stream(
        self,
        request: GenerateContentParameters | Mapping[str, Any],
        /,
    ) -> QwenStreamIterator:
        params = _coerce_request(request, GenerateContentParameters)
        payload = self._build_payload(params, stream=True)

        try:
            stream = await create_chat_completion(self._client, payload)
        except Exception as exc:
            msg = f"{STREAM_FAILED}: {exc}"
            raise TransportError(msg) from exc

        return QwenStreamIterator(stream, normalizer=QwenStreamNormalizer(model=payload["model"]))

    async def count_tokens(
        self,
        request: CountTokensParameters | Mapping[str, Any],
        /,
    ) -> CountTokensResponse:
        params = _coerce_request(request, CountTokensParameters)
        text = extract_text_from_contents(normalize_contents(params.contents))
        return CountTokensResponse(total_tokens=estimate_tokens(text))

    async def embed_content(
        self,
        request: EmbedContentParameters | Mapping[str, Any],
        /,
    ) -> Any:
        raise UnsupportedOperationError(EMBEDDING_UNSUPPORTED)

    def _build_payload(self, params: GenerateContentParameters, *, stream: bool) -> dict[str, Any]:
        model = params.model or self._settings.default_model
        config = params.config or GenerateContentConfig()

        contents = normalize_contents(params.contents)
        payload: dict[str, Any] = {
            "model": model,
            "messages": contents_to_openai(contents, model=model),
            "stream": stream,
        }
        if config.temperature is not None:
            payload["temperature"] = config.temperature
        if config.max_output_tokens is not None:
            payload["max_tokens"] = config.max_output_tokens
        if stream:
            payload["stream_options"] = {"include_usage": True}

        tools = tools_to_openai(config.tools)
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        LOGGER.debug(
            "chat completion request model=%s messages=%d tools=%d stream=%s",
            model,
            len(payload["messages"]),
            len(tools or ()),
            stream,
        )
        return payload


def estimate_tokens(text: str) -> int:
    """Rough estimate of four characters per token."""

    return math.ceil(len(text) / 4)


class QwenStreamIterator(BaseStreamIterator):
    """Stream iterator that converts chat completion chunks into partial responses."""

    def __init__(
        self,
        stream: Any,
        *,
        normalizer: StreamNormalizer,
    ) -> None:
        self._stream = stream
        self._iterator = self._coerce_async_iterator(stream)
        self._stream_closed = False
        super().__init__(normalizer)

    async def _get_next_chunk(self) -> dict[str, Any]:
        try:
            raw_chunk = await self._iterator.__anext__()
        except StopAsyncIteration:
            raise
        except Exception as exc:
            msg = f"{STREAM_FAILED}: {exc}"
            raise TransportError(msg) from exc

        return dict(_ensure_mapping(raw_chunk, path="chunk"))

    async def _on_close(self) -> None:
        if self._stream_closed:
            return
        self._stream_closed = True

        for closer_name in ("aclose", "close"):
            closer = getattr(self._stream, closer_name, None)
            if closer is None:
                continue
            result = closer()
            if inspect.isawaitable(result):
                await result
            return

    def _coerce_async_iterator(self, stream: Any) -> Any:
        iterator_factory = getattr(stream, "__aiter__", None)
        if iterator_factory is None or not callable(iterator_factory):
            msg = "chat completion stream must support async iteration"
            raise AdapterError(msg)

        iterator = iterator_factory()
        if not hasattr(iterator, "__anext__"):
            msg = "chat completion stream iterator must define '__anext__'"
            raise AdapterError(msg)
        return iterator


@dataclass
class PendingToolCall:
    """Tool call assembled from index-addressed stream deltas."""

    id: str | None = None
    type: str | None = None
    name: str | None = None
    arguments: str = ""

    def merge(self, delta: Mapping[str, Any]) -> None:
        if delta.get("id"):
            self.id = delta["id"]
        if delta.get("type"):
            self.type = delta["type"]

        function_payload = delta.get("function")
        if function_payload is None:
            return
        function_mapping = _ensure_mapping(function_payload, path="tool_calls[].function")
        if function_mapping.get("name"):
            self.name = function_mapping["name"]
        if function_mapping.get("arguments"):
            self.arguments += function_mapping["arguments"]

    @property
    def is_complete(self) -> bool:
        return self.type == "function" and bool(self.name)

    def to_function_call(self) -> FunctionCall:
        return FunctionCall(
            name=self.name or "",
            args=parse_tool_arguments(self.arguments),
            id=self.id,
        )


class QwenStreamNormalizer(StreamNormalizer):
    """Re-assemble chat completion chunks into partial Contents-schema responses.

    All state lives on the instance and is owned by a single stream: the
    answer and reasoning text seen so far, the pending tool calls by index,
    whether the answer phase has begun, and the most recent usage block.
    """

    def __init__(self, *, model: str) -> None:
        self._model = model
        self._reasoning_enabled = supports_reasoning(model)
        self._answer_fragments: list[str] = []
        self._reasoning_fragments: list[str] = []
        self._tool_calls: list[PendingToolCall] = []
        self._answering = False
        self._usage: Any | None = None

    @property
    def answer_text(self) -> str:
        return "".join(self._answer_fragments)

    @property
    def reasoning_text(self) -> str:
        return "".join(self._reasoning_fragments)

    def normalize_chunk(self, chunk: Mapping[str, Any]) -> list[GenerateContentResponse]:
        mapping = _ensure_mapping(chunk, path="chunk")
        responses: list[GenerateContentResponse] = []

        choice = self._extract_choice(mapping)
        if choice is not None:
            delta = self._extract_delta(choice)
            finish_reason = choice.get("finish_reason")
            index = choice.get("index") or 0

            reasoning = delta.get("reasoning_content")
            if reasoning and self._reasoning_enabled:
                if not self._reasoning_fragments:
                    responses.append(_text_response(REASONING_HEADER, index=index))
                self._reasoning_fragments.append(reasoning)
                responses.append(_text_response(reasoning, index=index))

            content = delta.get("content")
            if content:
                if self._reasoning_fragments and not self._answering:
                    responses.append(_text_response(ANSWER_SEPARATOR, index=index))
                    self._answering = True
                self._answer_fragments.append(content)
                responses.append(
                    _text_response(
                        content,
                        index=index,
                        finish_reason=map_finish_reason(finish_reason),
                    )
                )

            tool_call_deltas = delta.get("tool_calls")
            if tool_call_deltas:
                self._merge_tool_calls(tool_call_deltas)

            if finish_reason and self._tool_calls:
                finalized = self._finalize_tool_calls()
                if finalized:
                    responses.append(GenerateContentResponse(candidates=(), function_calls=finalized))

        usage = mapping.get("usage")
        if usage is not None:
            self._usage = usage

        return responses

    def finish(self) -> list[GenerateContentResponse]:
        if self._usage is None:
            return []
        return [GenerateContentResponse(candidates=(), usage_metadata=usage_from_openai(self._usage))]

    def _merge_tool_calls(self, payload: Any) -> None:
        if not isinstance(payload, Sequence) or isinstance(payload, (str, bytes, bytearray)):
            msg = "delta tool_calls payload must be a sequence"
            raise AdapterError(msg)

        for position, item in enumerate(payload):
            delta = _ensure_mapping(item, path=f"choices[0].delta.tool_calls[{position}]")
            index = delta.get("index")
            if not isinstance(index, int):
                continue
            while len(self._tool_calls) <= index:
                self._tool_calls.append(PendingToolCall())
            self._tool_calls[index].merge(delta)

    def _finalize_tool_calls(self) -> tuple[FunctionCall, ...]:
        finalized = tuple(call.to_function_call() for call in self._tool_calls if call.is_complete)
        for call in finalized:
            LOGGER.debug("finalized tool call id=%s name=%s", call.id, call.name)
        self._tool_calls = []
        return finalized

    def _extract_choice(self, chunk: Mapping[str, Any]) -> Mapping[str, Any] | None:
        choices = chunk.get("choices")
        if not choices:
            return None
        if not isinstance(choices, Sequence):
            msg = "stream chunk choices must be a sequence"
            raise AdapterError(msg)
        return _ensure_mapping(choices[0], path="choices[0]")

    def _extract_delta(self, choice: Mapping[str, Any]) -> Mapping[str, Any]:
        delta = choice.get("delta")
        if delta is None:
            return {}
        return _ensure_mapping(delta, path="choices[0].delta")


def _text_response(
    text: str,
    *,
    index: int,
    finish_reason: FinishReason | None = None,
) -> GenerateContentResponse:
    candidate = Candidate(
        content=Content(role=ContentRole.MODEL, parts=(TextPart(text=text),)),
        finish_reason=finish_reason,
        index=index,
    )
    return GenerateContentResponse(candidates=(candidate,))


def _coerce_request(request: Any, model_type: type[_RequestT]) -> _RequestT:
    if isinstance(request, model_type):
        return request
    if isinstance(request, Mapping):
        return model_type.model_validate(request)
    msg = f"request must be a {model_type.__name__} or a mapping"
    raise AdapterError(msg)


def _ensure_mapping(value: Any, *, path: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value

    if hasattr(value, "model_dump"):
        mapping = value.model_dump()
        if isinstance(mapping, Mapping):
            return mapping

    if hasattr(value, "__dict__"):
        return vars(value)

    msg = f"{path} must be a mapping"
    raise AdapterError(msg)
