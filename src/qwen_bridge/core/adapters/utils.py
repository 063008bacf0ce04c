"""Pure conversion helpers between the Contents schema and chat completions."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ...models import supports_vision
from ..content import (
    Content,
    ContentRole,
    FileDataPart,
    FunctionCallPart,
    InlineDataPart,
    Part,
    TextPart,
    extract_text,
)
from ..errors import AdapterError
from ..response import (
    Candidate,
    FinishReason,
    GenerateContentResponse,
    UsageMetadata,
)
from .toolbridge import function_call_to_openai, normalize_tool_calls, synthesize_call_id

_FINISH_REASONS = {
    "stop": FinishReason.STOP,
    "length": FinishReason.MAX_TOKENS,
    "content_filter": FinishReason.SAFETY,
}


def contents_to_openai(contents: Sequence[Content], *, model: str) -> list[dict[str, Any]]:
    """Convert turns into chat messages for ``model``."""

    vision = supports_vision(model)
    converted: list[dict[str, Any]] = []

    for content in contents:
        if content.role is ContentRole.MODEL:
            converted.append(_model_turn_to_openai(content))
        elif content.role is ContentRole.FUNCTION:
            converted.append(_function_turn_to_openai(content))
        elif content.role is ContentRole.SYSTEM:
            converted.append({"role": "system", "content": extract_text(content.parts)})
        elif vision and content.has_media:
            converted.append({"role": "user", "content": parts_to_openai_content(content.parts)})
        else:
            converted.append({"role": "user", "content": extract_text(content.parts)})

    return converted


def parts_to_openai_content(parts: Sequence[Part]) -> list[dict[str, Any]]:
    """Build multimodal content blocks; unsupported media types are dropped."""

    blocks: list[dict[str, Any]] = []
    for part in parts:
        if isinstance(part, TextPart):
            if part.text:
                blocks.append({"type": "text", "text": part.text})
        elif isinstance(part, InlineDataPart):
            block = _media_block(part.mime_type, f"data:{part.mime_type};base64,{part.data}")
            if block is not None:
                blocks.append(block)
        elif isinstance(part, FileDataPart):
            block = _media_block(part.mime_type, part.file_uri)
            if block is not None:
                blocks.append(block)

    return blocks or [{"type": "text", "text": ""}]


def openai_to_response(completion: Any) -> GenerateContentResponse:
    """Convert a non-streaming chat completion into a single-candidate response."""

    mapping = coerce_mapping(completion, path="completion")

    choices = mapping.get("choices")
    if not isinstance(choices, Sequence) or not choices:
        msg = "completion is missing choices"
        raise AdapterError(msg)
    choice = coerce_mapping(choices[0], path="choices[0]")
    message = coerce_mapping(choice.get("message") or {}, path="choices[0].message")

    function_calls = normalize_tool_calls(message.get("tool_calls"))

    parts: list[Part] = []
    text = message.get("content")
    if text:
        parts.append(TextPart(text=text))
    parts.extend(
        FunctionCallPart(name=call.name, args=dict(call.args), id=call.id) for call in function_calls
    )

    candidate = Candidate(
        content=Content(role=ContentRole.MODEL, parts=tuple(parts)),
        finish_reason=map_finish_reason(choice.get("finish_reason")),
        index=choice.get("index") or 0,
    )

    return GenerateContentResponse(
        candidates=(candidate,),
        usage_metadata=usage_from_openai(mapping.get("usage")),
        function_calls=function_calls or None,
    )


def map_finish_reason(reason: str | None) -> FinishReason | None:
    if reason is None:
        return None
    return _FINISH_REASONS.get(reason, FinishReason.OTHER)


def usage_from_openai(usage: Any) -> UsageMetadata:
    """Translate a chat ``usage`` block, defaulting missing counts to zero."""

    if usage is None:
        return UsageMetadata()
    mapping = coerce_mapping(usage, path="usage")
    return UsageMetadata(
        prompt_token_count=mapping.get("prompt_tokens") or 0,
        candidates_token_count=mapping.get("completion_tokens") or 0,
        total_token_count=mapping.get("total_tokens") or 0,
    )


def coerce_mapping(value: Any, *, path: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value

    if hasattr(value, "model_dump"):
        dumped = value.model_dump()
        if isinstance(dumped, Mapping):
            return dumped

    msg = f"{path} must be a mapping"
    raise AdapterError(msg)


def _model_turn_to_openai(content: Content) -> dict[str, Any]:
    text = extract_text(content.parts)
    calls = [part for part in content.function_calls if part.name]
    if not calls:
        return {"role": "assistant", "content": text}

    return {
        "role": "assistant",
        "content": text or None,
        "tool_calls": [function_call_to_openai(part) for part in calls],
    }


def _function_turn_to_openai(content: Content) -> dict[str, Any]:
    responses = content.function_responses
    name = responses[0].name if responses else None

    return {
        "role": "tool",
        "content": extract_text(content.parts),
        "tool_call_id": name or synthesize_call_id(),
    }


def _media_block(mime_type: str, url: str) -> dict[str, Any] | None:
    if mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": url}}
    if mime_type.startswith("video/"):
        return {"type": "video_url", "video_url": {"url": url}}
    return None
