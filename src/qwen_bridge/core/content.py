"""Contents schema: turns made of explicitly typed parts."""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from .errors import AdapterError

LOGGER = logging.getLogger(__name__)

IMAGE_PLACEHOLDER = "[图片内容]"
FILE_PLACEHOLDER = "[文件内容]"


class ContentRole(str, Enum):
    """Roles a turn can be attributed to."""

    USER = "user"
    MODEL = "model"
    FUNCTION = "function"
    SYSTEM = "system"


class PartKind(str, Enum):
    """Discriminant shared by every :data:`Part` variant."""

    TEXT = "text"
    INLINE_DATA = "inline_data"
    FILE_DATA = "file_data"
    FUNCTION_CALL = "function_call"
    FUNCTION_RESPONSE = "function_response"


@dataclass(frozen=True, slots=True)
class TextPart:
    kind: ClassVar[PartKind] = PartKind.TEXT

    text: str


@dataclass(frozen=True, slots=True)
class InlineDataPart:
    """Binary payload carried inline as a base64 string."""

    kind: ClassVar[PartKind] = PartKind.INLINE_DATA

    mime_type: str
    data: str


@dataclass(frozen=True, slots=True)
class FileDataPart:
    """Reference to media hosted elsewhere."""

    kind: ClassVar[PartKind] = PartKind.FILE_DATA

    mime_type: str
    file_uri: str


@dataclass(frozen=True, slots=True)
class FunctionCallPart:
    """A model-issued request to invoke ``name`` with ``args``."""

    kind: ClassVar[PartKind] = PartKind.FUNCTION_CALL

    name: str | None
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True, slots=True)
class FunctionResponsePart:
    """The result of a function call, returned to the model."""

    kind: ClassVar[PartKind] = PartKind.FUNCTION_RESPONSE

    name: str | None
    response: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


Part = Union[TextPart, InlineDataPart, FileDataPart, FunctionCallPart, FunctionResponsePart]

_PART_TYPES = (TextPart, InlineDataPart, FileDataPart, FunctionCallPart, FunctionResponsePart)


@dataclass(frozen=True, slots=True)
class Content:
    """A single turn of the conversation."""

    role: ContentRole
    parts: tuple[Part, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.role, ContentRole):
            object.__setattr__(self, "role", coerce_role(self.role))

        if not isinstance(self.parts, Sequence) or isinstance(self.parts, (str, bytes, bytearray)):
            msg = "parts must be a sequence of Part instances"
            raise TypeError(msg)
        candidates = tuple(self.parts)
        for part in candidates:
            if not isinstance(part, _PART_TYPES):
                msg = "parts must contain Part instances"
                raise TypeError(msg)
        object.__setattr__(self, "parts", candidates)

    @property
    def function_calls(self) -> tuple[FunctionCallPart, ...]:
        return tuple(part for part in self.parts if isinstance(part, FunctionCallPart))

    @property
    def function_responses(self) -> tuple[FunctionResponsePart, ...]:
        return tuple(part for part in self.parts if isinstance(part, FunctionResponsePart))

    @property
    def has_media(self) -> bool:
        return any(isinstance(part, (InlineDataPart, FileDataPart)) for part in self.parts)


def normalize_contents(contents: Any) -> tuple[Content, ...]:
    """Resolve any accepted ``contents`` shape into an ordered tuple of turns.

    A string, a single part or a list of parts becomes one user turn. A single
    turn or a list of turns is kept as is. Parts and turns may be given as
    instances, Gemini-style mappings (camelCase or snake_case keys) or objects
    exposing ``model_dump()``.
    """

    if isinstance(contents, str):
        return (Content(role=ContentRole.USER, parts=(TextPart(text=contents),)),)

    if isinstance(contents, Content):
        return (contents,)

    if isinstance(contents, Sequence) and not isinstance(contents, (bytes, bytearray)):
        items = list(contents)
        if not items:
            return ()
        if _looks_like_content(items[0]):
            return tuple(coerce_content(item) for item in items)
        parts = tuple(coerce_part(item) for item in items)
        return (Content(role=ContentRole.USER, parts=parts),)

    if _looks_like_content(contents):
        return (coerce_content(contents),)

    return (Content(role=ContentRole.USER, parts=(coerce_part(contents),)),)


def coerce_role(raw: Any) -> ContentRole:
    """Map a raw role value onto :class:`ContentRole`; unknown roles become user."""

    if isinstance(raw, ContentRole):
        return raw
    if raw is None:
        return ContentRole.USER
    normalized = str(raw).strip().lower()
    try:
        return ContentRole(normalized)
    except ValueError:
        LOGGER.warning("unrecognized content role %r treated as 'user'", raw)
        return ContentRole.USER


def coerce_content(value: Any) -> Content:
    if isinstance(value, Content):
        return value

    mapping = _coerce_mapping(value, path="content")
    raw_parts = mapping.get("parts") or ()
    if isinstance(raw_parts, (str, bytes, bytearray)) or not isinstance(raw_parts, Sequence):
        msg = "content parts must be provided as a sequence"
        raise AdapterError(msg)

    parts = tuple(coerce_part(item) for item in raw_parts)
    return Content(role=coerce_role(mapping.get("role")), parts=parts)


def coerce_part(value: Any) -> Part:
    """Resolve a raw part into its typed variant."""

    if isinstance(value, _PART_TYPES):
        return value

    if isinstance(value, str):
        return TextPart(text=value)

    mapping = _coerce_mapping(value, path="part")

    text = mapping.get("text")
    if text is not None:
        return TextPart(text=str(text))

    inline = _first_present(mapping, "inlineData", "inline_data")
    if inline is not None:
        inline_mapping = _coerce_mapping(inline, path="part.inlineData")
        return InlineDataPart(
            mime_type=_first_present(inline_mapping, "mimeType", "mime_type") or "",
            data=_encode_data(inline_mapping.get("data")),
        )

    file_data = _first_present(mapping, "fileData", "file_data")
    if file_data is not None:
        file_mapping = _coerce_mapping(file_data, path="part.fileData")
        return FileDataPart(
            mime_type=_first_present(file_mapping, "mimeType", "mime_type") or "",
            file_uri=_first_present(file_mapping, "fileUri", "file_uri") or "",
        )

    function_call = _first_present(mapping, "functionCall", "function_call")
    if function_call is not None:
        call_mapping = _coerce_mapping(function_call, path="part.functionCall")
        return FunctionCallPart(
            name=call_mapping.get("name") or None,
            args=dict(call_mapping.get("args") or {}),
            id=call_mapping.get("id") or None,
        )

    function_response = _first_present(mapping, "functionResponse", "function_response")
    if function_response is not None:
        response_mapping = _coerce_mapping(function_response, path="part.functionResponse")
        return FunctionResponsePart(
            name=response_mapping.get("name") or None,
            response=dict(response_mapping.get("response") or {}),
            id=response_mapping.get("id") or None,
        )

    keys = ", ".join(sorted(str(key) for key in mapping)) or "<empty>"
    msg = f"unsupported part with keys: {keys}"
    raise AdapterError(msg)


def extract_text(parts: Sequence[Part]) -> str:
    """Flatten parts into plain text, replacing media with placeholders."""

    fragments: list[str] = []
    for part in parts:
        if isinstance(part, TextPart):
            fragments.append(part.text)
        elif isinstance(part, InlineDataPart):
            fragments.append(IMAGE_PLACEHOLDER)
        elif isinstance(part, FileDataPart):
            fragments.append(FILE_PLACEHOLDER)
    return "".join(fragments)


def extract_text_from_contents(contents: Sequence[Content]) -> str:
    return " ".join(extract_text(content.parts) for content in contents)


def _looks_like_content(value: Any) -> bool:
    if isinstance(value, Content):
        return True
    if isinstance(value, _PART_TYPES) or isinstance(value, str):
        return False
    if isinstance(value, Mapping):
        return "role" in value or "parts" in value
    if hasattr(value, "model_dump"):
        dumped = value.model_dump()
        return isinstance(dumped, Mapping) and ("role" in dumped or "parts" in dumped)
    return False


def _first_present(mapping: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def _encode_data(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, (bytes, bytearray)):
        return base64.b64encode(bytes(data)).decode("ascii")
    return str(data)


def _coerce_mapping(value: Any, *, path: str) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value

    if hasattr(value, "model_dump"):
        dumped = value.model_dump()
        if isinstance(dumped, Mapping):
            return dumped

    msg = f"{path} must be a mapping"
    raise AdapterError(msg)
