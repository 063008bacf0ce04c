"""Core data structures and adapter interfaces for the Qwen bridge."""

from __future__ import annotations

from .content import (
    Content,
    ContentRole,
    FileDataPart,
    FunctionCallPart,
    FunctionResponsePart,
    InlineDataPart,
    Part,
    PartKind,
    TextPart,
    normalize_contents,
)
from .errors import AdapterError, TransportError, UnsupportedOperationError
from .response import (
    Candidate,
    CountTokensResponse,
    FinishReason,
    FunctionCall,
    GenerateContentResponse,
    UsageMetadata,
)
from .schema import (
    CountTokensParameters,
    EmbedContentParameters,
    GenerateContentConfig,
    GenerateContentParameters,
)

__all__ = [
    "AdapterError",
    "Candidate",
    "Content",
    "ContentRole",
    "CountTokensParameters",
    "CountTokensResponse",
    "EmbedContentParameters",
    "FileDataPart",
    "FinishReason",
    "FunctionCall",
    "FunctionCallPart",
    "FunctionResponsePart",
    "GenerateContentConfig",
    "GenerateContentParameters",
    "GenerateContentResponse",
    "InlineDataPart",
    "Part",
    "PartKind",
    "TextPart",
    "TransportError",
    "UnsupportedOperationError",
    "UsageMetadata",
    "normalize_contents",
]
