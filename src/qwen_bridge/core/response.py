"""Response objects returned to Contents-schema callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .content import Content, TextPart


class FinishReason(str, Enum):
    """Why the model stopped producing output."""

    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """A completed tool invocation request."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True, slots=True)
class UsageMetadata:
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


@dataclass(frozen=True, slots=True)
class Candidate:
    content: Content
    finish_reason: FinishReason | None = None
    index: int = 0


@dataclass(frozen=True, slots=True)
class GenerateContentResponse:
    """One complete response, or one partial response of a stream.

    Streaming emits responses without candidates to deliver finalized function
    calls and, at the end, the usage statistics.
    """

    candidates: tuple[Candidate, ...] = ()
    usage_metadata: UsageMetadata | None = None
    function_calls: tuple[FunctionCall, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "candidates", tuple(self.candidates))
        if self.function_calls is not None:
            calls = tuple(self.function_calls)
            object.__setattr__(self, "function_calls", calls or None)

    @property
    def text(self) -> str | None:
        """Concatenated text parts of the first candidate, if any."""

        if not self.candidates:
            return None
        fragments = [
            part.text for part in self.candidates[0].content.parts if isinstance(part, TextPart)
        ]
        if not fragments:
            return None
        return "".join(fragments)


@dataclass(frozen=True, slots=True)
class CountTokensResponse:
    total_tokens: int
