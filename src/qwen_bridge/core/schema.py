"""Request models accepted by the bridge's public operations."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_REQUEST_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)


class GenerateContentConfig(BaseModel):
    """Generation options recognized by the bridge."""

    model_config = _REQUEST_CONFIG

    temperature: Optional[float] = Field(None, description="Sampling temperature forwarded to the endpoint.")
    max_output_tokens: Optional[int] = Field(None, ge=1, description="Upper bound on generated tokens, sent as max_tokens.")
    tools: Optional[List[Any]] = Field(None, description="Tool wrappers or bare function declarations.")


class GenerateContentParameters(BaseModel):
    """A generation request in the Contents schema."""

    model_config = _REQUEST_CONFIG

    model: Optional[str] = Field(None, description="Target model; the adapter default applies when absent.")
    contents: Any = Field(..., description="Text, a part, a list of parts, a turn or a list of turns.")
    config: Optional[GenerateContentConfig] = Field(None, description="Generation options.")


class CountTokensParameters(BaseModel):
    """Input for the token estimate."""

    model_config = _REQUEST_CONFIG

    model: Optional[str] = Field(None, description="Model the estimate is requested for.")
    contents: Any = Field(..., description="Contents to estimate.")


class EmbedContentParameters(BaseModel):
    """Embedding request; accepted only to be rejected."""

    model_config = _REQUEST_CONFIG

    model: Optional[str] = Field(None, description="Embedding model.")
    contents: Any = Field(None, description="Contents to embed.")


__all__ = [
    "CountTokensParameters",
    "EmbedContentParameters",
    "GenerateContentConfig",
    "GenerateContentParameters",
]
