"""Drive OpenAI-compatible Qwen and DeepSeek endpoints with Gemini-style requests.

The package translates Contents-schema turns (text, media, function calls and
function responses) into chat completion messages, forwards them through an
``openai`` client, and maps complete or streamed completions back into
Contents-schema responses.
"""

from __future__ import annotations

from .config import BridgeSettings
from .core import (
    AdapterError,
    Content,
    ContentRole,
    GenerateContentConfig,
    GenerateContentParameters,
    GenerateContentResponse,
    TransportError,
    UnsupportedOperationError,
)
from .core.adapters import QwenAdapter
from .models import DEFAULT_QWEN_MODEL, QWEN_MODELS, supports_reasoning, supports_vision

__all__ = [
    "AdapterError",
    "BridgeSettings",
    "Content",
    "ContentRole",
    "DEFAULT_QWEN_MODEL",
    "GenerateContentConfig",
    "GenerateContentParameters",
    "GenerateContentResponse",
    "QWEN_MODELS",
    "QwenAdapter",
    "TransportError",
    "UnsupportedOperationError",
    "supports_reasoning",
    "supports_vision",
]

__version__ = "0.1.0"
