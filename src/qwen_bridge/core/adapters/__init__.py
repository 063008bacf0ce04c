"""Content generator interface and the Qwen implementation."""

from __future__ import annotations

from .base import ContentGenerator
from .qwen import QwenAdapter, QwenStreamIterator, QwenStreamNormalizer
from .stream import BaseStreamIterator, StreamNormalizer, replay_stream
from .toolbridge import FunctionDeclaration, tools_to_openai
from .utils import contents_to_openai, openai_to_response

__all__ = [
    "BaseStreamIterator",
    "ContentGenerator",
    "FunctionDeclaration",
    "QwenAdapter",
    "QwenStreamIterator",
    "QwenStreamNormalizer",
    "StreamNormalizer",
    "contents_to_openai",
    "openai_to_response",
    "replay_stream",
    "tools_to_openai",
]
