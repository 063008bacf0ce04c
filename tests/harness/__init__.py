"""Test harness utilities for adapter validation."""

from .adapter_harness import Emitted, collect, collect_async

__all__ = [
    "Emitted",
    "collect",
    "collect_async",
]
