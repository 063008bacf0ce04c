"""Model identifiers served by the DashScope compatible-mode endpoint."""

from __future__ import annotations

DEFAULT_QWEN_MODEL = "qwen-plus"

QWEN_MODELS: tuple[str, ...] = (
    "qwen-plus",
    "qwen-max-latest",
    "qvq-max-latest",
    "deepseek-r1",
    "deepseek-v3",
)

_VISION_MARKERS = ("qvq", "qwen-max", "deepseek")
_REASONING_MARKERS = ("qvq", "deepseek-r1")


def supports_vision(model: str) -> bool:
    """Return whether ``model`` accepts image and video content blocks."""

    return any(marker in model for marker in _VISION_MARKERS)


def supports_reasoning(model: str) -> bool:
    """Return whether ``model`` streams ``reasoning_content`` deltas."""

    return any(marker in model for marker in _REASONING_MARKERS)
