"""Connection settings for the DashScope compatible-mode endpoint."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .models import DEFAULT_QWEN_MODEL

DEFAULT_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"


@dataclass(slots=True)
class BridgeSettings:
    """Credentials and defaults used to build the remote client.

    Attributes
    ----------
    api_key:
        The credential forwarded to the endpoint. The bridge never inspects or
        refreshes it.
    base_url:
        Root URL of the OpenAI-compatible API.
    default_model:
        Model used when a request does not name one.
    """

    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    default_model: str = DEFAULT_QWEN_MODEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "BridgeSettings":
        """Build settings from ``DASHSCOPE_API_KEY`` and friends.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        env = os.environ if environ is None else environ

        api_key = _clean(env.get("DASHSCOPE_API_KEY")) or _clean(env.get("QWEN_API_KEY"))
        base_url = _clean(env.get("QWEN_BASE_URL")) or DEFAULT_BASE_URL
        default_model = _clean(env.get("QWEN_MODEL")) or DEFAULT_QWEN_MODEL

        return cls(api_key=api_key, base_url=base_url, default_model=default_model)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
