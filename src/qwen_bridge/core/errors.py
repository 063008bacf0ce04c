"""Custom exception types raised by the Qwen bridge."""

from __future__ import annotations


class AdapterError(RuntimeError):
    """Raised when the adapter cannot fulfil a request."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TransportError(AdapterError):
    """Raised when the remote completion endpoint fails."""


class UnsupportedOperationError(AdapterError):
    """Raised for operations the remote API has no counterpart for."""
