"""Exceptions raised by native gate configuration and evaluation."""

from __future__ import annotations

from typing import Any, Hashable, Optional


class NativeGateError(Exception):
    """Base exception for native gate errors."""

    pass


class ConfigurationError(NativeGateError):
    """Raised when the pattern list is configured with invalid values."""

    pass


class InvalidGateError(NativeGateError):
    """Raised when a registered gate rule has an unrecognised shape.

    Args:
        value: The offending rule value.
        feature: Feature the rule belongs to, if known.
        reason: Optional detail appended to the message.
    """

    def __init__(
        self,
        value: Any,
        feature: Optional[Hashable] = None,
        reason: str = "",
    ) -> None:
        self.value = value
        self.feature = feature
        message = f"Invalid version gate: {value!r}"
        if feature is not None:
            message += f" (feature {feature!r})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidVersionError(NativeGateError, ValueError):
    """Raised when a version string is not dot-separated integers."""

    pass
