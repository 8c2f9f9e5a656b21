"""Dotted numeric versions used by minimum-version gates."""

from __future__ import annotations

import re
from itertools import zip_longest
from typing import Union

from native_gate.errors import InvalidVersionError

_VERSION_PATTERN = re.compile(r"^\d+(?:\.\d+)*$")


class Version(tuple):
    """An ordered tuple of non-negative integer segments.

    Comparison pads the shorter side with zeros, so ``1.2`` equals
    ``1.2.0`` and ``1.10`` sorts after ``1.9``.
    """

    def __new__(cls, segments=()):
        values = tuple(int(s) for s in segments)
        if any(v < 0 for v in values):
            raise InvalidVersionError(f"Version segments must be non-negative: {values}")
        return super().__new__(cls, values)

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse ``"1.2.3"`` into ``Version((1, 2, 3))``.

        Raises:
            InvalidVersionError: If ``text`` is not dot-separated digits.
        """
        if not isinstance(text, str):
            raise InvalidVersionError(f"Version must be a string, got: {type(text).__name__}")
        text = text.strip()
        if not _VERSION_PATTERN.match(text):
            raise InvalidVersionError(f"Malformed version: {text!r}")
        return cls(text.split("."))

    def _compare(self, other) -> int:
        if not isinstance(other, tuple):
            return NotImplemented
        for mine, theirs in zip_longest(self, other, fillvalue=0):
            if mine != theirs:
                return -1 if mine < theirs else 1
        return 0

    def __eq__(self, other):
        result = self._compare(other)
        return result if result is NotImplemented else result == 0

    def __ne__(self, other):
        result = self._compare(other)
        return result if result is NotImplemented else result != 0

    def __lt__(self, other):
        result = self._compare(other)
        return result if result is NotImplemented else result < 0

    def __le__(self, other):
        result = self._compare(other)
        return result if result is NotImplemented else result <= 0

    def __gt__(self, other):
        result = self._compare(other)
        return result if result is NotImplemented else result > 0

    def __ge__(self, other):
        result = self._compare(other)
        return result if result is NotImplemented else result >= 0

    def __hash__(self):
        # 1.2 and 1.2.0 compare equal, so they must hash equal
        trimmed = tuple(self)
        while trimmed and trimmed[-1] == 0:
            trimmed = trimmed[:-1]
        return hash(trimmed)

    def __str__(self) -> str:
        return ".".join(str(segment) for segment in self)

    def __repr__(self) -> str:
        return f"Version('{self}')"


VersionLike = Union[str, Version]


def coerce_version(value: VersionLike) -> Version:
    """Return ``value`` as a Version, parsing strings."""
    if isinstance(value, Version):
        return value
    return Version.parse(value)
