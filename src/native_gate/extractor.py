"""Platform and version extraction from native app User-Agent strings.

Native wrapper apps identify themselves with strings such as
``Hotwire Native App iOS/1.2.0`` or, for older shells, ``Hotwire Native iOS``.
The extractor tries an ordered list of regular expressions and returns the
platform and version captured by the first one that matches.

Patterns must define a ``platform`` named group and may define a
``version`` named group.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from native_gate.errors import ConfigurationError
from native_gate.versioning import Version, VersionLike, coerce_version

logger = logging.getLogger(__name__)


class Platform(str, Enum):
    """Native platform family."""

    IOS = "iOS"
    ANDROID = "Android"
    NONE = "none"

    @property
    def key(self) -> str:
        """Lowercase label used to select per-platform rules."""
        return self.value.lower()

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Platform":
        """Map a captured label to a platform, ignoring case."""
        if label:
            lowered = label.lower()
            for platform in (cls.IOS, cls.ANDROID):
                if platform.key == lowered:
                    return platform
        return cls.NONE


# Example: Hotwire Native App iOS/1.0.0;
DEFAULT_PATTERN = re.compile(
    r"\bHotwire Native App (?P<platform>iOS|Android)/(?P<version>\d+(?:\.\d+)*)\b"
)
# Shells that don't report a version, e.g. "Hotwire Native iOS;"
FALLBACK_PATTERN = re.compile(r"\b(?:Turbo|Hotwire) Native (?P<platform>iOS|Android)\b")

DEFAULT_PATTERNS = (DEFAULT_PATTERN, FALLBACK_PATTERN)

PatternInput = Union[re.Pattern, Iterable[re.Pattern]]


@dataclass(frozen=True)
class Extraction:
    """Result of matching an identification string."""

    platform: Platform = Platform.NONE
    version: Optional[Version] = None

    @property
    def matched(self) -> bool:
        return self.platform is not Platform.NONE

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "platform": self.platform.value,
            "version": str(self.version) if self.version is not None else None,
        }


NO_MATCH = Extraction()


def validate_patterns(patterns: PatternInput) -> list[re.Pattern]:
    """Normalize a pattern or sequence of patterns into a new list.

    Raises:
        ConfigurationError: If any element is not a compiled pattern with a
            ``platform`` named group, or the input is neither a pattern nor
            a sequence of patterns.
    """
    if isinstance(patterns, re.Pattern):
        candidates = [patterns]
    elif isinstance(patterns, (list, tuple)):
        candidates = list(patterns)
    else:
        raise ConfigurationError(
            "native version patterns must be a compiled pattern or a list of "
            f"compiled patterns, got: {type(patterns).__name__}"
        )

    for pattern in candidates:
        if not isinstance(pattern, re.Pattern):
            raise ConfigurationError(
                "native version patterns must be compiled regular expressions, "
                f"got: {type(pattern).__name__}"
            )
        if "platform" not in pattern.groupindex:
            raise ConfigurationError(
                f"Pattern {pattern.pattern!r} has no 'platform' named group"
            )
    return candidates


class Extractor:
    """Resolves platform and version from identification strings.

    The pattern list returned by :attr:`patterns` is live: inserting into it
    (``extractor.patterns.insert(0, custom)``) adds a higher-priority
    pattern while keeping the defaults as fallbacks.
    """

    def __init__(self, patterns: Optional[PatternInput] = None) -> None:
        if patterns is None:
            self._patterns: list[re.Pattern] = list(DEFAULT_PATTERNS)
        else:
            self._patterns = validate_patterns(patterns)

    @property
    def patterns(self) -> list[re.Pattern]:
        return self._patterns

    @patterns.setter
    def patterns(self, value: PatternInput) -> None:
        # Validate before assigning so a bad value leaves the old list intact
        self._patterns = validate_patterns(value)
        logger.info("Native version patterns replaced (%d patterns)", len(self._patterns))

    def reset(self) -> None:
        """Restore the default pattern list."""
        self._patterns = list(DEFAULT_PATTERNS)

    def extract(self, raw: Optional[str]) -> Extraction:
        """Extract platform and version from an identification string.

        Patterns are tried in order; the first whose ``platform`` group
        participates in the match wins. The version is read from that same
        pattern only, and is absent when it has no ``version`` group.

        Args:
            raw: Identification string, usually the User-Agent header.

        Returns:
            The extraction, or ``NO_MATCH`` when nothing matched.
        """
        if not raw:
            return NO_MATCH

        for pattern in self._patterns:
            match = pattern.search(raw)
            if match is None or not match.group("platform"):
                continue

            label = match.group("platform")
            platform = Platform.from_label(label)
            if platform is Platform.NONE:
                logger.debug("Ignoring unrecognised platform label %r", label)
                return NO_MATCH

            version = None
            if "version" in pattern.groupindex and match.group("version"):
                version = _parse_captured_version(match.group("version"))
            return Extraction(platform=platform, version=version)

        return NO_MATCH

    def platform_of(self, raw: Optional[str]) -> Platform:
        """Return the platform identified by ``raw``."""
        return self.extract(raw).platform

    def version_of(self, raw: Optional[str]) -> Optional[Version]:
        """Return the version identified by ``raw``, if any."""
        return self.extract(raw).version

    def is_ios(self, raw: Optional[str], min_version: Optional[VersionLike] = None) -> bool:
        """Check for an iOS client, optionally at or above ``min_version``."""
        return self._is_platform(Platform.IOS, raw, min_version)

    def is_android(
        self, raw: Optional[str], min_version: Optional[VersionLike] = None
    ) -> bool:
        """Check for an Android client, optionally at or above ``min_version``."""
        return self._is_platform(Platform.ANDROID, raw, min_version)

    def _is_platform(
        self,
        platform: Platform,
        raw: Optional[str],
        min_version: Optional[VersionLike],
    ) -> bool:
        # Parse the bound first so a malformed one fails regardless of input
        bound = coerce_version(min_version) if min_version is not None else None
        extraction = self.extract(raw)
        if extraction.platform is not platform:
            return False
        if bound is None:
            return True
        return extraction.version is not None and extraction.version >= bound


def _parse_captured_version(text: str) -> Optional[Version]:
    try:
        return Version.parse(text)
    except ValueError:
        logger.debug("Ignoring non-numeric version capture %r", text)
        return None
