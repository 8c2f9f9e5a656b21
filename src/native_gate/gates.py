"""Per-feature, per-platform gates for native wrapper apps.

A feature registers one rule for iOS and one for Android. Rules are written
the short way and normalised into a closed set of variants:

- ``False`` / ``None`` -> :class:`Disabled`
- ``True`` -> :class:`Enabled`
- ``"1.2.0"`` -> :class:`MinVersion`
- ``Delegate("beta_tester")`` -> :class:`Delegate`

Anything else is a configuration mistake and raises
:class:`~native_gate.errors.InvalidGateError` when evaluated (or when
registered, if the registry is strict).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Hashable, Mapping, Optional, Union

from native_gate.config import get_settings
from native_gate.errors import ConfigurationError, InvalidGateError, InvalidVersionError
from native_gate.extractor import Extractor, PatternInput, Platform
from native_gate.versioning import Version, VersionLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Disabled:
    """Feature is never enabled on the platform."""


@dataclass(frozen=True)
class Enabled:
    """Feature is always enabled once the platform is identified."""


@dataclass(frozen=True)
class MinVersion:
    """Feature is enabled when the client version is at least ``version``."""

    version: Version


@dataclass(frozen=True)
class Delegate:
    """Feature is enabled when the named zero-argument predicate is truthy."""

    predicate: str


Rule = Union[Disabled, Enabled, MinVersion, Delegate]

DISABLED = Disabled()
ENABLED = Enabled()


def to_rule(value: Any, feature: Optional[Hashable] = None) -> Rule:
    """Normalise a rule value into one of the rule variants.

    Args:
        value: Raw rule as passed to ``register_feature``.
        feature: Feature name, used in error messages.

    Raises:
        InvalidGateError: If ``value`` has no rule interpretation.
    """
    if value is None or value is False:
        return DISABLED
    if value is True:
        return ENABLED
    if isinstance(value, (Disabled, Enabled, MinVersion, Delegate)):
        return value
    if isinstance(value, Version):
        return MinVersion(value)
    if isinstance(value, str):
        try:
            return MinVersion(Version.parse(value))
        except InvalidVersionError:
            raise InvalidGateError(value, feature, "not a version string") from None
    raise InvalidGateError(value, feature)


@dataclass(frozen=True)
class FeatureGate:
    """Rules registered for a single feature."""

    name: Hashable
    ios: Any = False
    android: Any = False

    def rule_for(self, platform: Platform) -> Rule:
        """Return the normalised rule for ``platform``."""
        if platform is Platform.IOS:
            return to_rule(self.ios, self.name)
        if platform is Platform.ANDROID:
            return to_rule(self.android, self.name)
        return DISABLED

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {"ios": self.ios, "android": self.android}


class GateRegistry:
    """Registry of native feature gates.

    Owns an :class:`~native_gate.extractor.Extractor` and a map of feature
    name to :class:`FeatureGate`. Configure it once at startup; evaluation
    is read-only and takes no locks.

    Args:
        extractor: Extractor to use (defaults to the default patterns).
        strict_rules: Validate rules when they are registered instead of
            when they are first evaluated.
    """

    def __init__(
        self,
        extractor: Optional[Extractor] = None,
        strict_rules: bool = False,
    ) -> None:
        self.extractor = extractor if extractor is not None else Extractor()
        self.strict_rules = strict_rules
        self._features: dict[Hashable, FeatureGate] = {}
        self._predicates: dict[str, Callable[[], Any]] = {}

    @property
    def features(self) -> Mapping[Hashable, FeatureGate]:
        """Read-only view of registered features."""
        return MappingProxyType(self._features)

    @property
    def patterns(self) -> list[re.Pattern]:
        """Live pattern list of the underlying extractor."""
        return self.extractor.patterns

    @patterns.setter
    def patterns(self, value: PatternInput) -> None:
        self.extractor.patterns = value

    def register_feature(
        self,
        name: Hashable,
        ios: Any = False,
        android: Any = False,
    ) -> FeatureGate:
        """Register or overwrite the rules for a feature.

        Args:
            name: Feature identifier.
            ios: Rule for iOS clients.
            android: Rule for Android clients.

        Returns:
            The stored feature gate.
        """
        if self.strict_rules:
            to_rule(ios, name)
            to_rule(android, name)

        gate = FeatureGate(name=name, ios=ios, android=android)
        self._features[name] = gate
        logger.info("Native feature registered: %s (ios=%r, android=%r)", name, ios, android)
        return gate

    def register_predicate(self, name: str, predicate: Callable[[], Any]) -> None:
        """Register a fallback predicate for :class:`Delegate` rules.

        Used when ``is_enabled`` is called without a context object.
        """
        if not callable(predicate):
            raise ConfigurationError(f"Predicate {name!r} must be callable")
        self._predicates[name] = predicate

    def evaluate(self, name: str) -> Any:
        """Invoke the registered predicate ``name``."""
        predicate = self._predicates.get(name)
        if predicate is None:
            raise InvalidGateError(Delegate(name), reason="no predicate registered under that name")
        return predicate()

    def is_enabled(self, name: Hashable, raw: Optional[str], context: Any = None) -> Any:
        """Check whether a feature is enabled for an identification string.

        Args:
            name: Feature identifier.
            raw: Identification string (usually the User-Agent header).
            context: Object whose methods back :class:`Delegate` rules.
                Falls back to predicates registered on this registry.

        Returns:
            ``True``/``False``, or the value returned by a delegate predicate.

        Raises:
            InvalidGateError: If the selected rule is malformed.
        """
        gate = self._features.get(name)
        if gate is None:
            return False

        extraction = self.extractor.extract(raw)
        if not extraction.matched:
            return False

        rule = gate.rule_for(extraction.platform)
        if isinstance(rule, Disabled):
            result = False
        elif isinstance(rule, Enabled):
            result = True
        elif isinstance(rule, MinVersion):
            result = extraction.version is not None and extraction.version >= rule.version
        else:
            result = self._call_delegate(rule, gate, context)

        logger.debug(
            "Native feature %s evaluated to %r",
            name,
            result,
            extra={
                "feature": str(name),
                "platform": extraction.platform.value,
                "version": str(extraction.version) if extraction.version else None,
            },
        )
        return result

    def platform_of(self, raw: Optional[str]) -> Platform:
        return self.extractor.platform_of(raw)

    def is_ios(self, raw: Optional[str], min_version: Optional[VersionLike] = None) -> bool:
        return self.extractor.is_ios(raw, min_version)

    def is_android(self, raw: Optional[str], min_version: Optional[VersionLike] = None) -> bool:
        return self.extractor.is_android(raw, min_version)

    def reset(self) -> None:
        """Clear features and predicates and restore the default patterns."""
        self._features.clear()
        self._predicates.clear()
        self.extractor.reset()
        logger.info("Native gate registry reset")

    def _call_delegate(self, rule: Delegate, gate: FeatureGate, context: Any) -> Any:
        if context is None:
            return self.evaluate(rule.predicate)

        predicate = getattr(context, rule.predicate, None)
        if not callable(predicate):
            raise InvalidGateError(
                rule,
                gate.name,
                f"{type(context).__name__} has no predicate {rule.predicate!r}",
            )
        return predicate()


# Global instance
_registry: GateRegistry | None = None


def get_gate_registry() -> GateRegistry:
    """Get or create the process-wide gate registry from settings."""
    global _registry
    if _registry is None:
        settings = get_settings()
        extractor = Extractor()
        for pattern in reversed(settings.compiled_extra_patterns()):
            extractor.patterns.insert(0, pattern)
        _registry = GateRegistry(extractor=extractor, strict_rules=settings.strict_rules)
    return _registry


def reset_gate_registry() -> None:
    """Discard the process-wide registry so the next access rebuilds it."""
    global _registry
    _registry = None
