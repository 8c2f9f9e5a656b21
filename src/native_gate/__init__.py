"""Native gate - feature gates for native wrapper apps, keyed on User-Agent."""

__version__ = "0.3.0"

from .errors import (
    ConfigurationError,
    InvalidGateError,
    InvalidVersionError,
    NativeGateError,
)
from .versioning import Version
from .extractor import (
    DEFAULT_PATTERN,
    DEFAULT_PATTERNS,
    FALLBACK_PATTERN,
    Extraction,
    Extractor,
    Platform,
)
from .gates import (
    Delegate,
    Disabled,
    Enabled,
    FeatureGate,
    GateRegistry,
    MinVersion,
    get_gate_registry,
    reset_gate_registry,
)

__all__ = [
    "NativeGateError",
    "ConfigurationError",
    "InvalidGateError",
    "InvalidVersionError",
    "Version",
    "DEFAULT_PATTERN",
    "DEFAULT_PATTERNS",
    "FALLBACK_PATTERN",
    "Extraction",
    "Extractor",
    "Platform",
    "Delegate",
    "Disabled",
    "Enabled",
    "FeatureGate",
    "GateRegistry",
    "MinVersion",
    "get_gate_registry",
    "reset_gate_registry",
]
