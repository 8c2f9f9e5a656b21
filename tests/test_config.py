"""Tests for settings, logging setup and the process-wide registry."""

import json
import logging
import sys

import pytest
from pydantic import ValidationError

sys.path.insert(0, "src")

from native_gate.config import (
    JSONFormatter,
    Settings,
    TextFormatter,
    configure_logging,
    get_settings,
)
from native_gate.errors import ConfigurationError
from native_gate.extractor import DEFAULT_PATTERNS, Platform
from native_gate.gates import GateRegistry, get_gate_registry, reset_gate_registry


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    """Isolate env-driven settings and the global registry."""
    for name in ("LOG_LEVEL", "LOG_FORMAT", "STRICT_RULES", "EXTRA_PATTERNS"):
        monkeypatch.delenv(f"NATIVE_GATE_{name}", raising=False)
    get_settings.cache_clear()
    reset_gate_registry()
    yield
    get_settings.cache_clear()
    reset_gate_registry()


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        """Settings have sensible defaults."""
        settings = Settings()
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"
        assert settings.strict_rules is False
        assert settings.extra_patterns == []

    def test_from_environment(self, monkeypatch):
        """Values are read from NATIVE_GATE_* variables."""
        monkeypatch.setenv("NATIVE_GATE_STRICT_RULES", "true")
        monkeypatch.setenv("NATIVE_GATE_LOG_FORMAT", "JSON")
        monkeypatch.setenv(
            "NATIVE_GATE_EXTRA_PATTERNS", json.dumps(["MyApp (?P<platform>iOS|Android)"])
        )
        settings = Settings()
        assert settings.strict_rules is True
        assert settings.log_format == "json"
        assert settings.extra_patterns == ["MyApp (?P<platform>iOS|Android)"]

    def test_invalid_log_format(self):
        """Unknown log formats are rejected."""
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_compiled_extra_patterns(self):
        """Extra patterns compile in order."""
        settings = Settings(extra_patterns=["A (?P<platform>iOS)", "B (?P<platform>Android)"])
        compiled = settings.compiled_extra_patterns()
        assert [p.pattern for p in compiled] == ["A (?P<platform>iOS)", "B (?P<platform>Android)"]

    def test_uncompilable_pattern(self):
        """Broken regular expressions are configuration errors."""
        settings = Settings(extra_patterns=["MyApp (?P<platform>iOS"])
        with pytest.raises(ConfigurationError, match="Invalid pattern"):
            settings.compiled_extra_patterns()

    def test_pattern_without_platform_group(self):
        """Extra patterns must capture a platform."""
        settings = Settings(extra_patterns=["MyApp (iOS|Android)"])
        with pytest.raises(ConfigurationError):
            settings.compiled_extra_patterns()

    def test_get_settings_cached(self):
        """get_settings returns the same instance."""
        assert get_settings() is get_settings()


class TestGlobalRegistry:
    """Tests for the process-wide registry."""

    def test_singleton(self):
        """Returns the same registry until reset."""
        registry = get_gate_registry()
        assert isinstance(registry, GateRegistry)
        assert get_gate_registry() is registry

        reset_gate_registry()
        assert get_gate_registry() is not registry

    def test_default_patterns(self):
        """Without extra patterns the defaults are used."""
        assert get_gate_registry().patterns == list(DEFAULT_PATTERNS)

    def test_extra_patterns_prepended(self, monkeypatch):
        """Extra patterns run before the defaults, in configured order."""
        monkeypatch.setenv(
            "NATIVE_GATE_EXTRA_PATTERNS",
            json.dumps(["First (?P<platform>iOS|Android)", "Second (?P<platform>iOS|Android)"]),
        )
        registry = get_gate_registry()
        assert [p.pattern for p in registry.patterns[:2]] == [
            "First (?P<platform>iOS|Android)",
            "Second (?P<platform>iOS|Android)",
        ]
        assert registry.patterns[2:] == list(DEFAULT_PATTERNS)
        assert registry.platform_of("Second Android") is Platform.ANDROID
        assert registry.platform_of("Hotwire Native iOS") is Platform.IOS

    def test_strict_rules_from_settings(self, monkeypatch):
        """strict_rules is applied to the global registry."""
        monkeypatch.setenv("NATIVE_GATE_STRICT_RULES", "1")
        assert get_gate_registry().strict_rules is True


class TestLoggingSetup:
    """Tests for logging configuration."""

    @pytest.fixture
    def package_logger(self):
        logger = logging.getLogger("native_gate")
        saved_handlers, saved_level = logger.handlers[:], logger.level
        yield logger
        logger.handlers[:] = saved_handlers
        logger.setLevel(saved_level)

    def test_text_format(self, package_logger):
        """Text format installs one text handler."""
        configure_logging("DEBUG", "text")
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0].formatter, TextFormatter)

    def test_json_format(self, package_logger):
        """JSON format installs a JSON handler and replaces old handlers."""
        configure_logging("INFO", "text")
        configure_logging("WARNING", "json")
        assert package_logger.level == logging.WARNING
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0].formatter, JSONFormatter)

    def test_json_formatter_includes_gate_fields(self):
        """Gate context extras appear in JSON output."""
        record = logging.LogRecord(
            "native_gate.gates", logging.DEBUG, __file__, 1, "Native feature %s", ("beta",), None
        )
        record.feature = "beta"
        record.platform = "iOS"
        record.version = "1.2.0"

        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "Native feature beta"
        assert data["level"] == "DEBUG"
        assert data["feature"] == "beta"
        assert data["platform"] == "iOS"
        assert data["version"] == "1.2.0"
        assert data["timestamp"].endswith("Z")

    def test_json_formatter_without_extras(self):
        """Records without gate context omit those fields."""
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", (), None)
        data = json.loads(JSONFormatter().format(record))
        assert "feature" not in data
        assert data["logger"] == "x"
