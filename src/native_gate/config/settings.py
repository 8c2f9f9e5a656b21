"""Settings and configuration management."""

import logging
import re
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from native_gate.errors import ConfigurationError
from native_gate.extractor import validate_patterns

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Native gate settings, read from ``NATIVE_GATE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NATIVE_GATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("text", description="Log format: 'text' or 'json'")

    strict_rules: bool = Field(
        False,
        description="Validate gate rules at registration instead of evaluation",
    )
    extra_patterns: list[str] = Field(
        default_factory=list,
        description=(
            "Regular expressions tried before the default patterns. "
            "Each must define a 'platform' named group."
        ),
    )

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        if value.lower() not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")
        return value.lower()

    def compiled_extra_patterns(self) -> list[re.Pattern]:
        """Compile ``extra_patterns`` in order.

        Raises:
            ConfigurationError: If a source does not compile or lacks a
                ``platform`` group.
        """
        compiled = []
        for source in self.extra_patterns:
            try:
                compiled.append(re.compile(source))
            except re.error as e:
                raise ConfigurationError(f"Invalid pattern {source!r}: {e}") from e
        if compiled:
            logger.info("Loaded %d extra native version patterns", len(compiled))
        return validate_patterns(compiled)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
