"""Package configuration.

The pipeline reads only ParserSettings, so a bad value in a CLI-only
variable never reaches canonicalization or verification.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ParserSettings(BaseSettings):
    """Limits applied while parsing messages."""

    # Messages larger than this are rejected before parsing
    max_message_bytes: int = 10 * 1024 * 1024

    model_config = SettingsConfigDict(
        env_prefix="SOAPSIG_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("max_message_bytes")
    @classmethod
    def _check_max_message_bytes(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_message_bytes must be positive")
        return value


class Settings(ParserSettings):
    """Settings loaded from SOAPSIG_* environment variables for the CLI."""

    # Logging (only applied by callers that run setup_logging, e.g. the CLI)
    log_level: str = "WARNING"
    log_json: bool = False

    # Default PEM file for the CLI when --key is omitted
    public_key_file: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache
def get_parser_settings() -> ParserSettings:
    """Get cached parser settings."""
    return ParserSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
