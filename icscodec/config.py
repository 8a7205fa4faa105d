"""Codec settings using Pydantic for type validation and configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Wire format constants
FOLD_WIDTH = 75
CRLF = "\r\n"

# Size validation limits
MAX_ICS_SIZE_BYTES = 50 * 1024 * 1024  # 50MB limit
MAX_ICS_SIZE_WARNING = 10 * 1024 * 1024  # 10MB warning threshold


class CodecSettings(BaseSettings):
    """Parser and writer settings with environment variable support."""

    # Writer
    fold_width: int = Field(
        default=FOLD_WIDTH, ge=10, description="Maximum octets per physical output line"
    )
    preserve_name_case: bool = Field(
        default=False,
        description="Emit property, parameter and component names as written instead of upper case",
    )

    # Parser
    strict_duplicates: bool = Field(
        default=False,
        description="Abort parsing when a required property appears twice in one component",
    )
    max_input_bytes: int = Field(
        default=MAX_ICS_SIZE_BYTES, gt=0, description="Reject documents larger than this"
    )
    warn_input_bytes: int = Field(
        default=MAX_ICS_SIZE_WARNING, gt=0, description="Log a warning above this size"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level for icscodec loggers")
    debug: bool = Field(default=False, description="Enable debug logging")

    model_config = SettingsConfigDict(
        env_prefix="ICSCODEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> CodecSettings:
    """Return the process-wide default settings."""
    return CodecSettings()
