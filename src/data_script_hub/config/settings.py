"""
Configuration management for Data Script Hub.

This module provides environment-based configuration using Pydantic
BaseSettings for the script generation defaults (script type, transaction
wrapping, progress cadence, compatibility level) and the header author
overrides, plus the per-call ``ScriptOptions`` record.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from data_script_hub.domain.scripting.types import CompatibilityLevel, ScriptType

logger = structlog.get_logger(__name__)

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("DSH_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


def _check_line_terminator(value: str) -> str:
    if value not in ("\r\n", "\n"):
        raise ValueError("line_terminator must be '\\r\\n' or '\\n'")
    return value


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are automatically loaded with the DSH_ prefix.
    For example, DSH_DEFAULT_PROGRESS_GAP=100 overrides default_progress_gap.
    LOG_LEVEL, LOG_TO_FILE and LOG_FILE_DIR are read without a prefix.
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )
    LOG_TO_FILE: bool = Field(
        default=False,
        validation_alias="LOG_TO_FILE",
        description="Also write logs to a daily rotating file",
    )
    LOG_FILE_DIR: str = Field(
        default="logs",
        validation_alias="LOG_FILE_DIR",
        description="Directory for log files",
    )

    # Script defaults
    default_script_type: ScriptType = Field(
        default=ScriptType.INSERT_UPDATE,
        description="Script type used when a caller does not choose one",
    )
    default_use_transaction: bool = Field(
        default=True, description="Wrap scripts in BEGIN TRANSACTION / COMMIT"
    )
    default_progress_gap: int = Field(
        default=50,
        ge=0,
        description="Emit a PRINT progress marker every N rows (0 disables)",
    )
    default_compatibility: CompatibilityLevel = Field(
        default=CompatibilityLevel.LEGACY,
        description="Sub-select compatibility level for new tables",
    )

    # Output formatting
    line_terminator: str = Field(
        default="\r\n", description="Line terminator written after every line"
    )
    use_24_hour_clock: bool = Field(
        default=False,
        description="Render datetime literals with a 24-hour clock instead of 12-hour",
    )
    output_encoding: str = Field(
        default="utf-8", description="Encoding for script files"
    )

    # Header author overrides (host environment is used when unset)
    author_user: Optional[str] = Field(default=None)
    author_domain: Optional[str] = Field(default=None)
    author_machine: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(
        env_prefix="DSH_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("line_terminator")
    @classmethod
    def validate_line_terminator(cls, value: str) -> str:
        return _check_line_terminator(value)


class ScriptOptions(BaseModel):
    """
    Per-call options for a script generation run.

    Attributes:
        script_type: Statement form produced for every row
        use_transaction: Wrap the script in BEGIN TRANSACTION / COMMIT
        progress_gap: Emit a PRINT marker every N rows (0 disables)
        line_terminator: Line terminator for the output stream
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    script_type: ScriptType = ScriptType.INSERT_UPDATE
    use_transaction: bool = True
    progress_gap: int = Field(default=50, ge=0)
    line_terminator: str = "\r\n"

    @field_validator("line_terminator")
    @classmethod
    def validate_line_terminator(cls, value: str) -> str:
        return _check_line_terminator(value)

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, **overrides: object
    ) -> "ScriptOptions":
        """Build options from configured defaults, applying explicit overrides."""
        settings = settings or get_settings()
        values = {
            "script_type": settings.default_script_type,
            "use_transaction": settings.default_use_transaction,
            "progress_gap": settings.default_progress_gap,
            "line_terminator": settings.line_terminator,
        }
        values.update(overrides)
        return cls(**values)


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings instance.

    Uses lru_cache to ensure settings are loaded once and reused throughout
    the application lifecycle.

    Returns:
        Settings instance with loaded configuration
    """
    settings = Settings()
    logger.debug(
        "settings_loaded",
        compatibility=settings.default_compatibility.value,
        progress_gap=settings.default_progress_gap,
    )
    return settings
