# src/csvexpr/core/config.py
"""
Session configuration for the CSV codec.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from __future__ import annotations

from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

DEFAULT_CORRUPT_RECORD_COLUMN = "_corrupt_record"


class CodecSettings(BaseModel):
    """Engine-level settings consulted when an expression binds.

    These play the role of the session configuration: expressions read them
    once at construction and never again.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    column_name_of_corrupt_record: str = Field(
        default=DEFAULT_CORRUPT_RECORD_COLUMN,
        description="Default name of the column that receives unparsed record text",
    )
    session_time_zone: str = Field(
        default="UTC",
        description="Time zone used when an expression has none of its own",
    )
    malformed_record_preview_length: int = Field(
        default=256,
        gt=0,
        description="Maximum characters of a bad record quoted in FAILFAST errors",
    )

    @field_validator("column_name_of_corrupt_record")
    @classmethod
    def validate_corrupt_record_column(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("column_name_of_corrupt_record cannot be empty")
        return v

    @field_validator("session_time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone '{v}'") from e
        return v


_active_settings: CodecSettings | None = None


def get_settings() -> CodecSettings:
    """Return the process-wide settings, creating defaults on first use."""
    global _active_settings
    if _active_settings is None:
        _active_settings = CodecSettings()
    return _active_settings


def set_settings(settings: CodecSettings | None) -> None:
    """Replace the process-wide settings. ``None`` restores defaults on next use."""
    global _active_settings
    _active_settings = settings


def load_settings(config_path: Path | None = None) -> CodecSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (CSVEXPR_*) - highest priority
    2. Config file (if given)
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Optional path to a YAML settings file

    Returns:
        Validated CodecSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="CSVEXPR",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return CodecSettings(**raw_config)
