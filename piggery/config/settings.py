"""
Configuration Management for Piggery Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The Google client ID can also be pasted at runtime; that value lives in the
local credential slot and takes precedence over the environment (see
piggery.services.storage.local_json.ClientIdStore).
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PLACEHOLDER_CLIENT_ID = "YOUR_GOOGLE_CLIENT_ID.apps.googleusercontent.com"


def is_placeholder_client_id(client_id: Optional[str]) -> bool:
    """True when the client ID is empty or still the shipped placeholder."""
    if client_id is None or not client_id.strip():
        return True
    return "YOUR_GOOGLE_CLIENT_ID" in client_id


class GoogleDriveSettings(BaseSettings):
    """Google Drive cloud backup configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_DRIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    client_id: str = Field(
        default=PLACEHOLDER_CLIENT_ID,
        description="OAuth client ID from Google Cloud Console"
    )
    client_secret: Optional[str] = Field(
        default=None,
        description="OAuth client secret (installed-app clients ship one)"
    )
    file_name: str = Field(
        default="piggery-pro-cloud-data.json",
        min_length=1,
        description="Name of the single backup file kept in Drive"
    )
    scopes: list[str] = Field(
        default=["https://www.googleapis.com/auth/drive.file"],
        description="OAuth scopes - file-level access only"
    )
    ready_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Upper bound for the client initialization handshake"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Timeout for each Drive HTTP request"
    )
    oauth_port: int = Field(
        default=0,
        ge=0,
        le=65535,
        description="Local port for the OAuth redirect (0 = pick a free port)"
    )

    @field_validator('scopes')
    @classmethod
    def validate_scopes(cls, v: list[str]) -> list[str]:
        """Refuse full-drive access; the backup only needs its own file."""
        if "https://www.googleapis.com/auth/drive" in v:
            raise ValueError("Full drive scope is not allowed, use drive.file")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="PIGGERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".piggery",
        description="Directory holding the local key-value slots"
    )
    currency_symbol: str = Field(
        default="₱",
        max_length=5,
        description="Currency symbol used in user-facing messages"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )
    activity_log_size: int = Field(
        default=30,
        ge=1,
        le=1000,
        description="How many diagnostic sync events to keep in memory"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def google_drive(self) -> GoogleDriveSettings:
        return GoogleDriveSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus an "<name>_error"
    entry for each failure. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_drive
        results["google_drive"] = True
    except Exception as e:
        results["google_drive"] = False
        results["google_drive_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
