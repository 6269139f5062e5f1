"""Configuration package."""

from piggery.config.settings import (
    PLACEHOLDER_CLIENT_ID,
    AppSettings,
    GoogleDriveSettings,
    Settings,
    get_settings,
    is_placeholder_client_id,
    validate_all_settings,
)

__all__ = [
    "PLACEHOLDER_CLIENT_ID",
    "AppSettings",
    "GoogleDriveSettings",
    "Settings",
    "get_settings",
    "is_placeholder_client_id",
    "validate_all_settings",
]
