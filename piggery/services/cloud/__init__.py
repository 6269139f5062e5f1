"""
Cloud Backup Services Package

Remote snapshot backup: abstract identity/store interfaces, the Google
Drive implementation and the sync client that drives them.
"""

from piggery.services.cloud.interface import (
    AuthError,
    ConfigError,
    IdentityProviderInterface,
    NetworkError,
    RemoteFile,
    RemoteStoreInterface,
    SyncBusyError,
    SyncError,
)
from piggery.services.cloud.google_drive import (
    GoogleDriveClient,
    GoogleOAuthIdentity,
    build_multipart_body,
    drive_client_factory,
)
from piggery.services.cloud.sync_client import CloudSyncClient, SessionState

__all__ = [
    # Interfaces
    "IdentityProviderInterface",
    "RemoteFile",
    "RemoteStoreInterface",
    # Exceptions
    "AuthError",
    "ConfigError",
    "NetworkError",
    "SyncBusyError",
    "SyncError",
    # Google implementation
    "GoogleDriveClient",
    "GoogleOAuthIdentity",
    "build_multipart_body",
    "drive_client_factory",
    # Sync
    "CloudSyncClient",
    "SessionState",
]
