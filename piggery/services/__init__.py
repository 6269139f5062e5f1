"""Services package."""

from piggery.services.storage import (
    ClientIdStore,
    FormatError,
    LocalKeyValueStore,
    LocalSnapshotStorage,
    StorageError,
)
from piggery.services.cloud import (
    AuthError,
    CloudSyncClient,
    ConfigError,
    GoogleDriveClient,
    GoogleOAuthIdentity,
    NetworkError,
    SyncBusyError,
    SyncError,
)

__all__ = [
    # Local storage
    "ClientIdStore",
    "FormatError",
    "LocalKeyValueStore",
    "LocalSnapshotStorage",
    "StorageError",
    # Cloud backup
    "AuthError",
    "CloudSyncClient",
    "ConfigError",
    "GoogleDriveClient",
    "GoogleOAuthIdentity",
    "NetworkError",
    "SyncBusyError",
    "SyncError",
]
