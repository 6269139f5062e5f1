"""
Storage Services Package

Local persistence: key-value slots on disk, the snapshot slot, the
credential slot and the JSON codec shared with import/export and cloud
backup.
"""

from piggery.services.storage.interface import (
    FormatError,
    KeyValueStoreInterface,
    SnapshotStorageInterface,
    StorageError,
)
from piggery.services.storage.codec import (
    decode_snapshot,
    encode_snapshot,
    export_filename,
    parse_import,
)
from piggery.services.storage.local_json import (
    CLIENT_ID_KEY,
    DATA_KEY,
    ClientIdStore,
    LocalKeyValueStore,
    LocalSnapshotStorage,
)

__all__ = [
    # Interfaces
    "KeyValueStoreInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "FormatError",
    "StorageError",
    # Codec
    "decode_snapshot",
    "encode_snapshot",
    "export_filename",
    "parse_import",
    # Local JSON implementation
    "CLIENT_ID_KEY",
    "DATA_KEY",
    "ClientIdStore",
    "LocalKeyValueStore",
    "LocalSnapshotStorage",
]
