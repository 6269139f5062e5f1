"""
Local JSON Storage Implementation

Each key is one file inside the data directory, written atomically
(temp file + rename) so a crash mid-write never leaves half a snapshot.

TRADEOFFS:
- The whole snapshot is rewritten on every change (fine for a farm ledger)
- No locking: one app instance per data directory
"""

import os
from pathlib import Path
from typing import Optional

import structlog

from piggery.config import PLACEHOLDER_CLIENT_ID, is_placeholder_client_id
from piggery.models.records import AppData
from piggery.services.storage.codec import decode_snapshot, encode_snapshot
from piggery.services.storage.interface import (
    KeyValueStoreInterface,
    SnapshotStorageInterface,
)


DATA_KEY = "piggery_data"
CLIENT_ID_KEY = "piggery_google_client_id"

# Shorter stored values are treated as "not set"
_MIN_CLIENT_ID_LENGTH = 10


logger = structlog.get_logger(__name__)


class LocalKeyValueStore(KeyValueStoreInterface):
    """Key-value slots backed by files in a directory."""

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        self._directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)


class LocalSnapshotStorage(SnapshotStorageInterface):
    """
    The snapshot slot.

    save() is called after every mutation. A failed write is logged and
    reported as False; the in-memory snapshot stays the source of truth
    for the rest of the session.
    """

    def __init__(self, kv: KeyValueStoreInterface, key: str = DATA_KEY):
        self._kv = kv
        self._key = key

    def load(self) -> AppData:
        try:
            raw = self._kv.get(self._key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("snapshot_read_failed", key=self._key, error=str(e))
            return AppData()
        if raw is None:
            return AppData()
        return decode_snapshot(raw)

    def save(self, snapshot: AppData) -> bool:
        try:
            self._kv.set(self._key, encode_snapshot(snapshot))
            return True
        except OSError as e:
            logger.error("snapshot_write_failed", key=self._key, error=str(e))
            return False


class ClientIdStore:
    """
    The credential slot: the Google OAuth client ID pasted by the user.

    A stored value wins over the configured default; anything shorter than
    a plausible client ID is ignored.
    """

    def __init__(
        self,
        kv: KeyValueStoreInterface,
        default_client_id: str = PLACEHOLDER_CLIENT_ID,
        key: str = CLIENT_ID_KEY,
    ):
        self._kv = kv
        self._default = default_client_id
        self._key = key

    def get_active_client_id(self) -> str:
        try:
            stored = self._kv.get(self._key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("client_id_read_failed", error=str(e))
            stored = None
        if stored and len(stored.strip()) > _MIN_CLIENT_ID_LENGTH:
            return stored.strip()
        return self._default

    def set_client_id(self, client_id: str) -> None:
        """Persist a new client ID. Raises OSError if the slot cannot be written."""
        self._kv.set(self._key, client_id.strip())

    def is_placeholder(self) -> bool:
        return is_placeholder_client_id(self.get_active_client_id())
