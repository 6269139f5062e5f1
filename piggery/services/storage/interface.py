"""
Abstract Local Storage Interface

DESIGN DECISION: Local persistence is split in two layers:
1. A key-value slot store (a browser-like localStorage on disk)
2. Typed adapters on top of it - the snapshot slot and the credential slot

This keeps the snapshot logic testable against any slot store and lets the
on-disk layout change without touching the session code.
"""

from abc import ABC, abstractmethod
from typing import Optional

from piggery.models.records import AppData


class KeyValueStoreInterface(ABC):
    """Durable string slots addressed by a fixed key."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read a slot.

        Returns:
            The stored text, or None if the slot was never written

        Raises:
            OSError: If the slot exists but cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Overwrite a slot with new text.

        Raises:
            OSError: If the write fails
        """
        pass


class SnapshotStorageInterface(ABC):
    """
    Persistence for the whole AppData snapshot.

    Implementations never raise from load() or save(): local persistence
    must not be able to take the session down.
    """

    @abstractmethod
    def load(self) -> AppData:
        """
        Read the snapshot at startup.

        Missing or malformed data yields empty collections, decided per
        collection so one bad field does not blank out the others.
        """
        pass

    @abstractmethod
    def save(self, snapshot: AppData) -> bool:
        """
        Write the full snapshot.

        Returns:
            True if written, False if the write failed (already logged)
        """
        pass


class StorageError(Exception):
    """Base exception for local storage operations."""
    pass


class FormatError(StorageError):
    """A backup payload is not JSON or not shaped like a snapshot."""
    pass
