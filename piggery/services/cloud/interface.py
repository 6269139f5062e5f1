"""
Abstract Cloud Backup Interface

DESIGN DECISION: The sync protocol only needs four things from a remote
store - find a file by name, create it, overwrite it, download it - and one
thing from an identity provider - a credential the store accepts.

Google Drive + Google OAuth is the shipped pair, but any provider with
find/create/update/get semantics can be dropped in, and tests use
in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel


class RemoteFile(BaseModel):
    """Handle to a file in the remote store."""
    id: str
    name: str


class IdentityProviderInterface(ABC):
    """Obtains a short-lived access credential for the remote store."""

    @abstractmethod
    def prepare(self, client_id: str) -> None:
        """
        Construct the client library objects for `client_id`.

        Called once from CloudSyncClient.ready(). Must not open the consent
        screen.

        Raises:
            ConfigError: If the client configuration is unusable
        """
        pass

    @abstractmethod
    def authenticate(self) -> Any:
        """
        Run the consent flow and return an opaque credential.

        Blocking; the sync client runs it in a worker thread.

        Raises:
            AuthError: If the user cancels/denies or the token request fails
        """
        pass


class RemoteStoreInterface(ABC):
    """
    A file store addressed by name.

    All methods are blocking and raise NetworkError (or AuthError when the
    credential was rejected) on failure.
    """

    @abstractmethod
    def find_file(self, name: str) -> list[RemoteFile]:
        """List non-trashed files with exactly this name."""
        pass

    @abstractmethod
    def create_file(self, name: str, content: str) -> RemoteFile:
        """Create a new JSON file with the given content."""
        pass

    @abstractmethod
    def update_file(self, file_id: str, name: str, content: str) -> RemoteFile:
        """Overwrite an existing file's content in place."""
        pass

    @abstractmethod
    def download_file(self, file_id: str) -> str:
        """
        Return the raw content of a file.

        Raises:
            FormatError: If the content is not UTF-8 text
        """
        pass


class SyncError(Exception):
    """Base exception for cloud sync operations."""
    pass


class AuthError(SyncError):
    """Consent denied, token request failed, or the token was rejected."""
    pass


class ConfigError(AuthError):
    """No usable client ID is configured (missing or placeholder)."""
    pass


class NetworkError(SyncError):
    """A remote call failed or timed out."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SyncBusyError(SyncError):
    """Another sync operation is still in flight."""
    pass
