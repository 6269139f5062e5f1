"""
Cloud Sync Client

Backs the whole snapshot up to one well-known file in the remote store and
restores it from there.

Session state:
    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED
plus a busy flag, orthogonal to the state. Every remote operation reads
and then writes the same remote file, so only one may be in flight: a
second request while busy is rejected with SyncBusyError, never queued
behind or interleaved with the first.

KNOWN HAZARD: there is no version check before overwriting the remote
file. If two devices back up, the last one wins.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from piggery.audit.logger import SyncActivityLog
from piggery.config import GoogleDriveSettings, get_settings, is_placeholder_client_id
from piggery.models.audit import SyncOperation
from piggery.models.records import AppData
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
from piggery.services.storage.codec import decode_snapshot, encode_snapshot
from piggery.services.storage.interface import FormatError
from piggery.services.storage.local_json import ClientIdStore


class SessionState(str, Enum):
    """Authentication state of a sync session."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class CloudSyncClient:
    """
    Remote backup/restore of the AppData snapshot.

    Operations raise typed SyncError subclasses (and FormatError for a
    corrupt backup); the session layer turns them into user messages.
    Nothing is retried automatically.
    """

    def __init__(
        self,
        identity: IdentityProviderInterface,
        remote_factory: Callable[[Any], RemoteStoreInterface],
        client_ids: ClientIdStore,
        activity_log: Optional[SyncActivityLog] = None,
        settings: Optional[GoogleDriveSettings] = None,
    ):
        self._identity = identity
        self._remote_factory = remote_factory
        self._client_ids = client_ids
        self._log = activity_log or SyncActivityLog()
        self._settings = settings or get_settings().google_drive

        self._state = SessionState.UNAUTHENTICATED
        self._busy = False
        self._prepared_for: Optional[str] = None
        self._remote: Optional[RemoteStoreInterface] = None
        self._last_synced: Optional[datetime] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_ready(self) -> bool:
        return self._prepared_for is not None

    @property
    def last_synced(self) -> Optional[datetime]:
        return self._last_synced

    @property
    def file_name(self) -> str:
        return self._settings.file_name

    @asynccontextmanager
    async def _exclusive(self, operation: SyncOperation):
        if self._busy:
            self._log.warning(operation, "Another sync is still running, request ignored.")
            raise SyncBusyError("A sync operation is already in progress")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _active_client_id(self, operation: SyncOperation) -> str:
        client_id = self._client_ids.get_active_client_id()
        if is_placeholder_client_id(client_id):
            self._log.warning(
                operation,
                "Ready: Please set Client ID above to enable Cloud Sync.",
            )
            raise ConfigError(
                "Please configure your Google Client ID in the System Menu first."
            )
        return client_id

    # -------------------------------------------------------------------------
    # Initialization & authentication
    # -------------------------------------------------------------------------

    async def ready(self, timeout: Optional[float] = None) -> None:
        """
        Construct the identity client for the active client ID.

        Resolves once the client library is set up, or fails explicitly
        after `timeout` seconds (default: settings.ready_timeout_seconds).

        Raises:
            ConfigError: Placeholder/missing client ID or unusable config
            NetworkError: Initialization did not finish in time
        """
        client_id = self._active_client_id(SyncOperation.INIT)
        if timeout is None:
            timeout = self._settings.ready_timeout_seconds

        self._log.info(SyncOperation.INIT, "Initializing Google API...")
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._identity.prepare, client_id),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            self._log.error(SyncOperation.INIT, f"Init Error: timed out after {timeout:g}s")
            raise NetworkError(
                f"Google API did not initialize within {timeout:g} seconds"
            ) from e
        except ConfigError as e:
            self._log.error(SyncOperation.INIT, f"Init Error: {e}", e)
            raise

        self._prepared_for = client_id
        self._log.info(SyncOperation.INIT, "API Readiness: Ready.")

    async def authenticate(self) -> None:
        """
        Sign in and obtain an access credential.

        The client ID is checked before anything touches the network.

        Raises:
            SyncBusyError: Another operation is in flight
            ConfigError: No usable client ID
            AuthError: Consent denied or token request failed
            NetworkError: Initialization timed out
        """
        async with self._exclusive(SyncOperation.AUTH):
            client_id = self._active_client_id(SyncOperation.AUTH)
            if self._prepared_for != client_id:
                await self.ready()

            self._state = SessionState.AUTHENTICATING
            self._log.info(SyncOperation.AUTH, "Opening Google Sign-in...")
            try:
                credentials = await asyncio.to_thread(self._identity.authenticate)
                self._remote = self._remote_factory(credentials)
                self._state = SessionState.AUTHENTICATED
            except SyncError as e:
                self._log.error(SyncOperation.AUTH, f"Error: {e}", e)
                raise
            finally:
                if self._state == SessionState.AUTHENTICATING:
                    self._state = SessionState.UNAUTHENTICATED
                    self._remote = None

            self._log.info(SyncOperation.AUTH, "Authentication Successful.")

    def sign_out(self) -> None:
        """Forget the access credential."""
        self._remote = None
        self._state = SessionState.UNAUTHENTICATED

    def _require_remote(self) -> RemoteStoreInterface:
        if self._state != SessionState.AUTHENTICATED or self._remote is None:
            raise AuthError("Not signed in to Google Drive")
        return self._remote

    async def _call(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except AuthError:
            # The token was rejected; make the user sign in again.
            self.sign_out()
            raise

    # -------------------------------------------------------------------------
    # Remote operations
    # -------------------------------------------------------------------------

    async def _find(self, remote: RemoteStoreInterface) -> Optional[RemoteFile]:
        matches = await self._call(remote.find_file, self.file_name)
        if not matches:
            return None
        if len(matches) > 1:
            self._log.warning(
                SyncOperation.FIND,
                f"Found {len(matches)} files named {self.file_name}, using the first.",
                file_ids=[m.id for m in matches],
            )
        return matches[0]

    async def find_remote_snapshot(self) -> Optional[RemoteFile]:
        """Locate the well-known backup file, or None if there is none."""
        async with self._exclusive(SyncOperation.FIND):
            remote = self._require_remote()
            try:
                return await self._find(remote)
            except SyncError as e:
                self._log.error(SyncOperation.FIND, f"Search Error: {e}", e)
                raise

    async def save(self, snapshot: AppData) -> RemoteFile:
        """
        Upload the full snapshot.

        Overwrites the existing backup file in place, or creates it.
        """
        async with self._exclusive(SyncOperation.SAVE):
            remote = self._require_remote()
            self._log.info(SyncOperation.SAVE, "Syncing to Drive...")
            content = encode_snapshot(snapshot)
            try:
                existing = await self._find(remote)
                if existing is not None:
                    remote_file = await self._call(
                        remote.update_file, existing.id, self.file_name, content
                    )
                else:
                    remote_file = await self._call(
                        remote.create_file, self.file_name, content
                    )
            except SyncError as e:
                self._log.error(SyncOperation.SAVE, f"Save Error: {e}", e)
                raise

            self._last_synced = datetime.now()
            self._log.info(
                SyncOperation.SAVE,
                "Cloud Sync Complete.",
                file_id=remote_file.id,
                created=existing is None,
            )
            return remote_file

    async def load(self) -> Optional[AppData]:
        """
        Download the backup.

        Returns:
            The decoded snapshot, or None when no backup exists yet. The
            caller decides whether to adopt it.

        Raises:
            FormatError: The backup exists but is not a valid snapshot
        """
        async with self._exclusive(SyncOperation.LOAD):
            remote = self._require_remote()
            self._log.info(SyncOperation.LOAD, "Downloading Backup...")
            try:
                existing = await self._find(remote)
                if existing is None:
                    self._log.info(SyncOperation.LOAD, "No backup file found in your Drive.")
                    return None
                raw = await self._call(remote.download_file, existing.id)
                snapshot = decode_snapshot(raw, strict=True)
            except (SyncError, FormatError) as e:
                self._log.error(SyncOperation.LOAD, f"Restore Error: {e}", e)
                raise

            self._log.info(
                SyncOperation.LOAD,
                "Backup downloaded.",
                pigs=len(snapshot.pigs),
                sales=len(snapshot.sale_records),
            )
            return snapshot
