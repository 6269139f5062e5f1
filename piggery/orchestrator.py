"""
Main Orchestrator for Piggery Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Record keeping (mutate -> commit -> persist locally)
2. File backup (export to a dated JSON file, import with confirmation)
3. Cloud backup (connect -> backup / restore with confirmation)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every accepted mutation is saved locally, as an explicit step
- Nothing replaces local data without the user confirming first
- A malformed import or backup never touches local data
- Cloud and storage failures end here as one readable message

Record Store precondition errors (unknown id, selling a pig twice) are NOT
caught here; they are programming or form-validation mistakes and propagate
to the caller.
"""

from datetime import date
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, ConfigDict

from piggery.analytics import summarize
from piggery.audit import SyncActivityLog, configure_logging
from piggery.config import AppSettings, get_settings
from piggery.models.audit import SyncOperation
from piggery.models.records import (
    AppData,
    FarmStats,
    FeedRecord,
    MiscRecord,
    Pig,
    PigStatus,
    SaleRecord,
)
from piggery.services.cloud import (
    AuthError,
    CloudSyncClient,
    ConfigError,
    GoogleOAuthIdentity,
    SyncBusyError,
    SyncError,
    drive_client_factory,
)
from piggery.services.storage import (
    ClientIdStore,
    FormatError,
    LocalKeyValueStore,
    LocalSnapshotStorage,
    SnapshotStorageInterface,
)
from piggery.services.storage.codec import encode_snapshot, export_filename, parse_import
from piggery.store import (
    Commit,
    RecordStore,
    build_pig_batch,
    distribute_bulk_sale,
    filter_pigs,
)


logger = structlog.get_logger(__name__)


IMPORT_CONFIRM_PROMPT = "This will replace all current data. Proceed?"
RESTORE_CONFIRM_PROMPT = (
    "WARNING: This will replace your local data with the cloud backup. Continue?"
)

BUSY_MESSAGE = "A cloud sync is already running. Please wait for it to finish."


class OperationResult(BaseModel):
    """Outcome of a user-initiated flow, ready to show as-is."""
    model_config = ConfigDict(frozen=True)

    ok: bool
    message: str
    snapshot: Optional[AppData] = None


class FarmSession:
    """
    One user session over one data directory.

    Owns the Record Store (the authoritative in-memory snapshot), the local
    snapshot and credential slots, the cloud sync client and its activity
    trail.
    """

    def __init__(
        self,
        snapshot_storage: SnapshotStorageInterface,
        client_ids: ClientIdStore,
        sync_client: CloudSyncClient,
        activity_log: Optional[SyncActivityLog] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = snapshot_storage
        self._client_ids = client_ids
        self._sync = sync_client
        self._activity_log = activity_log or SyncActivityLog()
        self._settings = settings or get_settings().app

        self._store = RecordStore(snapshot_storage.load())
        self._last_save_ok = True

        snapshot = self._store.snapshot
        logger.info(
            "session_started",
            pigs=len(snapshot.pigs),
            feed_records=len(snapshot.feed_records),
            sale_records=len(snapshot.sale_records),
            misc_records=len(snapshot.misc_records),
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> AppData:
        return self._store.snapshot

    @property
    def sync(self) -> CloudSyncClient:
        return self._sync

    @property
    def activity_log(self) -> SyncActivityLog:
        return self._activity_log

    @property
    def last_save_ok(self) -> bool:
        """False if the most recent local save failed."""
        return self._last_save_ok

    def _commit(self, commit: Commit) -> AppData:
        if commit.persist:
            self._last_save_ok = self._storage.save(commit.snapshot)
            if not self._last_save_ok:
                self._activity_log.error(
                    SyncOperation.STORAGE,
                    "Local save failed. Changes are kept in memory only.",
                )
        return commit.snapshot

    def stats(self) -> FarmStats:
        return summarize(self.snapshot)

    def money(self, amount: float) -> str:
        """Format an amount with the configured currency symbol."""
        return f"{self._settings.currency_symbol}{amount:,.2f}"

    def pigs(self, status: Optional[PigStatus] = None, order: str = "newest") -> list[Pig]:
        return filter_pigs(self.snapshot, status=status, order=order)

    # -------------------------------------------------------------------------
    # Pigs
    # -------------------------------------------------------------------------

    def register_pigs(
        self,
        tag_id: str,
        quantity: int,
        date_of_birth: date,
        initial_weight: float,
        purchase_cost: Optional[float] = None,
        notes: Optional[str] = None,
        status: PigStatus = PigStatus.RAISING,
    ) -> list[Pig]:
        """Register one pig, or a batch of `quantity` with suffixed tags."""
        pigs = build_pig_batch(
            tag_id,
            quantity,
            date_of_birth,
            initial_weight,
            purchase_cost=purchase_cost,
            notes=notes,
            status=status,
        )
        self._commit(self._store.add_pigs(pigs))
        return pigs

    def update_pig(self, pig: Pig) -> AppData:
        return self._commit(self._store.update_pig(pig))

    def delete_pig(self, pig_id: str) -> AppData:
        return self._commit(self._store.delete_pig(pig_id))

    # -------------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------------

    def record_sale(
        self,
        pig_id: str,
        sale_date: date,
        sale_weight: float,
        sale_price_per_kg: float,
    ) -> SaleRecord:
        """Sell one pig at weight x price per kg."""
        sale = SaleRecord.individual(pig_id, sale_date, sale_weight, sale_price_per_kg)
        self._commit(self._store.add_sale(sale))
        return sale

    def record_bulk_sale(
        self,
        pig_ids: Sequence[str],
        total_revenue: float,
        total_weight: float,
        sale_date: date,
    ) -> list[SaleRecord]:
        """Sell a group of pigs for one total, split evenly."""
        sales = distribute_bulk_sale(pig_ids, total_revenue, total_weight, sale_date)
        self._commit(self._store.add_bulk_sale(sales))
        return sales

    def update_sale(self, sale: SaleRecord) -> AppData:
        return self._commit(self._store.update_sale(sale))

    def delete_sale(self, sale_id: str, pig_id: Optional[str] = None) -> AppData:
        return self._commit(self._store.delete_sale(sale_id, pig_id))

    # -------------------------------------------------------------------------
    # Feed & misc
    # -------------------------------------------------------------------------

    def add_feed(self, record: FeedRecord) -> AppData:
        return self._commit(self._store.add_feed(record))

    def update_feed(self, record: FeedRecord) -> AppData:
        return self._commit(self._store.update_feed(record))

    def delete_feed(self, record_id: str) -> AppData:
        return self._commit(self._store.delete_feed(record_id))

    def add_misc(self, record: MiscRecord) -> AppData:
        return self._commit(self._store.add_misc(record))

    def update_misc(self, record: MiscRecord) -> AppData:
        return self._commit(self._store.update_misc(record))

    def delete_misc(self, record_id: str) -> AppData:
        return self._commit(self._store.delete_misc(record_id))

    # -------------------------------------------------------------------------
    # File backup
    # -------------------------------------------------------------------------

    def export_payload(self, today: Optional[date] = None) -> tuple[str, str]:
        """
        Build a downloadable backup.

        Returns:
            (filename, pretty-printed JSON)
        """
        today = today or date.today()
        return export_filename(today), encode_snapshot(self.snapshot, pretty=True)

    def export_backup(self, directory: Union[str, Path], today: Optional[date] = None) -> Path:
        """Write the backup file into `directory` and return its path."""
        filename, content = self.export_payload(today)
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_text(content, encoding="utf-8")
        self._activity_log.info(SyncOperation.EXPORT, f"Exported {filename}", path=str(path))
        return path

    def import_backup(
        self,
        payload: Union[str, bytes],
        confirm: Callable[[], bool],
    ) -> OperationResult:
        """
        Replace all data with the contents of a backup file.

        The file is fully validated before the user is asked anything.
        """
        try:
            candidate = parse_import(payload)
        except FormatError as e:
            self._activity_log.error(SyncOperation.IMPORT, "Import rejected: invalid file", e)
            return OperationResult(
                ok=False,
                message="Invalid file format. Please upload a valid PiggeryPro JSON backup.",
            )

        if not confirm():
            return OperationResult(ok=False, message="Import cancelled.")

        snapshot = self._commit(self._store.replace(candidate))
        self._activity_log.info(
            SyncOperation.IMPORT,
            "Data imported.",
            pigs=len(snapshot.pigs),
        )
        return OperationResult(ok=True, message="Data imported successfully!", snapshot=snapshot)

    # -------------------------------------------------------------------------
    # Cloud backup
    # -------------------------------------------------------------------------

    def active_client_id(self) -> str:
        return self._client_ids.get_active_client_id()

    def set_client_id(self, client_id: str) -> OperationResult:
        """Store a pasted Google OAuth client ID; it wins over the configured default."""
        client_id = (client_id or "").strip()
        if len(client_id) <= 10:
            return OperationResult(ok=False, message="That does not look like a Google Client ID.")
        try:
            self._client_ids.set_client_id(client_id)
        except OSError as e:
            self._activity_log.error(SyncOperation.CONFIG, "Could not save Client ID", e)
            return OperationResult(ok=False, message=f"Could not save the Client ID: {e}")

        # Credentials issued to the previous client are no longer usable.
        self._sync.sign_out()
        self._activity_log.info(SyncOperation.CONFIG, "Client ID saved.")
        return OperationResult(ok=True, message="Client ID saved.")

    async def connect_cloud(self) -> OperationResult:
        try:
            await self._sync.authenticate()
        except SyncBusyError:
            return OperationResult(ok=False, message=BUSY_MESSAGE)
        except ConfigError:
            return OperationResult(
                ok=False,
                message=(
                    "Configuration Required: Please paste your Google Client ID "
                    'into the "Configuration" card above.'
                ),
            )
        except SyncError as e:
            return OperationResult(ok=False, message=f"Failed to connect: {e}")
        return OperationResult(ok=True, message="Connected to Google Drive.")

    async def backup_to_cloud(self) -> OperationResult:
        """Upload the current snapshot, overwriting the previous backup."""
        try:
            await self._sync.save(self.snapshot)
        except SyncBusyError:
            return OperationResult(ok=False, message=BUSY_MESSAGE)
        except AuthError as e:
            return OperationResult(ok=False, message=f"Sync failed: {e}")
        except SyncError:
            return OperationResult(
                ok=False,
                message="Sync failed. Please check your connection or permissions.",
            )
        return OperationResult(ok=True, message="Data successfully synced to Google Drive!")

    async def restore_from_cloud(self, confirm: Callable[[], bool]) -> OperationResult:
        """
        Replace local data with the cloud backup.

        Confirmation is asked before anything is downloaded. A missing or
        corrupt backup leaves local data untouched.
        """
        if self._sync.is_busy:
            return OperationResult(ok=False, message=BUSY_MESSAGE)
        if not confirm():
            return OperationResult(ok=False, message="Restore cancelled.")

        try:
            candidate = await self._sync.load()
        except SyncBusyError:
            return OperationResult(ok=False, message=BUSY_MESSAGE)
        except AuthError as e:
            return OperationResult(ok=False, message=f"Failed to load from Drive: {e}")
        except (SyncError, FormatError):
            return OperationResult(ok=False, message="Failed to load from Drive.")

        if candidate is None:
            return OperationResult(
                ok=False,
                message="No PiggeryPro backup was found on your Google Drive.",
            )

        snapshot = self._commit(self._store.replace(candidate))
        self._activity_log.info(SyncOperation.LOAD, "Restore Complete.")
        return OperationResult(
            ok=True,
            message="Data successfully restored from cloud!",
            snapshot=snapshot,
        )


def create_app_components(data_dir: Optional[Union[str, Path]] = None) -> FarmSession:
    """
    Factory function to create all application components.

    Args:
        data_dir: Directory for the local slots. Defaults to
                  PIGGERY_DATA_DIR (~/.piggery).

    Returns:
        A FarmSession with its snapshot loaded from disk
    """
    settings = get_settings()
    app_settings = settings.app
    drive_settings = settings.google_drive

    configure_logging(app_settings.log_level)

    kv = LocalKeyValueStore(Path(data_dir) if data_dir else app_settings.data_dir)
    client_ids = ClientIdStore(kv, default_client_id=drive_settings.client_id)
    activity_log = SyncActivityLog(max_entries=app_settings.activity_log_size)

    sync_client = CloudSyncClient(
        identity=GoogleOAuthIdentity(drive_settings),
        remote_factory=drive_client_factory(drive_settings),
        client_ids=client_ids,
        activity_log=activity_log,
        settings=drive_settings,
    )

    return FarmSession(
        snapshot_storage=LocalSnapshotStorage(kv),
        client_ids=client_ids,
        sync_client=sync_client,
        activity_log=activity_log,
        settings=app_settings,
    )
