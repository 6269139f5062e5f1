"""
Shared fixtures and in-memory fakes.

No test talks to Google: the identity provider and the remote store are
replaced by the fakes below, and local slots live in pytest's tmp_path.
"""

import threading
from datetime import date
from typing import Optional

import pytest

from piggery.audit import SyncActivityLog
from piggery.config import AppSettings, GoogleDriveSettings
from piggery.models import AppData, FeedRecord, MiscRecord, Pig, PigStatus, SaleRecord
from piggery.services.cloud import (
    AuthError,
    CloudSyncClient,
    IdentityProviderInterface,
    NetworkError,
    RemoteFile,
    RemoteStoreInterface,
)
from piggery.services.storage import ClientIdStore, LocalKeyValueStore


VALID_CLIENT_ID = "1234567890-abcdef.apps.googleusercontent.com"


class FakeIdentity(IdentityProviderInterface):
    def __init__(self):
        self.prepared: list[str] = []
        self.deny = False
        self.prepare_delay: Optional[float] = None

    def prepare(self, client_id: str) -> None:
        if self.prepare_delay:
            threading.Event().wait(self.prepare_delay)
        self.prepared.append(client_id)

    def authenticate(self):
        if self.deny:
            raise AuthError("Authentication failed: access_denied")
        return "fake-credentials"


class FakeRemoteStore(RemoteStoreInterface):
    """Files kept in a dict; every call is recorded."""

    def __init__(self):
        self.files: dict[str, tuple[str, str]] = {}
        self.calls: list[str] = []
        self.credentials = None
        self.fail_with: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self._next_id = 1

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.fail_with is not None:
            raise self.fail_with

    def find_file(self, name: str) -> list[RemoteFile]:
        self._enter("find")
        return [
            RemoteFile(id=file_id, name=file_name)
            for file_id, (file_name, _) in self.files.items()
            if file_name == name
        ]

    def create_file(self, name: str, content: str) -> RemoteFile:
        self._enter("create")
        file_id = f"file-{self._next_id}"
        self._next_id += 1
        self.files[file_id] = (name, content)
        return RemoteFile(id=file_id, name=name)

    def update_file(self, file_id: str, name: str, content: str) -> RemoteFile:
        self._enter("update")
        if file_id not in self.files:
            raise NetworkError("File not found", status_code=404)
        self.files[file_id] = (name, content)
        return RemoteFile(id=file_id, name=name)

    def download_file(self, file_id: str) -> str:
        self._enter("download")
        return self.files[file_id][1]


@pytest.fixture
def drive_settings() -> GoogleDriveSettings:
    return GoogleDriveSettings(ready_timeout_seconds=2.0)


@pytest.fixture
def app_settings(tmp_path) -> AppSettings:
    return AppSettings(data_dir=tmp_path, currency_symbol="₱")


@pytest.fixture
def kv(tmp_path) -> LocalKeyValueStore:
    return LocalKeyValueStore(tmp_path)


@pytest.fixture
def client_ids(kv) -> ClientIdStore:
    store = ClientIdStore(kv)
    store.set_client_id(VALID_CLIENT_ID)
    return store


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def activity_log() -> SyncActivityLog:
    return SyncActivityLog()


@pytest.fixture
def sync_client(identity, remote, client_ids, activity_log, drive_settings) -> CloudSyncClient:
    def factory(credentials):
        remote.credentials = credentials
        return remote

    return CloudSyncClient(
        identity=identity,
        remote_factory=factory,
        client_ids=client_ids,
        activity_log=activity_log,
        settings=drive_settings,
    )


@pytest.fixture
def sample_snapshot() -> AppData:
    """Two pigs (one sold), two feed purchases, one expense."""
    raising = Pig(
        id="pig-1",
        tag_id="A-1",
        date_of_birth=date(2025, 1, 10),
        initial_weight=12.0,
        purchase_cost=2500.0,
    )
    sold = Pig(
        id="pig-2",
        tag_id="A-2",
        date_of_birth=date(2025, 1, 5),
        initial_weight=11.5,
        purchase_cost=2500.0,
        status=PigStatus.SOLD,
    )
    return AppData(
        pigs=(raising, sold),
        feed_records=(
            FeedRecord(id="feed-1", date_purchased=date(2025, 2, 1), cost=500.0, amount_kg=25.0),
            FeedRecord(id="feed-2", date_purchased=date(2025, 2, 11), cost=1500.0, amount_kg=50.0,
                       feed_type="Grower"),
        ),
        sale_records=(
            SaleRecord(id="sale-1", pig_id="pig-2", sale_date=date(2025, 6, 1),
                       sale_weight=100.0, sale_price_per_kg=180.0, total_revenue=18000.0),
        ),
        misc_records=(
            MiscRecord(id="misc-1", expense_date=date(2025, 3, 1), item="Vitamins",
                       cost=300.0, category="Medicine"),
        ),
    )
