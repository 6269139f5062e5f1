"""Flow tests for FarmSession."""

import json
from datetime import date

import pytest

from piggery.models import AppData, EventSeverity, PigStatus, SyncOperation
from piggery.orchestrator import BUSY_MESSAGE, FarmSession, create_app_components
from piggery.services.cloud import NetworkError
from piggery.services.storage import ClientIdStore, LocalSnapshotStorage, SnapshotStorageInterface
from piggery.store import DuplicateSaleError


class FailingStorage(SnapshotStorageInterface):
    def load(self) -> AppData:
        return AppData()

    def save(self, snapshot: AppData) -> bool:
        return False


@pytest.fixture
def session(kv, client_ids, sync_client, activity_log, app_settings) -> FarmSession:
    return FarmSession(
        snapshot_storage=LocalSnapshotStorage(kv),
        client_ids=client_ids,
        sync_client=sync_client,
        activity_log=activity_log,
        settings=app_settings,
    )


def _never():
    raise AssertionError("confirmation should not have been asked")


class TestRecordKeeping:
    def test_mutations_are_persisted(self, session, kv, client_ids, sync_client, app_settings):
        session.register_pigs("S-1", 3, date(2025, 1, 1), 10.0, purchase_cost=2000)

        reopened = FarmSession(LocalSnapshotStorage(kv), client_ids, sync_client,
                               settings=app_settings)
        assert [p.tag_id for p in reopened.snapshot.pigs] == ["S-1-1", "S-1-2", "S-1-3"]

    def test_sale_flow(self, session):
        pig = session.register_pigs("A", 1, date(2025, 1, 1), 10.0)[0]
        sale = session.record_sale(pig.id, date(2025, 6, 1), 100.0, 180.0)

        assert session.snapshot.get_pig(pig.id).status == PigStatus.SOLD
        assert session.stats().total_revenue == pytest.approx(18000.0)

        session.delete_sale(sale.id)
        assert session.snapshot.get_pig(pig.id).status == PigStatus.RAISING

    def test_bulk_sale(self, session):
        pigs = session.register_pigs("B", 3, date(2025, 1, 1), 10.0)
        sales = session.record_bulk_sale([p.id for p in pigs], 3000.0, 150.0, date(2025, 6, 1))
        assert [s.total_revenue for s in sales] == pytest.approx([1000.0] * 3)
        assert session.stats().sold_count == 3

    def test_rejected_mutation_propagates(self, session):
        pig = session.register_pigs("A", 1, date(2025, 1, 1), 10.0)[0]
        session.record_sale(pig.id, date(2025, 6, 1), 100.0, 180.0)
        with pytest.raises(DuplicateSaleError):
            session.record_sale(pig.id, date(2025, 6, 2), 90.0, 180.0)
        assert len(session.snapshot.sale_records) == 1

    def test_failed_save_is_reported(self, client_ids, sync_client, app_settings):
        session = FarmSession(FailingStorage(), client_ids, sync_client, settings=app_settings)
        session.register_pigs("A", 1, date(2025, 1, 1), 10.0)
        assert not session.last_save_ok
        assert len(session.snapshot.pigs) == 1
        last = session.activity_log.events[-1]
        assert last.operation == SyncOperation.STORAGE
        assert last.severity == EventSeverity.ERROR

    def test_money_format(self, session):
        assert session.money(1234.5) == "₱1,234.50"


class TestFileBackup:
    def test_export_backup(self, session, tmp_path):
        session.register_pigs("A", 1, date(2025, 1, 1), 10.0)
        path = session.export_backup(tmp_path / "exports", today=date(2025, 3, 1))

        assert path.name == "piggery-data-2025-03-01.json"
        content = path.read_text(encoding="utf-8")
        assert "\n  " in content
        assert json.loads(content)["animals"][0]["tagId"] == "A"

    def test_malformed_import_leaves_state(self, session):
        session.register_pigs("A", 1, date(2025, 1, 1), 10.0)
        before = session.snapshot

        result = session.import_backup("definitely not json", confirm=_never)

        assert not result.ok
        assert result.message.startswith("Invalid file format")
        assert session.snapshot is before

    def test_import_cancelled(self, session, sample_snapshot):
        payload = json.dumps(sample_snapshot.to_document())
        result = session.import_backup(payload, confirm=lambda: False)
        assert not result.ok
        assert session.snapshot.is_empty

    def test_import_replaces_and_persists(self, session, kv, sample_snapshot):
        payload = json.dumps(sample_snapshot.to_document())
        result = session.import_backup(payload, confirm=lambda: True)

        assert result.ok
        assert result.snapshot == sample_snapshot
        assert LocalSnapshotStorage(kv).load() == sample_snapshot


class TestCloudBackup:
    def test_set_client_id(self, session, kv):
        result = session.set_client_id("  new-client-id.apps.googleusercontent.com ")
        assert result.ok
        assert session.active_client_id() == "new-client-id.apps.googleusercontent.com"
        assert ClientIdStore(kv).get_active_client_id() == "new-client-id.apps.googleusercontent.com"

    def test_set_short_client_id_rejected(self, session):
        assert not session.set_client_id("abc").ok

    @pytest.mark.asyncio
    async def test_connect_without_client_id(self, kv, sync_client, activity_log, app_settings):
        no_id = ClientIdStore(kv, key="unset_slot")
        sync_client._client_ids = no_id
        session = FarmSession(LocalSnapshotStorage(kv), no_id, sync_client, activity_log,
                              app_settings)

        result = await session.connect_cloud()

        assert not result.ok
        assert result.message.startswith("Configuration Required")

    @pytest.mark.asyncio
    async def test_backup_without_connecting(self, session):
        result = await session.backup_to_cloud()
        assert not result.ok

    @pytest.mark.asyncio
    async def test_backup_and_restore(self, session, remote):
        assert (await session.connect_cloud()).ok
        session.register_pigs("A", 2, date(2025, 1, 1), 10.0)

        backup = await session.backup_to_cloud()
        assert backup.ok
        assert len(remote.files) == 1

        session.delete_pig(session.snapshot.pigs[0].id)
        restore = await session.restore_from_cloud(confirm=lambda: True)

        assert restore.ok
        assert len(session.snapshot.pigs) == 2

    @pytest.mark.asyncio
    async def test_backup_network_failure(self, session, remote):
        await session.connect_cloud()
        remote.fail_with = NetworkError("offline")
        result = await session.backup_to_cloud()
        assert not result.ok
        assert "Sync failed" in result.message

    @pytest.mark.asyncio
    async def test_restore_asks_before_any_remote_call(self, session, remote):
        await session.connect_cloud()
        result = await session.restore_from_cloud(confirm=lambda: False)
        assert not result.ok
        assert remote.calls == []

    @pytest.mark.asyncio
    async def test_restore_without_backup(self, session):
        await session.connect_cloud()
        session.register_pigs("A", 1, date(2025, 1, 1), 10.0)

        result = await session.restore_from_cloud(confirm=lambda: True)

        assert not result.ok
        assert result.message == "No PiggeryPro backup was found on your Google Drive."
        assert len(session.snapshot.pigs) == 1

    @pytest.mark.asyncio
    async def test_corrupt_backup_leaves_state(self, session, remote):
        await session.connect_cloud()
        session.register_pigs("A", 1, date(2025, 1, 1), 10.0)
        before = session.snapshot
        remote.files["bad"] = ("piggery-pro-cloud-data.json", '{"animals": "oops"}')

        result = await session.restore_from_cloud(confirm=lambda: True)

        assert not result.ok
        assert result.message == "Failed to load from Drive."
        assert session.snapshot is before

    @pytest.mark.asyncio
    async def test_restore_while_busy(self, session, sync_client):
        sync_client._busy = True
        result = await session.restore_from_cloud(confirm=_never)
        assert result.message == BUSY_MESSAGE


def test_create_app_components(tmp_path):
    session = create_app_components(data_dir=tmp_path)
    assert session.snapshot.is_empty
    assert session.sync.file_name == "piggery-pro-cloud-data.json"
    assert session.activity_log.lines() == []
