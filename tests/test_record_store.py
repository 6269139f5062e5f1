"""Tests for the Record Store mutations."""

from datetime import date

import pytest

from piggery.models import AppData, FeedRecord, MiscRecord, Pig, PigStatus, SaleRecord
from piggery.store import (
    DuplicateSaleError,
    RecordNotFoundError,
    RecordStore,
    ReferentialIntegrityError,
    add_bulk_sale,
    add_sale,
    build_pig_batch,
    delete_pig,
    delete_sale,
    distribute_bulk_sale,
    filter_pigs,
    update_pig,
    update_sale,
)


def _pig(pig_id: str, born: date = date(2025, 1, 1), status=PigStatus.RAISING) -> Pig:
    return Pig(id=pig_id, tag_id=pig_id.upper(), date_of_birth=born, initial_weight=10,
               status=status)


def _sale(sale_id: str, pig_id: str) -> SaleRecord:
    return SaleRecord(id=sale_id, pig_id=pig_id, sale_date=date(2025, 6, 1),
                      sale_weight=100, sale_price_per_kg=150, total_revenue=15000)


class TestPigBatch:
    """Tests for registering pigs."""

    def test_single_pig_keeps_tag(self):
        pigs = build_pig_batch("S-1", 1, date(2025, 1, 1), 10.0)
        assert [p.tag_id for p in pigs] == ["S-1"]

    def test_batch_suffixes_tags(self):
        pigs = build_pig_batch("S-1", 3, date(2025, 1, 1), 10.0, purchase_cost=2000)
        assert [p.tag_id for p in pigs] == ["S-1-1", "S-1-2", "S-1-3"]
        assert len({p.id for p in pigs}) == 3
        assert all(p.purchase_cost == 2000 for p in pigs)

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValueError):
            build_pig_batch("S-1", 0, date(2025, 1, 1), 10.0)

    def test_add_pigs_does_not_mutate_input(self):
        store = RecordStore()
        before = store.snapshot
        commit = store.add_pigs(build_pig_batch("S", 2, date(2025, 1, 1), 10.0))
        assert commit.persist is True
        assert len(commit.snapshot.pigs) == 2
        assert before.pigs == ()


class TestPigRegistry:
    """Tests for updating, deleting and listing pigs."""

    def test_update_unknown_pig_raises(self):
        with pytest.raises(RecordNotFoundError):
            RecordStore().update_pig(_pig("ghost"))

    def test_update_replaces_by_id(self):
        store = RecordStore(AppData(pigs=(_pig("p1"),)))
        updated = store.snapshot.pigs[0].model_copy(update={"status": PigStatus.DECEASED})
        store.update_pig(updated)
        assert store.snapshot.get_pig("p1").status == PigStatus.DECEASED

    def test_delete_pig_cascades_to_sales(self):
        snapshot = AppData(
            pigs=(_pig("p1", status=PigStatus.SOLD), _pig("p2", status=PigStatus.SOLD)),
            sale_records=(_sale("s1", "p1"), _sale("s2", "p2")),
        )
        result = delete_pig(snapshot, "p1")
        assert [p.id for p in result.pigs] == ["p2"]
        assert [s.id for s in result.sale_records] == ["s2"]

    def test_delete_pig_leaves_feed_records(self):
        snapshot = AppData(
            pigs=(_pig("p1"),),
            feed_records=(FeedRecord(id="f1", pig_id="p1", date_purchased=date(2025, 1, 1),
                                     cost=100, amount_kg=5),),
        )
        result = delete_pig(snapshot, "p1")
        assert result.feed_records[0].pig_id == "p1"

    def test_delete_unknown_pig_raises(self):
        with pytest.raises(RecordNotFoundError):
            delete_pig(AppData(), "ghost")

    def test_filter_and_order(self):
        snapshot = AppData(pigs=(
            _pig("old", born=date(2024, 1, 1)),
            _pig("new", born=date(2025, 1, 1), status=PigStatus.SOLD),
            _pig("mid", born=date(2024, 6, 1)),
        ))
        assert [p.id for p in filter_pigs(snapshot)] == ["new", "mid", "old"]
        assert [p.id for p in filter_pigs(snapshot, order="oldest")] == ["old", "mid", "new"]
        assert [p.id for p in filter_pigs(snapshot, status=PigStatus.RAISING)] == ["mid", "old"]

    def test_filter_unknown_order(self):
        with pytest.raises(ValueError):
            filter_pigs(AppData(), order="tallest")


class TestSales:
    """Tests for the sale / status coupling."""

    def test_sale_marks_pig_sold(self):
        result = add_sale(AppData(pigs=(_pig("p1"),)), _sale("s1", "p1"))
        assert result.get_pig("p1").status == PigStatus.SOLD
        assert len(result.sale_records) == 1

    def test_delete_sale_reverts_to_raising(self):
        snapshot = add_sale(AppData(pigs=(_pig("p1"),)), _sale("s1", "p1"))
        result = delete_sale(snapshot, "s1")
        assert result.get_pig("p1").status == PigStatus.RAISING
        assert result.sale_records == ()

    def test_sale_for_unknown_pig_rejected(self):
        with pytest.raises(ReferentialIntegrityError):
            add_sale(AppData(), _sale("s1", "ghost"))

    def test_sale_for_deceased_pig_rejected(self):
        snapshot = AppData(pigs=(_pig("p1", status=PigStatus.DECEASED),))
        with pytest.raises(ReferentialIntegrityError):
            add_sale(snapshot, _sale("s1", "p1"))

    def test_second_sale_rejected(self):
        snapshot = add_sale(AppData(pigs=(_pig("p1"),)), _sale("s1", "p1"))
        with pytest.raises(DuplicateSaleError):
            add_sale(snapshot, _sale("s2", "p1"))

    def test_rejected_sale_leaves_store_unchanged(self):
        store = RecordStore(AppData(pigs=(_pig("p1"),)))
        before = store.snapshot
        with pytest.raises(ReferentialIntegrityError):
            store.add_sale(_sale("s1", "ghost"))
        assert store.snapshot is before

    def test_update_sale_moves_to_other_pig(self):
        snapshot = add_sale(AppData(pigs=(_pig("p1"), _pig("p2"))), _sale("s1", "p1"))
        result = update_sale(snapshot, _sale("s1", "p2"))
        assert result.get_pig("p1").status == PigStatus.RAISING
        assert result.get_pig("p2").status == PigStatus.SOLD
        assert result.sale_records[0].pig_id == "p2"

    def test_update_sale_same_pig(self):
        snapshot = add_sale(AppData(pigs=(_pig("p1"),)), _sale("s1", "p1"))
        changed = snapshot.sale_records[0].model_copy(update={"total_revenue": 16000.0})
        result = update_sale(snapshot, changed)
        assert result.sale_records[0].total_revenue == 16000.0
        assert result.get_pig("p1").status == PigStatus.SOLD

    def test_update_unknown_sale_raises(self):
        with pytest.raises(RecordNotFoundError):
            update_sale(AppData(pigs=(_pig("p1"),)), _sale("ghost", "p1"))


class TestBulkSale:
    """Tests for splitting a group sale."""

    def test_even_split(self):
        sales = distribute_bulk_sale(["a", "b", "c"], 3000.0, 150.0, date(2025, 6, 1))
        assert len(sales) == 3
        for sale in sales:
            assert sale.total_revenue == pytest.approx(1000.0)
            assert sale.sale_weight == pytest.approx(50.0)
            assert sale.sale_price_per_kg == pytest.approx(20.0)
        assert sum(s.total_revenue for s in sales) == pytest.approx(3000.0)

    def test_zero_weight_gives_zero_price(self):
        sales = distribute_bulk_sale(["a", "b"], 1000.0, 0.0, date(2025, 6, 1))
        assert all(s.sale_price_per_kg == 0.0 for s in sales)
        assert all(s.total_revenue == pytest.approx(500.0) for s in sales)

    def test_requires_pigs_and_revenue(self):
        with pytest.raises(ValueError):
            distribute_bulk_sale([], 1000.0, 10.0, date(2025, 6, 1))
        with pytest.raises(ValueError):
            distribute_bulk_sale(["a"], 0.0, 10.0, date(2025, 6, 1))

    def test_bulk_sale_marks_all_sold(self):
        snapshot = AppData(pigs=(_pig("a"), _pig("b"), _pig("c")))
        sales = distribute_bulk_sale(["a", "b"], 2000.0, 100.0, date(2025, 6, 1))
        result = add_bulk_sale(snapshot, sales)
        assert result.get_pig("a").status == PigStatus.SOLD
        assert result.get_pig("b").status == PigStatus.SOLD
        assert result.get_pig("c").status == PigStatus.RAISING

    def test_bulk_sale_is_all_or_nothing(self):
        snapshot = add_sale(AppData(pigs=(_pig("a"), _pig("b"))), _sale("s1", "b"))
        sales = distribute_bulk_sale(["a", "b"], 2000.0, 100.0, date(2025, 6, 1))
        with pytest.raises(DuplicateSaleError):
            add_bulk_sale(snapshot, sales)

    def test_same_pig_twice_rejected(self):
        snapshot = AppData(pigs=(_pig("a"),))
        sales = distribute_bulk_sale(["a", "a"], 2000.0, 100.0, date(2025, 6, 1))
        with pytest.raises(DuplicateSaleError):
            add_bulk_sale(snapshot, sales)


class TestFeedAndMisc:
    """Tests for the independent collections."""

    def test_feed_crud(self):
        store = RecordStore()
        record = FeedRecord(id="f1", date_purchased=date(2025, 1, 1), cost=500, amount_kg=25)
        store.add_feed(record)
        store.update_feed(record.model_copy(update={"cost": 600.0}))
        assert store.snapshot.feed_records[0].cost == 600.0
        store.delete_feed("f1")
        assert store.snapshot.feed_records == ()

    def test_misc_crud(self):
        store = RecordStore()
        record = MiscRecord(id="m1", expense_date=date(2025, 1, 1), item="Hose", cost=250)
        store.add_misc(record)
        store.update_misc(record.model_copy(update={"category": "Maintenance"}))
        assert store.snapshot.misc_records[0].category == "Maintenance"
        store.delete_misc("m1")
        assert store.snapshot.misc_records == ()

    def test_delete_unknown_misc_raises(self):
        with pytest.raises(RecordNotFoundError):
            RecordStore().delete_misc("ghost")


class TestPigStatusRules:
    """SOLD follows the sale records; only RAISING/DECEASED are set by hand."""

    def test_cannot_unsell_pig_with_sale(self):
        snapshot = add_sale(AppData(pigs=(_pig("p1"),)), _sale("s1", "p1"))
        pig = snapshot.get_pig("p1")
        with pytest.raises(ReferentialIntegrityError):
            update_pig(snapshot, pig.model_copy(update={"status": PigStatus.RAISING}))
        with pytest.raises(ReferentialIntegrityError):
            update_pig(snapshot, pig.model_copy(update={"status": PigStatus.DECEASED}))

    def test_cannot_mark_sold_without_sale(self):
        snapshot = AppData(pigs=(_pig("p1"),))
        with pytest.raises(ReferentialIntegrityError):
            update_pig(snapshot, _pig("p1", status=PigStatus.SOLD))

    def test_sold_pig_details_can_change(self):
        snapshot = add_sale(AppData(pigs=(_pig("p1"),)), _sale("s1", "p1"))
        pig = snapshot.get_pig("p1").model_copy(update={"notes": "Sold to market"})
        assert update_pig(snapshot, pig).get_pig("p1").notes == "Sold to market"

    def test_mark_deceased(self):
        result = update_pig(AppData(pigs=(_pig("p1"),)), _pig("p1", status=PigStatus.DECEASED))
        assert result.get_pig("p1").status == PigStatus.DECEASED
