"""
Record Store

DESIGN DECISION: Every operation is a pure function from one AppData to a
new AppData. Nothing is mutated in place, so a snapshot handed to the UI or
to the cloud uploader stays valid while the user keeps editing.

The RecordStore class is the single owner of the current snapshot. Its
mutating methods return a Commit - the new snapshot plus the intent to
persist it - and the caller performs the save as a separate, explicit step.

Cross-record rules enforced here:
- deleting a pig deletes its sales
- recording a sale marks the pig SOLD; deleting the sale reverts it to RAISING
- a sale must reference an existing pig, and a pig has at most one sale
"""

from datetime import date
from typing import Iterable, NamedTuple, Optional, Sequence

from piggery.models.records import (
    AppData,
    FeedRecord,
    MiscRecord,
    Pig,
    PigStatus,
    SaleRecord,
)


class RecordStoreError(Exception):
    """Base exception for rejected mutations."""
    pass


class RecordNotFoundError(RecordStoreError):
    """No record with the given id exists in the collection."""
    pass


class ReferentialIntegrityError(RecordStoreError):
    """A record references a pig that does not exist (or cannot be sold)."""
    pass


class DuplicateSaleError(RecordStoreError):
    """The pig already has a sale recorded against it."""
    pass


class Commit(NamedTuple):
    """Result of a mutation: the new snapshot and whether to persist it."""
    snapshot: AppData
    persist: bool = True


# =============================================================================
# HELPERS
# =============================================================================

def _replace_by_id(records: Sequence, record, kind: str) -> tuple:
    if not any(r.id == record.id for r in records):
        raise RecordNotFoundError(f"{kind} not found: {record.id}")
    return tuple(record if r.id == record.id else r for r in records)


def _remove_by_id(records: Sequence, record_id: str, kind: str) -> tuple:
    remaining = tuple(r for r in records if r.id != record_id)
    if len(remaining) == len(records):
        raise RecordNotFoundError(f"{kind} not found: {record_id}")
    return remaining


def _with_status(pigs: Iterable[Pig], pig_ids: set[str], status: PigStatus) -> tuple:
    return tuple(
        p.model_copy(update={"status": status}) if p.id in pig_ids else p
        for p in pigs
    )


def _check_can_sell(
    snapshot: AppData,
    pig_id: str,
    ignore_sale_id: Optional[str] = None,
) -> None:
    pig = snapshot.get_pig(pig_id)
    if pig is None:
        raise ReferentialIntegrityError(f"Cannot record a sale for unknown pig: {pig_id}")
    if pig.status == PigStatus.DECEASED:
        raise ReferentialIntegrityError(f"Cannot sell pig {pig.tag_id}: marked DECEASED")
    existing = [s for s in snapshot.sales_for_pig(pig_id) if s.id != ignore_sale_id]
    if existing:
        raise DuplicateSaleError(f"Pig {pig.tag_id} already has a sale recorded")


# =============================================================================
# PIGS
# =============================================================================

def build_pig_batch(
    tag_id: str,
    quantity: int,
    date_of_birth: date,
    initial_weight: float,
    purchase_cost: Optional[float] = None,
    notes: Optional[str] = None,
    status: PigStatus = PigStatus.RAISING,
) -> list[Pig]:
    """
    Build `quantity` pigs sharing the same details.

    With more than one pig, tags get a 1-based suffix:
    "S-1" x 3 -> "S-1-1", "S-1-2", "S-1-3".
    """
    if quantity < 1:
        raise ValueError("quantity must be at least 1")
    tag_id = tag_id.strip()
    return [
        Pig(
            tag_id=f"{tag_id}-{i + 1}" if quantity > 1 else tag_id,
            date_of_birth=date_of_birth,
            initial_weight=initial_weight,
            purchase_cost=purchase_cost,
            status=status,
            notes=notes,
        )
        for i in range(quantity)
    ]


def add_pigs(snapshot: AppData, pigs: Sequence[Pig]) -> AppData:
    return snapshot.model_copy(update={"pigs": snapshot.pigs + tuple(pigs)})


def update_pig(snapshot: AppData, pig: Pig) -> AppData:
    """
    Replace a pig by id.

    SOLD is owned by the sale records: a pig with a sale must stay SOLD,
    and a pig without one cannot be marked SOLD by hand.
    """
    if snapshot.get_pig(pig.id) is None:
        raise RecordNotFoundError(f"Pig not found: {pig.id}")
    has_sale = bool(snapshot.sales_for_pig(pig.id))
    if has_sale and pig.status != PigStatus.SOLD:
        raise ReferentialIntegrityError(
            f"Pig {pig.tag_id} has a sale recorded; delete the sale to change its status"
        )
    if not has_sale and pig.status == PigStatus.SOLD:
        raise ReferentialIntegrityError(
            f"Record a sale to mark pig {pig.tag_id} as SOLD"
        )
    return snapshot.model_copy(update={"pigs": _replace_by_id(snapshot.pigs, pig, "Pig")})


def delete_pig(snapshot: AppData, pig_id: str) -> AppData:
    """Remove a pig and every sale recorded against it."""
    return snapshot.model_copy(update={
        "pigs": _remove_by_id(snapshot.pigs, pig_id, "Pig"),
        "sale_records": tuple(s for s in snapshot.sale_records if s.pig_id != pig_id),
    })


def filter_pigs(
    snapshot: AppData,
    status: Optional[PigStatus] = None,
    order: str = "newest",
) -> list[Pig]:
    """Registry view: optional status filter, ordered by date of birth."""
    if order not in ("newest", "oldest"):
        raise ValueError(f"Unknown order: {order}")
    pigs = [p for p in snapshot.pigs if status is None or p.status == status]
    pigs.sort(key=lambda p: p.date_of_birth, reverse=(order == "newest"))
    return pigs


# =============================================================================
# SALES
# =============================================================================

def add_sale(snapshot: AppData, sale: SaleRecord) -> AppData:
    """Record a sale and mark its pig SOLD."""
    _check_can_sell(snapshot, sale.pig_id)
    return snapshot.model_copy(update={
        "pigs": _with_status(snapshot.pigs, {sale.pig_id}, PigStatus.SOLD),
        "sale_records": snapshot.sale_records + (sale,),
    })


def update_sale(snapshot: AppData, sale: SaleRecord) -> AppData:
    """
    Replace a sale by id.

    If the sale now points at a different pig, the old pig goes back to
    RAISING and the new one becomes SOLD.
    """
    old = next((s for s in snapshot.sale_records if s.id == sale.id), None)
    if old is None:
        raise RecordNotFoundError(f"Sale not found: {sale.id}")

    pigs = snapshot.pigs
    if old.pig_id != sale.pig_id:
        _check_can_sell(snapshot, sale.pig_id, ignore_sale_id=sale.id)
        pigs = _with_status(pigs, {old.pig_id}, PigStatus.RAISING)
        pigs = _with_status(pigs, {sale.pig_id}, PigStatus.SOLD)

    return snapshot.model_copy(update={
        "pigs": pigs,
        "sale_records": _replace_by_id(snapshot.sale_records, sale, "Sale"),
    })


def delete_sale(
    snapshot: AppData,
    sale_id: str,
    pig_id: Optional[str] = None,
) -> AppData:
    """
    Remove a sale and reset the pig to RAISING.

    pig_id defaults to the sale's own pig.
    """
    sale = next((s for s in snapshot.sale_records if s.id == sale_id), None)
    if sale is None:
        raise RecordNotFoundError(f"Sale not found: {sale_id}")
    target = pig_id or sale.pig_id
    return snapshot.model_copy(update={
        "pigs": _with_status(snapshot.pigs, {target}, PigStatus.RAISING),
        "sale_records": tuple(s for s in snapshot.sale_records if s.id != sale_id),
    })


def distribute_bulk_sale(
    pig_ids: Sequence[str],
    total_revenue: float,
    total_weight: float,
    sale_date: date,
) -> list[SaleRecord]:
    """
    Split a group sale evenly across the selected pigs.

    Each pig gets revenue/n and weight/n. The price per kg is the group
    price (revenue/weight), shared by every record, or 0 when no weight
    was entered. Pigs are not assumed to weigh the same; the even split
    is only used to apportion revenue.
    """
    if not pig_ids:
        raise ValueError("Select at least one pig for a bulk sale")
    if total_revenue <= 0:
        raise ValueError("Bulk sale total revenue must be greater than zero")
    if total_weight < 0:
        raise ValueError("Bulk sale total weight cannot be negative")

    count = len(pig_ids)
    price_per_kg = total_revenue / total_weight if total_weight > 0 else 0.0
    return [
        SaleRecord(
            pig_id=pig_id,
            sale_date=sale_date,
            sale_weight=total_weight / count,
            sale_price_per_kg=price_per_kg,
            total_revenue=total_revenue / count,
        )
        for pig_id in pig_ids
    ]


def add_bulk_sale(snapshot: AppData, sales: Sequence[SaleRecord]) -> AppData:
    """Record several sales at once. Either all are recorded or none."""
    seen: set[str] = set()
    for sale in sales:
        if sale.pig_id in seen:
            raise DuplicateSaleError(f"Pig selected twice in bulk sale: {sale.pig_id}")
        seen.add(sale.pig_id)
        _check_can_sell(snapshot, sale.pig_id)

    return snapshot.model_copy(update={
        "pigs": _with_status(snapshot.pigs, seen, PigStatus.SOLD),
        "sale_records": snapshot.sale_records + tuple(sales),
    })


# =============================================================================
# FEED & MISC
# =============================================================================

def add_feed(snapshot: AppData, record: FeedRecord) -> AppData:
    return snapshot.model_copy(update={"feed_records": snapshot.feed_records + (record,)})


def update_feed(snapshot: AppData, record: FeedRecord) -> AppData:
    return snapshot.model_copy(update={
        "feed_records": _replace_by_id(snapshot.feed_records, record, "Feed record"),
    })


def delete_feed(snapshot: AppData, record_id: str) -> AppData:
    return snapshot.model_copy(update={
        "feed_records": _remove_by_id(snapshot.feed_records, record_id, "Feed record"),
    })


def add_misc(snapshot: AppData, record: MiscRecord) -> AppData:
    return snapshot.model_copy(update={"misc_records": snapshot.misc_records + (record,)})


def update_misc(snapshot: AppData, record: MiscRecord) -> AppData:
    return snapshot.model_copy(update={
        "misc_records": _replace_by_id(snapshot.misc_records, record, "Expense"),
    })


def delete_misc(snapshot: AppData, record_id: str) -> AppData:
    return snapshot.model_copy(update={
        "misc_records": _remove_by_id(snapshot.misc_records, record_id, "Expense"),
    })


# =============================================================================
# OWNED STATE
# =============================================================================

class RecordStore:
    """
    Holder of the authoritative in-memory snapshot.

    There is exactly one per session; it is passed to whoever needs it
    rather than living in a module global. A rejected mutation raises and
    leaves the current snapshot untouched.
    """

    def __init__(self, snapshot: Optional[AppData] = None):
        self._snapshot = snapshot or AppData()

    @property
    def snapshot(self) -> AppData:
        return self._snapshot

    def _apply(self, snapshot: AppData) -> Commit:
        self._snapshot = snapshot
        return Commit(snapshot)

    def replace(self, snapshot: AppData) -> Commit:
        """Adopt a whole snapshot (import or cloud restore)."""
        return self._apply(snapshot)

    def add_pigs(self, pigs: Sequence[Pig]) -> Commit:
        return self._apply(add_pigs(self._snapshot, pigs))

    def update_pig(self, pig: Pig) -> Commit:
        return self._apply(update_pig(self._snapshot, pig))

    def delete_pig(self, pig_id: str) -> Commit:
        return self._apply(delete_pig(self._snapshot, pig_id))

    def add_sale(self, sale: SaleRecord) -> Commit:
        return self._apply(add_sale(self._snapshot, sale))

    def add_bulk_sale(self, sales: Sequence[SaleRecord]) -> Commit:
        return self._apply(add_bulk_sale(self._snapshot, sales))

    def update_sale(self, sale: SaleRecord) -> Commit:
        return self._apply(update_sale(self._snapshot, sale))

    def delete_sale(self, sale_id: str, pig_id: Optional[str] = None) -> Commit:
        return self._apply(delete_sale(self._snapshot, sale_id, pig_id))

    def add_feed(self, record: FeedRecord) -> Commit:
        return self._apply(add_feed(self._snapshot, record))

    def update_feed(self, record: FeedRecord) -> Commit:
        return self._apply(update_feed(self._snapshot, record))

    def delete_feed(self, record_id: str) -> Commit:
        return self._apply(delete_feed(self._snapshot, record_id))

    def add_misc(self, record: MiscRecord) -> Commit:
        return self._apply(add_misc(self._snapshot, record))

    def update_misc(self, record: MiscRecord) -> Commit:
        return self._apply(update_misc(self._snapshot, record))

    def delete_misc(self, record_id: str) -> Commit:
        return self._apply(delete_misc(self._snapshot, record_id))
