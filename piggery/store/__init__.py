"""Record store package."""

from piggery.store.record_store import (
    Commit,
    DuplicateSaleError,
    RecordNotFoundError,
    RecordStore,
    RecordStoreError,
    ReferentialIntegrityError,
    add_bulk_sale,
    add_feed,
    add_misc,
    add_pigs,
    add_sale,
    build_pig_batch,
    delete_feed,
    delete_misc,
    delete_pig,
    delete_sale,
    distribute_bulk_sale,
    filter_pigs,
    update_feed,
    update_misc,
    update_pig,
    update_sale,
)

__all__ = [
    "Commit",
    "DuplicateSaleError",
    "RecordNotFoundError",
    "RecordStore",
    "RecordStoreError",
    "ReferentialIntegrityError",
    "add_bulk_sale",
    "add_feed",
    "add_misc",
    "add_pigs",
    "add_sale",
    "build_pig_batch",
    "delete_feed",
    "delete_misc",
    "delete_pig",
    "delete_sale",
    "distribute_bulk_sale",
    "filter_pigs",
    "update_feed",
    "update_misc",
    "update_pig",
    "update_sale",
]
