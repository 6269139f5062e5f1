"""
Data Models Package

Pydantic models for every record the ledger keeps, the snapshot that
bundles them, derived stats and diagnostic sync events.
"""

from piggery.models.records import (
    FEED_TYPE_PRESETS,
    MISC_CATEGORY_PRESETS,
    AppData,
    FarmStats,
    FeedRecord,
    MiscRecord,
    Pig,
    PigStatus,
    SaleRecord,
    new_record_id,
)
from piggery.models.audit import (
    EventSeverity,
    SyncEvent,
    SyncOperation,
)

__all__ = [
    # Records
    "FEED_TYPE_PRESETS",
    "MISC_CATEGORY_PRESETS",
    "AppData",
    "FarmStats",
    "FeedRecord",
    "MiscRecord",
    "Pig",
    "PigStatus",
    "SaleRecord",
    "new_record_id",
    # Diagnostic events
    "EventSeverity",
    "SyncEvent",
    "SyncOperation",
]
