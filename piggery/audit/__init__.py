"""Sync activity logging package."""

from piggery.audit.logger import SyncActivityLog, configure_logging

__all__ = ["SyncActivityLog", "configure_logging"]
