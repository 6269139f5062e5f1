"""
Piggery Ledger - Source Package

Record keeping for small-scale swine operations: animals, feed purchases,
sales and miscellaneous expenses, with a local JSON snapshot and an optional
backup to a single file in the user's Google Drive.

DESIGN PRINCIPLES:
1. The snapshot is the unit of persistence and sync - always moved whole
2. Every mutation returns a new snapshot; persisting it is an explicit step
3. Remote failures are reported, never retried behind the user's back
4. Destructive replacement of local data needs explicit confirmation
"""

__version__ = "1.5.0"
__author__ = "Piggery Ledger Team"
