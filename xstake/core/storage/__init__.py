"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- The ledger event journal
- Accounting snapshots
- Ledger metadata
"""

from xstake.core.storage.sqlite_adapter import SQLiteAdapter
from xstake.core.storage.storage_manager import StorageManager, JournalEntry

__all__ = ["SQLiteAdapter", "StorageManager", "JournalEntry"]
