"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- Period pools and user positions
- Owner fee balances and the stop flag
"""

from crossauction.core.storage.sqlite_adapter import SQLiteAdapter
from crossauction.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
