"""Pluggable storage backends.

Provides one storefront contract over different persistence mechanisms:

- **MemoryBackend**: In-memory maps with autoincrement ids
- **SQLiteBackend**: Relational tables on SQLite
- **DocumentBackend**: MongoDB collections with ObjectId translation

All backends share validation, cart merging rules and order snapshots
through ``StorageBackend``.
"""

from .base import StorageBackend
from .document import DocumentBackend, ReconciliationReport
from .memory import MemoryBackend
from .sqlite import SQLiteBackend

__all__ = [
    "StorageBackend",
    "DocumentBackend",
    "MemoryBackend",
    "ReconciliationReport",
    "SQLiteBackend",
]
