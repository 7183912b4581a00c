"""Storefront storage layer.

Provides one storage contract with interchangeable backend implementations:

- **Multiple backends**: Memory, SQLite and MongoDB behind ``StorageBackend``
- **Identifier translation**: numeric ids minted into document ObjectIds
- **Sessions**: login session stores owned by each backend
- **Event system**: notifications for storefront changes
- **Migrations**: copy a storefront between backends
"""

# Backend implementations
from quickbite.storage.backends.base import StorageBackend
from quickbite.storage.backends.document import DocumentBackend, ReconciliationReport
from quickbite.storage.backends.memory import MemoryBackend
from quickbite.storage.backends.sqlite import SQLiteBackend

# Event system
from quickbite.storage.events import Event, EventBus, EventPublisher, EventType

# Backend selection
from quickbite.storage.factory import BACKENDS, create_backend

# Identifier translation
from quickbite.storage.ids import numeric_id_for, object_id_for

# Migrations
from quickbite.storage.migrations import MigrationManager, MigrationStats

# Sessions
from quickbite.storage.sessions import MemorySessionStore, SessionStore

__all__ = [
    # Backends
    "StorageBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "DocumentBackend",
    "ReconciliationReport",
    "BACKENDS",
    "create_backend",
    # Ids
    "numeric_id_for",
    "object_id_for",
    # Events
    "EventType",
    "Event",
    "EventBus",
    "EventPublisher",
    # Migrations
    "MigrationStats",
    "MigrationManager",
    # Sessions
    "SessionStore",
    "MemorySessionStore",
]
