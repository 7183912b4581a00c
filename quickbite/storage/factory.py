"""Backend selection from configuration."""

import logging
from pathlib import Path
from typing import Any

from quickbite.core.exceptions import ConfigurationError
from quickbite.storage.backends import (
    DocumentBackend,
    MemoryBackend,
    SQLiteBackend,
    StorageBackend,
)
from quickbite.storage.backends.document import DEFAULT_DATABASE, DEFAULT_URI
from quickbite.storage.sessions import DEFAULT_SESSION_TTL

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "sqlite", "mongo")


def create_backend(config: dict[str, Any]) -> StorageBackend:
    """Build the backend named by ``config["backend"]``.

    Recognized keys: ``backend``, ``database`` (SQLite file),
    ``mongo_uri``, ``mongo_database`` and ``session_ttl``.
    """
    kind = str(config.get("backend") or "memory").lower()
    raw_ttl = config.get("session_ttl")
    try:
        session_ttl = float(DEFAULT_SESSION_TTL if raw_ttl is None else raw_ttl)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"session_ttl must be a number of seconds: {raw_ttl!r}"
        ) from None

    if kind == "memory":
        backend: StorageBackend = MemoryBackend(session_ttl=session_ttl)
    elif kind == "sqlite":
        database = config.get("database") or "quickbite.db"
        if database != ":memory:":
            Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
            database = Path(database).expanduser()
        backend = SQLiteBackend(database, session_ttl=session_ttl)
    elif kind == "mongo":
        backend = DocumentBackend(
            uri=config.get("mongo_uri") or DEFAULT_URI,
            database_name=config.get("mongo_database") or DEFAULT_DATABASE,
            session_ttl=session_ttl,
        )
    else:
        raise ConfigurationError(
            f"Unknown backend '{kind}'; expected one of: {', '.join(BACKENDS)}"
        )

    logger.debug(f"Using {backend.name} storage backend")
    return backend
