"""Pick the assignment store backend once, at startup."""

from __future__ import annotations

import logging
from pathlib import Path

from santalink.config import SantalinkConfig
from santalink.store.base import AssignmentStore
from santalink.store.document import JsonDocumentStore
from santalink.store.memory import MemoryStore
from santalink.store.sql import SqlStore

logger = logging.getLogger("santalink.store")

BACKENDS = ("auto", "database", "local-json", "memory")


def open_store(config: SantalinkConfig) -> AssignmentStore:
    """Build the store named by config.store_backend.

    "auto" uses the database when a URL is configured, else the local document.
    """
    backend = config.store_backend
    if backend == "auto":
        backend = "database" if config.database_url else "local-json"

    if backend == "database":
        if not config.database_url:
            raise ValueError("store_backend 'database' requires a database_url")
        store: AssignmentStore = SqlStore(config.database_url, timeout=config.store_timeout)
    elif backend == "local-json":
        store = JsonDocumentStore(Path(config.data_dir), timeout=config.store_timeout)
    elif backend == "memory":
        store = MemoryStore()
    else:
        raise ValueError(f"unknown store backend {backend!r}; expected one of {BACKENDS}")

    logger.info("Assignment store: %s", store.mode)
    return store
