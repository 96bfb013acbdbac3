"""
Storage backends for persisted local state.

This package contains:
- base: StorageBackend interface and StorageEvent
- memory: in-memory backend (tests, no RESEP_DATABASE_URL)
- sql: SQLAlchemy key/value backend
"""

import logging
from typing import Optional

from resep.config import StorageConfig

from .base import StorageBackend, StorageEvent, StorageListener
from .memory import MemoryStorage

logger = logging.getLogger(__name__)


def create_storage(database_url: Optional[str] = None) -> StorageBackend:
    """
    Create the storage backend selected by configuration.

    Args:
        database_url: SQLAlchemy URL. Defaults to RESEP_DATABASE_URL; when neither
            is set an in-memory backend is returned.

    Returns:
        A StorageBackend instance
    """
    url = database_url or StorageConfig.get_database_url()
    if not url:
        logger.info("RESEP_DATABASE_URL not set, local state is kept in memory")
        return MemoryStorage()

    from .sql import SQLStorage

    return SQLStorage(url)


__all__ = [
    "StorageBackend",
    "StorageEvent",
    "StorageListener",
    "MemoryStorage",
    "create_storage",
]
