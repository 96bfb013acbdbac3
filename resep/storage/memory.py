"""
In-memory storage backend.

Process-local and non-persistent. Used in tests and as the fallback when
RESEP_DATABASE_URL is not set. All Streamlit sessions of one server process
can share a single instance, which is what makes writes in one browser tab
visible to the others.
"""

from typing import Dict, Optional

from .base import StorageBackend


class MemoryStorage(StorageBackend):
    """Dictionary-backed StorageBackend."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        super().__init__()
        self._data: Dict[str, str] = dict(initial or {})

    def _read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _write(self, key: str, value: str) -> None:
        self._data[key] = value

    def _delete(self, key: str) -> None:
        self._data.pop(key, None)
