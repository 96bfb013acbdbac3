"""
Base storage backend for persisted local state.

Local state (favorites, user profile) lives in a flat string key/value store,
the same shape as a browser's localStorage. Backends implement _read, _write
and _delete; this base class owns listener bookkeeping and delivers a
StorageEvent to every subscriber after each change.

Each writer may pass an `origin` token. Subscribers compare it with their own
token to tell their own writes apart from writes made by another view or tab
sharing the same backend.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """A change to one key of the store."""
    key: str
    old_value: Optional[str]
    new_value: Optional[str]
    origin: Optional[str] = None


StorageListener = Callable[[StorageEvent], None]


class StorageBackend(ABC):
    """
    Abstract string key/value store with change subscriptions.

    Writes are last-writer-wins; there are no transactions across keys.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._listeners: List[StorageListener] = []

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def _write(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def _delete(self, key: str) -> None:
        pass

    def get(self, key: str) -> Optional[str]:
        """Return the stored string for key, or None if absent."""
        with self._lock:
            return self._read(key)

    def set(self, key: str, value: str, origin: Optional[str] = None) -> None:
        """
        Store value under key and notify subscribers.

        Subscribers are not notified when the value did not change.
        """
        with self._lock:
            old_value = self._read(key)
            self._write(key, value)
        if old_value != value:
            self._emit(StorageEvent(key=key, old_value=old_value, new_value=value, origin=origin))

    def remove(self, key: str, origin: Optional[str] = None) -> None:
        """Delete key (no-op if absent) and notify subscribers."""
        with self._lock:
            old_value = self._read(key)
            if old_value is None:
                return
            self._delete(key)
        self._emit(StorageEvent(key=key, old_value=old_value, new_value=None, origin=origin))

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        """
        Register a listener for changes to any key.

        Returns:
            A function that removes the listener when called
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: StorageEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error("Storage listener failed for key %r: %s", event.key, e, exc_info=True)
