"""
Local favorites store and favorites materializer.

Favorites are a list of unique recipe ids persisted as one JSON array under the
"favorites" key of a StorageBackend. Every view (and every browser tab) that
shows favorite state holds its own FavoritesStore on the shared backend:

- mutations made through a store are announced to that store's listeners
  with source="local"
- mutations made through another store on the same backend reach this store
  as a StorageEvent and are re-announced, one FavoriteChange per changed id,
  with source="storage"

Concurrent writers are last-writer-wins. Two tabs toggling in the same instant
may lose one of the updates.

A store is subscribed to the backend through a weak reference. Stores of
sessions that went away are dropped by the garbage collector without close().

Removing a favorite and adding it back straight away returns it to its old
position, so a double toggle leaves the persisted blob unchanged.

materialize_favorites() resolves favorite ids into full recipe records by
fetching each one from the API; ids that fail to resolve are left out.
"""

import json
import logging
import uuid
import weakref
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from resep.client import RecipeAPIClient
from resep.config import CatalogConfig
from resep.models import RecipeDetail
from resep.storage import StorageBackend, StorageEvent

logger = logging.getLogger(__name__)

FAVORITES_KEY = "favorites"


@dataclass(frozen=True)
class FavoriteChange:
    """Notification sent after a recipe's favorite state changed."""
    recipe_id: str
    is_favorited: bool
    source: str = "local"


FavoriteListener = Callable[[FavoriteChange], None]


def _parse_favorites(raw: Optional[str]) -> List[str]:
    """
    Parse the persisted favorites blob.

    Invalid JSON, a non-list value or non-string entries are treated as absent
    data. Duplicates are collapsed keeping the first occurrence.
    """
    if raw is None or raw == "":
        return []
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        logger.warning("Ignoring malformed favorites data: %s", e)
        return []
    if not isinstance(data, list):
        logger.warning("Ignoring favorites data of type %s", type(data).__name__)
        return []

    seen = set()
    ids: List[str] = []
    for item in data:
        if not isinstance(item, str) or item in seen:
            continue
        seen.add(item)
        ids.append(item)
    return ids


def _serialize_favorites(ids: List[str]) -> str:
    return json.dumps(ids, separators=(",", ":"))


def _subscribe_weakly(storage: StorageBackend, handler: Callable[[StorageEvent], None]) -> Callable[[], None]:
    """
    Subscribe a bound method without keeping its object alive.

    Once the object is garbage collected the subscription removes itself on
    the next event.
    """
    ref = weakref.WeakMethod(handler)

    def listener(event: StorageEvent) -> None:
        method = ref()
        if method is None:
            unsubscribe()
            return
        method(event)

    unsubscribe = storage.subscribe(listener)
    return unsubscribe


class FavoritesStore:
    """
    Favorites of the current user on a shared storage backend.

    Args:
        storage: Backend holding the favorites blob
        key: Storage key of the blob (default: "favorites")
    """

    def __init__(self, storage: StorageBackend, key: str = FAVORITES_KEY) -> None:
        self.storage = storage
        self.key = key
        self._origin = uuid.uuid4().hex
        self._listeners: List[FavoriteListener] = []
        # (recipe_id, index) of the last removal
        self._last_removed: Optional[Tuple[str, int]] = None
        self._unsubscribe_storage = _subscribe_weakly(storage, self._on_storage_event)

    def list(self) -> List[str]:
        """Return the favorite recipe ids in insertion order."""
        try:
            raw = self.storage.get(self.key)
        except Exception as e:
            logger.error("Failed to read favorites from storage: %s", e, exc_info=True)
            return []
        return _parse_favorites(raw)

    def has(self, recipe_id: str) -> bool:
        return recipe_id in self.list()

    def count(self) -> int:
        return len(self.list())

    def add(self, recipe_id: str) -> bool:
        """
        Add a recipe to favorites.

        Returns:
            True if the recipe was added, False if it was already a favorite
            or the write failed
        """
        favorites = self.list()
        if recipe_id in favorites:
            return False
        last_removed, self._last_removed = self._last_removed, None
        if last_removed is not None and last_removed[0] == recipe_id:
            favorites.insert(min(last_removed[1], len(favorites)), recipe_id)
        else:
            favorites.append(recipe_id)
        if not self._persist(favorites):
            return False
        self._notify(FavoriteChange(recipe_id=recipe_id, is_favorited=True))
        return True

    def remove(self, recipe_id: str) -> bool:
        """
        Remove a recipe from favorites.

        Returns:
            True if the recipe was removed, False if it was not a favorite
            or the write failed
        """
        favorites = self.list()
        if recipe_id not in favorites:
            return False
        index = favorites.index(recipe_id)
        favorites.remove(recipe_id)
        if not self._persist(favorites):
            return False
        self._last_removed = (recipe_id, index)
        self._notify(FavoriteChange(recipe_id=recipe_id, is_favorited=False))
        return True

    def toggle(self, recipe_id: str) -> bool:
        """
        Flip the favorite state of a recipe.

        Returns:
            The new favorite state. If the write fails the state is unchanged
            and the old state is returned.
        """
        if self.has(recipe_id):
            return not self.remove(recipe_id)
        return self.add(recipe_id)

    def on_change(self, listener: FavoriteListener) -> Callable[[], None]:
        """
        Register a listener for favorite changes (local and from other tabs).

        Returns:
            A function that removes the listener when called
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop receiving storage events and drop all listeners."""
        self._unsubscribe_storage()
        self._listeners.clear()

    def _persist(self, favorites: List[str]) -> bool:
        try:
            self.storage.set(self.key, _serialize_favorites(favorites), origin=self._origin)
        except Exception as e:
            logger.error("Failed to persist favorites: %s", e, exc_info=True)
            return False
        return True

    def _notify(self, change: FavoriteChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error("Favorites listener failed for %s: %s", change.recipe_id, e, exc_info=True)

    def _on_storage_event(self, event: StorageEvent) -> None:
        if event.key != self.key or event.origin == self._origin:
            return

        before = _parse_favorites(event.old_value)
        after = _parse_favorites(event.new_value)
        before_set = set(before)
        after_set = set(after)

        for recipe_id in before:
            if recipe_id not in after_set:
                self._notify(FavoriteChange(recipe_id=recipe_id, is_favorited=False, source="storage"))
        for recipe_id in after:
            if recipe_id not in before_set:
                self._notify(FavoriteChange(recipe_id=recipe_id, is_favorited=True, source="storage"))


def materialize_favorites(
    client: RecipeAPIClient,
    favorite_ids: Iterable[str],
    max_workers: Optional[int] = None,
) -> List[RecipeDetail]:
    """
    Resolve favorite recipe ids into full recipe records.

    Each id is fetched independently; fetches run concurrently on a thread pool
    capped at max_workers. An id whose fetch fails contributes nothing and
    never aborts the batch.

    Args:
        client: Recipe API client
        favorite_ids: Recipe ids to resolve (duplicates are fetched once)
        max_workers: Concurrency cap (defaults to RESEP_MAX_WORKERS)

    Returns:
        Resolved recipes in the order of favorite_ids, without the failed ones
    """
    ids = list(dict.fromkeys(favorite_ids))
    if not ids:
        return []

    workers = min(max_workers or CatalogConfig.get_max_workers(), len(ids))

    def fetch(recipe_id: str) -> Optional[RecipeDetail]:
        try:
            return client.get_recipe(recipe_id)
        except Exception as e:
            logger.warning("Error fetching favorite recipe %s: %s", recipe_id, e)
            return None

    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(fetch, ids))

    recipes = [recipe for recipe in results if recipe is not None]
    logger.info("Materialized %d of %d favorites", len(recipes), len(ids))
    return recipes
