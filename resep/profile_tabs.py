"""
Profile page tabs: favorites and "my reviews".

ProfileTabs is the consumer of the favorites materializer and the review
reconciliation pipeline. It decides when they run:

- entering the favorites tab materializes the current favorite ids
- entering the reviews tab reconciles the user's reviews (served from the TTL
  cache when a recent report exists)
- a favorites change (from this tab or another one) marks the favorites stale;
  they are re-materialized the next time the tab is selected, on the thread
  of the session that owns the tabs

Every load is tagged with a generation token. Leaving a tab, or starting a new
load for it, moves the generation on. A result that arrives with an outdated
token is dropped instead of being applied to a view that is no longer shown.
"""

import logging
import threading
from typing import Dict, List, Optional

from resep.client import RecipeAPIClient, RecipeAPIError
from resep.favorites import FavoriteChange, FavoritesStore, materialize_favorites
from resep.identity import ProfileStore
from resep.models import RecipeDetail, ReconciledReview, ReconciliationReport
from resep.reviews import reconcile_with_report
from resep.utils.cache import get_cached_reviews, invalidate_reviews, make_reviews_cache_key, set_cached_reviews

logger = logging.getLogger(__name__)

TAB_FAVORITES = "favorites"
TAB_REVIEWS = "reviews"
TABS = (TAB_FAVORITES, TAB_REVIEWS)

FAVORITES_ERROR_MESSAGE = "Gagal memuat favorit"
REVIEWS_ERROR_MESSAGE = "Gagal memuat ulasan"


class ProfileTabs:
    """
    State of the profile page's favorites/reviews tabs.

    Args:
        client: Recipe API client
        favorites_store: Favorites of the current user
        profile_store: Identity of the current user
        max_workers: Concurrency cap for per-item fetches
    """

    def __init__(
        self,
        client: RecipeAPIClient,
        favorites_store: FavoritesStore,
        profile_store: ProfileStore,
        max_workers: Optional[int] = None,
    ) -> None:
        self.client = client
        self.favorites_store = favorites_store
        self.profile_store = profile_store
        self.max_workers = max_workers

        self.active_tab: Optional[str] = None
        self.favorites: List[RecipeDetail] = []
        self.favorites_loading = False
        self.favorites_error: Optional[str] = None
        self.favorites_dirty = False
        self.reviews_report: Optional[ReconciliationReport] = None
        self.reviews_loading = False
        self.reviews_error: Optional[str] = None

        self._generations: Dict[str, int] = {tab: 0 for tab in TABS}
        self._lock = threading.Lock()
        self._unsubscribe_favorites = favorites_store.on_change(self._on_favorite_change)

    @property
    def reviews(self) -> List[ReconciledReview]:
        return self.reviews_report.reviews if self.reviews_report else []

    def select_tab(self, tab: str, refresh: bool = False) -> None:
        """
        Switch to tab and load its data.

        Selecting the tab that is already active only reloads when refresh=True,
        or for the favorites tab, when favorites changed since the last load.
        """
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab!r}")
        stale = tab == TAB_FAVORITES and self.favorites_dirty
        if tab == self.active_tab and not refresh and not stale:
            return

        with self._lock:
            previous = self.active_tab
            if previous is not None and previous != tab:
                self._generations[previous] += 1
            self.active_tab = tab

        if tab == TAB_FAVORITES:
            self.load_favorites()
        else:
            self.load_reviews(refresh=refresh)

    def deactivate(self) -> None:
        """The profile page is no longer shown: drop any in-flight result."""
        with self._lock:
            for tab in TABS:
                self._generations[tab] += 1
            self.active_tab = None
            self.favorites_loading = False
            self.reviews_loading = False

    def close(self) -> None:
        self.deactivate()
        self._unsubscribe_favorites()

    # Favorites

    def begin_favorites_load(self) -> int:
        with self._lock:
            self._generations[TAB_FAVORITES] += 1
            self.favorites_loading = True
            self.favorites_error = None
            self.favorites_dirty = False
            return self._generations[TAB_FAVORITES]

    def fetch_favorites(self) -> List[RecipeDetail]:
        return materialize_favorites(self.client, self.favorites_store.list(), max_workers=self.max_workers)

    def apply_favorites(self, token: int, recipes: Optional[List[RecipeDetail]], error: Optional[str] = None) -> bool:
        """
        Apply a favorites load result if token is still current.

        Returns:
            True if applied, False if the result was stale and dropped
        """
        with self._lock:
            if not self._is_current(TAB_FAVORITES, token):
                logger.debug("Dropping stale favorites result (token=%d)", token)
                return False
            self.favorites_loading = False
            if error is not None:
                self.favorites_error = error
                self.favorites = []
            else:
                self.favorites = list(recipes or [])
            return True

    def load_favorites(self) -> bool:
        token = self.begin_favorites_load()
        try:
            recipes = self.fetch_favorites()
        except Exception as e:
            logger.error("Error loading favorites: %s", e, exc_info=True)
            return self.apply_favorites(token, None, error=FAVORITES_ERROR_MESSAGE)
        return self.apply_favorites(token, recipes)

    # Reviews

    def _cache_key(self, user_identifier: str):
        return make_reviews_cache_key(user_identifier, getattr(self.client, "base_url", None))

    def begin_reviews_load(self) -> int:
        with self._lock:
            self._generations[TAB_REVIEWS] += 1
            self.reviews_loading = True
            self.reviews_error = None
            return self._generations[TAB_REVIEWS]

    def fetch_reviews(self, refresh: bool = False) -> ReconciliationReport:
        """
        Reconcile the current user's reviews, using the cache unless refresh=True.

        Raises:
            RecipeAPIError: If the catalog could not be drained
        """
        profile = self.profile_store.get_profile()
        key = self._cache_key(profile.identifier)
        if not refresh:
            cached = get_cached_reviews(key)
            if cached is not None:
                logger.debug("Serving reviews of %s from cache", profile.identifier)
                return cached

        report = reconcile_with_report(
            self.client,
            profile.identifier,
            profile.username,
            max_workers=self.max_workers,
        )
        set_cached_reviews(key, report)
        return report

    def apply_reviews(
        self,
        token: int,
        report: Optional[ReconciliationReport],
        error: Optional[str] = None,
    ) -> bool:
        """
        Apply a reviews load result if token is still current.

        Returns:
            True if applied, False if the result was stale and dropped
        """
        with self._lock:
            if not self._is_current(TAB_REVIEWS, token):
                logger.debug("Dropping stale reviews result (token=%d)", token)
                return False
            self.reviews_loading = False
            if error is not None:
                self.reviews_error = error
                self.reviews_report = None
            else:
                self.reviews_report = report
            return True

    def load_reviews(self, refresh: bool = False) -> bool:
        token = self.begin_reviews_load()
        try:
            report = self.fetch_reviews(refresh=refresh)
        except RecipeAPIError as e:
            logger.error("Error loading reviews: %s", e)
            return self.apply_reviews(token, None, error=REVIEWS_ERROR_MESSAGE)
        except Exception as e:
            logger.error("Unexpected error loading reviews: %s", e, exc_info=True)
            return self.apply_reviews(token, None, error=REVIEWS_ERROR_MESSAGE)
        return self.apply_reviews(token, report)

    def invalidate_reviews_cache(self) -> None:
        invalidate_reviews(self._cache_key(self.profile_store.get_identifier()))

    def forget_user(self) -> None:
        """
        Drop the local identity ("forget me").

        The cached reviews of the old identifier are discarded and the next
        profile read starts a new identity with the default profile.
        """
        self.invalidate_reviews_cache()
        self.profile_store.reset()
        self.deactivate()
        with self._lock:
            self.reviews_report = None
            self.reviews_error = None
        logger.info("Local user identity was reset")

    def _is_current(self, tab: str, token: int) -> bool:
        return self.active_tab == tab and self._generations[tab] == token

    def _on_favorite_change(self, change: FavoriteChange) -> None:
        logger.debug("Favorite %s changed (%s), source=%s", change.recipe_id, change.is_favorited, change.source)
        self.favorites_dirty = True
