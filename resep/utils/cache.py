"""
In-process TTL cache for reconciled reviews.

Reconciling a user's reviews costs one request per catalog page plus one per
recipe. Switching between the favorites and reviews tabs would repeat all of
that; this cache keeps the last report per user for a short time instead.

The cache is process-local and in-memory, with expiration based on TTL.
Streamlit sessions in the same process share it, which is harmless: entries
are keyed by user identifier.
"""

import threading
import time
from typing import Dict, Hashable, Optional, Tuple

from resep.config import CatalogConfig
from resep.models import ReconciliationReport

# Key -> (timestamp, cached report)
_REVIEWS_CACHE: Dict[Hashable, Tuple[float, ReconciliationReport]] = {}
_LOCK = threading.Lock()


def make_reviews_cache_key(user_identifier: str, base_url: Optional[str] = None) -> Hashable:
    """
    Create a cache key for a reconciliation run.

    Args:
        user_identifier: Identifier the reviews are matched against
        base_url: API base URL, so that two backends never share entries

    Returns:
        Hashable cache key (tuple)
    """
    return (user_identifier or "", (base_url or "").rstrip("/"))


def get_cached_reviews(key: Hashable, ttl_seconds: Optional[float] = None) -> Optional[ReconciliationReport]:
    """
    Retrieve a cached report if it exists and hasn't expired.

    Args:
        key: Cache key from make_reviews_cache_key()
        ttl_seconds: Maximum age (defaults to RESEP_REVIEWS_CACHE_TTL)

    Returns:
        Cached report, or None if not found or expired
    """
    ttl = ttl_seconds if ttl_seconds is not None else CatalogConfig.get_reviews_cache_ttl()
    now = time.time()
    with _LOCK:
        entry = _REVIEWS_CACHE.get(key)
        if not entry:
            return None

        timestamp, value = entry
        if now - timestamp > ttl:
            _REVIEWS_CACHE.pop(key, None)
            return None
        return value


def set_cached_reviews(key: Hashable, value: ReconciliationReport) -> None:
    """Store a reconciliation report in the cache."""
    with _LOCK:
        _REVIEWS_CACHE[key] = (time.time(), value)


def invalidate_reviews(key: Hashable) -> None:
    """Drop the cached report for key (e.g. after the user posted a review)."""
    with _LOCK:
        _REVIEWS_CACHE.pop(key, None)


def clear_cache() -> None:
    """Clear all cached reports (useful for testing)."""
    with _LOCK:
        _REVIEWS_CACHE.clear()


def get_cache_size() -> int:
    """Get the current number of cached entries."""
    return len(_REVIEWS_CACHE)
