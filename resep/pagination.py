"""
Catalog pagination drainer.

Drains a paginated remote listing into one in-memory list. Pages are requested
strictly in order, one after the other: whether page N exists is only known
from the pagination metadata of page N-1.

There is no retry. A failed page fetch propagates to the caller, which decides
whether a partial catalog is acceptable (it usually is not: the remaining pages
cannot be discovered without the failed one).
"""

import logging
from typing import Any, Callable, Iterator, List, Tuple

from resep.config import CatalogConfig

logger = logging.getLogger(__name__)

CATALOG_PAGE_SIZE = 50

PageFetcher = Callable[[int], Any]


def catalog_page_size() -> int:
    """Page size used when draining the catalog (RESEP_PAGE_SIZE or 50)."""
    return CatalogConfig.get_page_size() or CATALOG_PAGE_SIZE


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _has_more(pagination: Any, requested_page: int) -> bool:
    if pagination is None:
        return False
    total_pages = _get(pagination, "total_pages")
    if total_pages is None:
        return False
    page = _get(pagination, "page")
    if page is None:
        page = requested_page
    try:
        return int(page) < int(total_pages)
    except (TypeError, ValueError):
        return False


def iter_pages(fetch_page: PageFetcher, start_page: int = 1) -> Iterator[Tuple[int, List[Any]]]:
    """
    Yield (page_number, items) for each page until the listing is exhausted.

    Args:
        fetch_page: Callable taking a 1-indexed page number and returning an
            object (or dict) with `items` and `pagination`
        start_page: First page to request

    Raises:
        Whatever fetch_page raises
    """
    page = start_page
    while True:
        response = fetch_page(page)
        items = list(_get(response, "items") or [])
        yield page, items

        if not items:
            # Server reported more pages than it serves
            break
        if not _has_more(_get(response, "pagination"), page):
            break
        page += 1


def drain_all(fetch_page: PageFetcher, start_page: int = 1) -> List[Any]:
    """
    Drain a paginated listing into a single list, in page order.

    Continues while the reported pagination says `page < total_pages`; stops
    when pagination or total_pages is missing (single page) or the condition
    is false.

    Args:
        fetch_page: Callable taking a page number, returning `items` + `pagination`
        start_page: First page to request (default: 1)

    Returns:
        All items from all pages
    """
    all_items: List[Any] = []
    pages_fetched = 0
    for page, items in iter_pages(fetch_page, start_page=start_page):
        all_items.extend(items)
        pages_fetched += 1
        logger.debug("Loaded page %d, total items so far: %d", page, len(all_items))

    logger.info("Drained %d items from %d pages", len(all_items), pages_fetched)
    return all_items
