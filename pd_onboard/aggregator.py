"""Sequential aggregation of paginated directory list endpoints."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, List, TypeVar

from pd_onboard.models import DirectoryPage

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGE_SIZE = 100

PageFetcher = Callable[[int, int], DirectoryPage]
AsyncPageFetcher = Callable[[int, int], Awaitable[DirectoryPage]]


class DirectoryAggregator:
    """Drain a ``(limit, offset) -> DirectoryPage`` fetcher into one list.

    Pages are requested strictly in order, so the result reproduces server
    ordering. A failing page propagates its exception and discards whatever
    was accumulated; callers never see a truncated directory. Retries belong
    to the page fetcher, not here.

    Usage::

        agg = DirectoryAggregator()
        users = agg.fetch_all(lambda limit, offset: client.fetch_page("users", limit, offset))
    """

    def __init__(self, page_size: int = PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size

    def fetch_all(self, fetch_page: PageFetcher) -> List[T]:
        limit = self.page_size
        offset = 0
        items: List[T] = []
        while True:
            page = fetch_page(limit, offset)
            items.extend(page.items)
            logger.debug("Fetched page offset=%d (%d items, more=%s)", offset, len(page.items), page.more)
            if not page.more:
                break
            offset += limit
        logger.debug("Aggregated %d items in %d page(s)", len(items), offset // limit + 1)
        return items

    async def fetch_all_async(self, fetch_page: AsyncPageFetcher) -> List[T]:
        """Async variant of :meth:`fetch_all`; pages are still awaited one at a time."""
        limit = self.page_size
        offset = 0
        items: List[T] = []
        while True:
            page = await fetch_page(limit, offset)
            items.extend(page.items)
            logger.debug("Fetched page offset=%d (%d items, more=%s)", offset, len(page.items), page.more)
            if not page.more:
                break
            offset += limit
        logger.debug("Aggregated %d items in %d page(s)", len(items), offset // limit + 1)
        return items


def fetch_all(fetch_page: PageFetcher, page_size: int = PAGE_SIZE) -> list:
    """Shorthand for ``DirectoryAggregator(page_size).fetch_all(fetch_page)``."""
    return DirectoryAggregator(page_size).fetch_all(fetch_page)
