"""
In-memory page content cache.

Every page load consults the cache first and populates it after a
successful load. Entries live until the owning session is released.
Access is not locked: loads are serialized on a single event loop, so a
caller that parallelizes loads must add its own synchronization.
"""

import logging
from typing import Dict, Optional

from suggest_crawler.models import CacheStats, PageData

logger = logging.getLogger(__name__)


class ContentCache:
    """URL-keyed memoization of loaded pages with hit/miss counters."""

    def __init__(self):
        self._entries: Dict[str, PageData] = {}
        self._hits = 0
        self._misses = 0

    def get(self, url: str) -> Optional[PageData]:
        """Look up a page, counting the lookup as a hit or a miss."""
        page_data = self._entries.get(url)
        if page_data is not None:
            self._hits += 1
            logger.debug(f"Cache hit: {url}")
        else:
            self._misses += 1
        return page_data

    def put(self, url: str, page_data: PageData) -> None:
        self._entries[url] = page_data

    def clear(self) -> None:
        """Drop every entry. Counters are kept for the final summary."""
        self._entries.clear()

    def reset_stats(self) -> None:
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), hits=self._hits, misses=self._misses)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return url in self._entries
