"""
Browser-based crawler for JavaScript-rendered documentation pages.

Does a two-level crawl: the seed page, then every page it links to. Links
found on those child pages are not followed. Child pages are loaded one at a
time because they all share one headless browser process.

This class is designed to be used as an async context manager, managing
its own browser lifecycle:

    async with DynamicCrawler(config) as crawler:
        pages = await crawler.crawl("https://example.com/docs")

Each returned PageData looks like:

    PageData(url="https://...", text="plain text after the page loads",
             links=("https://...", "https://..."))
"""

import json
import logging
from typing import Any, List, Optional, Sequence

from suggest_crawler.config import CrawlerConfig
from suggest_crawler.exceptions import NotInitializedError, PageError
from suggest_crawler.models import CacheStats, PageData
from suggest_crawler.page_loader import PageLoader
from suggest_crawler.progress import CrawlProgress
from suggest_crawler.session import BrowserSession

logger = logging.getLogger(__name__)


class DynamicCrawler:
    """Two-level crawler driving a single headless browser."""

    def __init__(self, config: Optional[CrawlerConfig] = None, driver: Any = None):
        """
        Initialize the crawler (the browser is launched by initialize()).

        Args:
            config: CrawlerConfig instance with crawler settings
            driver: Optional browser bridge, see BrowserSession
        """
        self._config = config or CrawlerConfig()
        self._session = BrowserSession(self._config, driver=driver)
        self._loader = PageLoader(self._session, self._config)

        logger.debug(f"DynamicCrawler initialized with config: {self._config}")

    @property
    def session(self) -> BrowserSession:
        return self._session

    async def __aenter__(self) -> "DynamicCrawler":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._session.is_live:
            await self.release()

    async def initialize(self) -> None:
        """Launch the browser. See BrowserSession.initialize()."""
        logger.debug("DynamicCrawler: initialize invoked")
        await self._session.initialize()

    async def release(self) -> None:
        """Close the browser and clear the cache. See BrowserSession.release()."""
        logger.debug("DynamicCrawler: release invoked")
        await self._session.release()

    def cache_stats(self) -> CacheStats:
        return self._session.cache.stats()

    async def crawl(self, url: str) -> List[PageData]:
        """
        Crawl a seed URL and every page it links to.

        Args:
            url: Seed URL

        Returns:
            Seed PageData followed by each successfully loaded child page,
            in load order

        Raises:
            NotInitializedError: If the crawler has not been initialized
            PageError: If the seed page itself cannot be loaded
        """
        logger.debug(f"DynamicCrawler: crawl invoked, url: {url}")

        if not self._session.is_live:
            raise NotInitializedError()

        seed = await self._loader.load(url)
        results = [seed]
        results.extend(await self._load_children(seed.links))

        stats = self.cache_stats()
        logger.info(
            f"crawler cache stats. size: {stats.size} "
            f"hits: {stats.hits} misses: {stats.misses}"
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"crawler output for url: {url}\n"
                + json.dumps([page.to_dict() for page in results], indent=2)
            )

        return results

    async def _load_children(self, urls: Sequence[str]) -> List[PageData]:
        """Load child pages sequentially, skipping the ones that fail."""
        pages: List[PageData] = []
        if not urls:
            return pages

        progress = CrawlProgress(total=len(urls) + 1, completed=1)

        for url in urls:
            try:
                pages.append(await self._loader.load(url))
            except PageError as e:
                # Keep going so that as many pages as possible load.
                logger.error(f"Failed to load page {e.url}: {e}")
                progress.advance(success=False)
            else:
                progress.advance()

        return pages
