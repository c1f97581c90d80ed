"""Static crawler for documentation sites that render without JavaScript."""

import asyncio
import logging
import random
import time
from typing import List, Optional, Sequence
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from suggest_crawler.cache import ContentCache
from suggest_crawler.config import CrawlerConfig
from suggest_crawler.exceptions import (
    AlreadyInitializedError,
    NotInitializedError,
    PageError,
    PageLoadError,
    RetriesExhaustedError,
)
from suggest_crawler.links import normalize_url, postprocess_links
from suggest_crawler.models import CacheStats, PageData
from suggest_crawler.progress import CrawlProgress

logger = logging.getLogger(__name__)


class StaticCrawler:
    """
    Two-level crawler fetching raw HTML over HTTP.

    Same surface as DynamicCrawler. Every anchor in the markup counts as a
    link since there is no rendering to decide visibility.
    """

    DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SuggestCrawler/0.1)"

    def __init__(
        self,
        config: Optional[CrawlerConfig] = None,
        http_session: Optional[requests.Session] = None,
        retry_backoff: float = 1.0,
    ):
        """Initialize the static crawler.

        Args:
            config: Crawler configuration
            http_session: Optional requests session (one is created if None)
            retry_backoff: Base delay in seconds for exponential backoff
        """
        self._config = config or CrawlerConfig()
        self._retry_backoff = retry_backoff
        self.cache = ContentCache()
        self._initialized = False

        self.session = http_session or requests.Session()
        self.session.headers.update({
            "User-Agent": self._config.user_agent or self.DEFAULT_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        })

    async def __aenter__(self) -> "StaticCrawler":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._initialized:
            await self.release()

    async def initialize(self) -> None:
        logger.debug("StaticCrawler: initialize invoked")
        if self._initialized:
            raise AlreadyInitializedError()
        self._initialized = True

    async def release(self) -> None:
        logger.debug("StaticCrawler: release invoked")
        if not self._initialized:
            raise NotInitializedError()
        self.cache.clear()
        self.session.close()
        self._initialized = False

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    async def crawl(self, url: str) -> List[PageData]:
        """Crawl a seed URL and every page it links to.

        Args:
            url: Seed URL

        Returns:
            Seed PageData followed by each successfully fetched child page

        Raises:
            NotInitializedError: If the crawler has not been initialized
            PageError: If the seed page cannot be fetched
        """
        logger.debug(f"StaticCrawler: crawl invoked, url: {url}")

        if not self._initialized:
            raise NotInitializedError()

        seed = await self.load(url)
        results = [seed]
        results.extend(await self._load_children(seed.links))

        stats = self.cache_stats()
        logger.info(
            f"crawler cache stats. size: {stats.size} "
            f"hits: {stats.hits} misses: {stats.misses}"
        )
        return results

    async def load(self, url: str) -> PageData:
        """Fetch one page, consulting the cache first."""
        if not self._initialized:
            raise NotInitializedError()

        key = normalize_url(url)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        page_data = await asyncio.to_thread(self._fetch, key)
        self.cache.put(key, page_data)
        return page_data

    async def _load_children(self, urls: Sequence[str]) -> List[PageData]:
        pages: List[PageData] = []
        if not urls:
            return pages

        progress = CrawlProgress(total=len(urls) + 1, completed=1)

        for url in urls:
            try:
                pages.append(await self.load(url))
            except PageError as e:
                logger.error(f"Failed to load page {e.url}: {e}")
                progress.advance(success=False)
            else:
                progress.advance()

        return pages

    def _fetch(self, url: str) -> PageData:
        """Fetch and parse a page with retry logic for connection failures."""
        max_attempts = self._config.max_attempts
        last_error = None

        for attempt in range(max_attempts):
            if attempt > 0:
                # Exponential backoff between retries
                delay = self._retry_backoff * (2 ** attempt) + random.uniform(0, self._retry_backoff)
                time.sleep(delay)

            try:
                response = self.session.get(
                    url,
                    timeout=self._config.request_timeout,
                    allow_redirects=True,
                )
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else "fail"
                raise PageLoadError(url, status) from e
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                logger.warning(f"Fetch attempt {attempt + 1} failed for {url}: {e}")
                last_error = e
                continue

            return self._parse(url, response)

        raise RetriesExhaustedError(url, max_attempts) from last_error

    def _parse(self, url: str, response: requests.Response) -> PageData:
        content_type = response.headers.get("Content-Type", "")
        if "html" not in content_type.lower():
            logger.warning(f"Unable to extract visible links. url: {url}")
            return PageData(url=url, text=response.text, links=[])

        soup = BeautifulSoup(response.text, "html.parser")
        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()

        page_url = response.url or url
        raw_links = []
        for anchor in soup.find_all("a", href=True):
            absolute_url = urljoin(page_url, anchor["href"])
            if absolute_url.lower().startswith("http"):
                raw_links.append(absolute_url)

        text = soup.get_text("\n", strip=True)
        links = postprocess_links(raw_links, page_url, self._config.filtered_extensions)
        return PageData(url=url, text=text, links=links)
