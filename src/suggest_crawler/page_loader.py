"""
Page loader: opens one URL in a fresh page and returns its text and links.

Load completion is decided by a LoadTracker fed with the page's network
events rather than by Playwright's own wait states. The headless browser
occasionally crashes while opening a page; when that happens the session is
relaunched and the load retried, up to the configured attempt cap.
"""

import logging
import re
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError

from suggest_crawler.config import CrawlerConfig
from suggest_crawler.exceptions import (
    BrowserLevelFailure,
    ExtractionError,
    NotInitializedError,
    PageCloseError,
    PageLoadError,
    RetriesExhaustedError,
)
from suggest_crawler.links import extract_visible_links, normalize_url
from suggest_crawler.load_tracker import LoadTracker
from suggest_crawler.models import PageData
from suggest_crawler.session import BrowserSession

logger = logging.getLogger(__name__)


PAGE_TEXT_SCRIPT = "() => document.body ? document.body.innerText : ''"

_NET_ERROR_RE = re.compile(r"net::ERR_[A-Z_]+|NS_ERROR_[A-Z_]+")


def navigation_status(error: BaseException) -> str:
    """Short status string for a failed navigation."""
    match = _NET_ERROR_RE.search(str(error))
    if match:
        return match.group(0)
    if "Timeout" in type(error).__name__:
        return "timeout"
    return "fail"


class PageLoader:
    """Loads pages through a BrowserSession, consulting its cache first."""

    def __init__(self, session: BrowserSession, config: Optional[CrawlerConfig] = None):
        """
        Initialize the page loader.

        Args:
            session: Browser session providing the browser and cache
            config: Crawler configuration (defaults to the session's)
        """
        self._session = session
        self._config = config or session.config

    async def load(self, url: str, attempt: int = 1) -> PageData:
        """
        Load a page and return its data.

        Args:
            url: URL to load
            attempt: Attempt number, starting at 1

        Returns:
            PageData for the page, from the cache if already loaded

        Raises:
            NotInitializedError: If the session has no live browser
            RetriesExhaustedError: If the browser failed on every attempt
            PageLoadError: If navigation reported a non-success status
            ExtractionError: If text or link extraction failed
            BrowserLaunchError: If relaunching a crashed browser failed
        """
        logger.debug(f"Load page invoked. url: {url} attempt: {attempt}")

        if not self._session.is_live:
            raise NotInitializedError("Unable to load page. Browser not properly initialized.")

        max_attempts = self._config.max_attempts
        key = normalize_url(url)

        if attempt > max_attempts:
            raise RetriesExhaustedError(key, max_attempts)

        cached = self._session.cache.get(key)
        if cached is not None:
            return cached

        try:
            page_data = await self._load_page(key)
        except BrowserLevelFailure as e:
            logger.error(f"Browser encountered error while opening page. url: {key} error: {e.reason}")
            if attempt >= max_attempts:
                raise RetriesExhaustedError(key, attempt) from e

            await self._session.reinitialize()
            logger.info(f"Attempting to reload page. url: {key}")
            page_data = await self.load(key, attempt + 1)
            logger.info(f"Successfully reloaded page. url: {key}")
            return page_data

        self._session.cache.put(key, page_data)
        return page_data

    async def _load_page(self, url: str) -> PageData:
        """Open, wait for, extract and close a single page."""
        browser = self._session.browser

        # bypass_csp so the DOM helper can be injected on pages whose CSP forbids scripts
        page_options = {"viewport": self._config.viewport, "bypass_csp": True}
        if self._config.user_agent:
            page_options["user_agent"] = self._config.user_agent

        try:
            page = await browser.new_page(**page_options)
        except PlaywrightError as e:
            raise BrowserLevelFailure(url, str(e)) from e

        tracker = LoadTracker(self._config.idle_ms, self._config.hard_ceiling_ms, url=url)
        page.on("request", lambda request: tracker.resource_requested())
        page.on("requestfinished", lambda request: tracker.resource_received("end"))
        page.on("requestfailed", lambda request: tracker.resource_received("end"))
        page.on("crash", lambda crashed_page: tracker.fail(BrowserLevelFailure(url, "page crashed")))

        try:
            response = await page.goto(
                url,
                wait_until="commit",
                timeout=self._config.hard_ceiling_ms
            )
        except PlaywrightError as e:
            if self._is_browser_failure(browser, page, e):
                tracker.fail(BrowserLevelFailure(url, str(e)))
            else:
                tracker.fail(PageLoadError(url, navigation_status(e)))
        else:
            if response is not None and response.status >= 400:
                tracker.fail(PageLoadError(url, response.status))
            else:
                tracker.arm_ceiling()

        try:
            outcome = await tracker.wait()
        except PageLoadError:
            close_error = await self._close_page(page, url)
            if close_error is not None:
                logger.error(str(close_error))
            raise

        logger.debug(f"Page load complete ({outcome.value}). url: {url}")
        return await self._extract_and_close(page, url)

    async def _extract_and_close(self, page: Any, url: str) -> PageData:
        """Extract text and links, then close the page whatever happened."""
        extraction_error: Optional[ExtractionError] = None
        text = ""
        links: List[str] = []

        try:
            text = await self._get_page_text(page)
            links = await extract_visible_links(page, self._config, url)
        except Exception as e:
            extraction_error = ExtractionError(url, e)

        close_error = await self._close_page(page, url)

        if extraction_error is not None:
            raise extraction_error from extraction_error.cause
        if close_error is not None:
            raise close_error

        logger.debug(f"Page successfully loaded. url: {url} links: {len(links)}")
        return PageData(url=url, text=text, links=links)

    async def _get_page_text(self, page: Any) -> str:
        text = await page.evaluate(PAGE_TEXT_SCRIPT)
        return text or ""

    async def _close_page(self, page: Any, url: str) -> Optional[PageCloseError]:
        try:
            await page.close()
        except Exception as e:
            logger.error(f"Error closing page. url: {url} error: {e}")
            return PageCloseError(url, e)
        return None

    def _is_browser_failure(self, browser: Any, page: Any, error: BaseException) -> bool:
        """True if the browser or the page's renderer, not just the navigation, is broken."""
        if "crashed" in str(error):
            return True
        try:
            return not browser.is_connected() or page.is_closed()
        except PlaywrightError:
            return True
