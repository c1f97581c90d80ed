"""
Browser session management.

A BrowserSession owns the single headless browser used for crawling and the
content cache shared by every page load made through it. The session is
initialized once, transparently recreated when the browser crashes, and torn
down on release.

Usage:
    session = BrowserSession(config)
    await session.initialize()
    ...
    await session.release()
"""

import logging
from pathlib import Path
from typing import Any, Optional

from suggest_crawler.cache import ContentCache
from suggest_crawler.config import CrawlerConfig
from suggest_crawler.exceptions import (
    AlreadyInitializedError,
    BrowserLaunchError,
    MissingDependencyError,
    NotInitializedError,
)

logger = logging.getLogger(__name__)


class PlaywrightDriver:
    """
    Bridge between the session and Playwright.

    Playwright itself is started once and reused across browser relaunches;
    only the browser process is replaced after a crash.
    """

    def __init__(self):
        self._playwright = None

    async def launch(self, config: CrawlerConfig) -> Any:
        """Launch a browser process and return its handle."""
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise ImportError(
                "playwright package not installed. "
                "Install with: pip install playwright && suggest-crawler install-browser"
            )

        if self._playwright is None:
            self._playwright = await async_playwright().start()

        browser_launcher = getattr(self._playwright, config.browser_type)

        launch_options = {"headless": config.headless}
        if config.launch_args:
            launch_options["args"] = config.launch_args

        logger.info(f"Launching {config.browser_type} browser (headless={config.headless})")
        return await browser_launcher.launch(**launch_options)

    async def stop(self) -> None:
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None


class BrowserSession:
    """
    Owns the live browser handle and the content cache.

    At most one browser is live per session. Initializing a live session or
    releasing a dead one is an error.
    """

    def __init__(self, config: Optional[CrawlerConfig] = None, driver: Any = None):
        """
        Initialize the session (no browser is launched yet).

        Args:
            config: Crawler configuration (defaults to CrawlerConfig())
            driver: Browser bridge with async launch(config) and stop();
                defaults to PlaywrightDriver
        """
        self.config = config or CrawlerConfig()
        self.driver = driver or PlaywrightDriver()
        self.cache = ContentCache()
        self._browser = None
        self.launch_count = 0

    @property
    def is_live(self) -> bool:
        return self._browser is not None

    @property
    def browser(self) -> Any:
        """The live browser handle.

        Raises:
            NotInitializedError: If no browser is live
        """
        if self._browser is None:
            raise NotInitializedError()
        return self._browser

    async def initialize(self) -> None:
        """
        Launch the browser.

        Raises:
            AlreadyInitializedError: If a browser is already live
            MissingDependencyError: If the DOM helper script is missing
            BrowserLaunchError: If the browser process fails to start
        """
        logger.debug("Browser session initialize invoked")

        if self._browser is not None:
            raise AlreadyInitializedError()

        script_path = Path(self.config.inject_script_path)
        if not script_path.is_file():
            raise MissingDependencyError(script_path)

        try:
            browser = await self.driver.launch(self.config)
        except ImportError:
            raise
        except Exception as e:
            logger.error(f"Critical error. Unable to initialize browser. error: {e}")
            raise BrowserLaunchError(f"Unable to initialize browser: {e}") from e

        self._browser = browser
        self.launch_count += 1
        logger.info("Browser launched successfully")

    async def reinitialize(self) -> None:
        """
        Replace an unusable browser with a fresh one.

        The old handle is discarded first, so a failed relaunch leaves the
        session dead rather than pointing at the crashed process.
        """
        logger.info("Attempting to reinitialize browser...")
        old_browser, self._browser = self._browser, None

        if old_browser is not None:
            try:
                await old_browser.close()
            except Exception as e:
                logger.warning(f"Error closing crashed browser: {e}")

        await self.initialize()
        logger.info("Browser has been reinitialized.")

    async def release(self) -> None:
        """
        Close the browser and clear the cache.

        Raises:
            NotInitializedError: If no browser is live
        """
        logger.debug("Browser session release invoked")

        if self._browser is None:
            raise NotInitializedError()

        browser, self._browser = self._browser, None
        stats = self.cache.stats()
        self.cache.clear()

        try:
            logger.info("Closing browser")
            await browser.close()
        finally:
            await self.driver.stop()

        logger.info(
            f"Browser closed. cache stats: size: {stats.size} "
            f"hits: {stats.hits} misses: {stats.misses}"
        )
