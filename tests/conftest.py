"""Shared fixtures: a scripted stand-in for the Playwright browser bridge."""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest
from playwright.async_api import Error as PlaywrightError

from suggest_crawler.config import CrawlerConfig
from suggest_crawler.links import VISIBLE_LINKS_SCRIPT
from suggest_crawler.page_loader import PAGE_TEXT_SCRIPT


@dataclass
class FakeSite:
    """Scripted behaviour of one URL."""

    text: str = ""
    links: List[str] = field(default_factory=list)
    page_url: Optional[str] = None
    status: int = 200
    resources: int = 2
    hang: bool = False
    nav_error: Optional[str] = None
    crashes: int = 0
    renderer_crashes: int = 0
    crash_while_loading: int = 0
    text_error: bool = False
    links_missing: bool = False
    close_error: bool = False


class FakeResponse:
    def __init__(self, status: int):
        self.status = status


class FakePage:
    def __init__(self, browser: "FakeBrowser", viewport=None):
        self._browser = browser
        self.viewport = viewport
        self.url = None
        self.injected: List[str] = []
        self.handlers: Dict[str, list] = {}
        self.closed = False

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def _emit(self, event):
        for handler in self.handlers.get(event, []):
            handler(object())

    @property
    def site(self) -> FakeSite:
        return self._browser.driver.sites.get(self.url) or FakeSite(status=404)

    async def goto(self, url, wait_until=None, timeout=None):
        self.url = url
        self._browser.driver.goto_calls.append(url)
        site = self.site

        if site.crashes > 0:
            site.crashes -= 1
            self._browser.connected = False
            raise PlaywrightError("Target page, context or browser has been closed")
        if site.renderer_crashes > 0:
            site.renderer_crashes -= 1
            self._emit("crash")
            raise PlaywrightError("Navigation failed because page crashed!")
        if site.nav_error:
            raise PlaywrightError(site.nav_error)

        for _ in range(site.resources):
            self._emit("request")
        if site.crash_while_loading > 0:
            site.crash_while_loading -= 1
            asyncio.get_running_loop().call_soon(self._emit, "crash")
            return FakeResponse(site.status)
        if not site.hang:
            loop = asyncio.get_running_loop()
            for _ in range(site.resources):
                loop.call_soon(self._emit, "requestfinished")
        return FakeResponse(site.status)

    async def add_script_tag(self, path=None, **kwargs):
        self.injected.append(path)

    async def evaluate(self, script):
        site = self.site
        if script == PAGE_TEXT_SCRIPT:
            if site.text_error:
                raise PlaywrightError("Execution context was destroyed")
            return site.text
        if script == VISIBLE_LINKS_SCRIPT:
            if site.links_missing:
                return None
            return {"page_url": site.page_url or self.url, "visible_links": list(site.links)}
        raise AssertionError(f"unexpected script: {script}")

    async def close(self):
        self.closed = True
        self._browser.driver.closed_pages.append(self.url)
        if self.site.close_error:
            raise PlaywrightError("close failed")

    def is_closed(self):
        return self.closed


class FakeBrowser:
    def __init__(self, driver: "FakeDriver"):
        self.driver = driver
        self.connected = True
        self.closed = False
        self.pages: List[FakePage] = []

    async def new_page(self, viewport=None, **options):
        if not self.connected:
            raise PlaywrightError("Browser has been closed")
        self.driver.page_options.append(options)
        page = FakePage(self, viewport)
        self.pages.append(page)
        self.driver.page_opens += 1
        return page

    def is_connected(self):
        return self.connected

    async def close(self):
        self.closed = True
        self.connected = False


class FakeDriver:
    """Browser bridge returning FakeBrowsers that serve FakeSites."""

    def __init__(self, sites: Optional[Dict[str, FakeSite]] = None, max_launches: Optional[int] = None):
        self.sites = sites or {}
        self.max_launches = max_launches
        self.launches = 0
        self.stopped = False
        self.browsers: List[FakeBrowser] = []
        self.page_opens = 0
        self.goto_calls: List[str] = []
        self.closed_pages: List[str] = []
        self.page_options: List[dict] = []

    async def launch(self, config):
        if self.max_launches is not None and self.launches >= self.max_launches:
            raise RuntimeError("unable to spawn browser process")
        self.launches += 1
        browser = FakeBrowser(self)
        self.browsers.append(browser)
        return browser

    async def stop(self):
        self.stopped = True


@pytest.fixture
def fast_config():
    """Crawler config with short timers so load detection runs quickly."""
    return CrawlerConfig(idle_ms=10, hard_ceiling_ms=300)


@pytest.fixture
def example_sites():
    """The seed page from the crawl example and its one crawlable child."""
    return {
        "http://example.com": FakeSite(
            text="Example Domain",
            page_url="http://example.com/",
            links=[
                "http://example.com/a",
                "http://example.com/b.pdf",
                "http://example.com/a#x",
            ],
        ),
        "http://example.com/a": FakeSite(
            text="Page A",
            links=["http://example.com/", "http://example.com/a#top"],
        ),
    }
