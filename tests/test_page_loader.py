"""Tests for the page loader: load detection, caching and crash recovery."""

import logging

import pytest

from suggest_crawler.config import CrawlerConfig
from suggest_crawler.exceptions import (
    BrowserLaunchError,
    ExtractionError,
    NotInitializedError,
    PageCloseError,
    PageLoadError,
    RetriesExhaustedError,
)
from suggest_crawler.page_loader import PageLoader, navigation_status
from suggest_crawler.session import BrowserSession

from conftest import FakeDriver, FakeSite


async def make_loader(sites, config, max_launches=None):
    driver = FakeDriver(sites, max_launches=max_launches)
    session = BrowserSession(config, driver=driver)
    await session.initialize()
    return PageLoader(session, config), session, driver


class TestPageLoader:
    """Test cases for PageLoader.load."""

    @pytest.mark.asyncio
    async def test_load_returns_page_data(self, fast_config, example_sites):
        loader, session, driver = await make_loader(example_sites, fast_config)

        page_data = await loader.load("http://example.com")

        assert page_data.url == "http://example.com"
        assert page_data.text == "Example Domain"
        assert page_data.links == ("http://example.com/a",)

        page = driver.browsers[0].pages[0]
        assert page.closed is True
        assert page.viewport == {"width": 1024, "height": 1024}
        assert page.injected == [fast_config.inject_script_path]
        assert driver.page_options[0]["bypass_csp"] is True

    @pytest.mark.asyncio
    async def test_load_normalizes_url(self, fast_config, example_sites):
        loader, session, driver = await make_loader(example_sites, fast_config)

        page_data = await loader.load("http://example.com/a#section")

        assert page_data.url == "http://example.com/a"
        assert driver.goto_calls == ["http://example.com/a"]

    @pytest.mark.asyncio
    async def test_second_load_served_from_cache(self, fast_config, example_sites):
        loader, session, driver = await make_loader(example_sites, fast_config)

        first = await loader.load("http://example.com")
        second = await loader.load("http://example.com")

        assert second == first
        assert driver.page_opens == 1
        stats = session.cache.stats()
        assert stats.hits == 1
        assert stats.misses == 1

    @pytest.mark.asyncio
    async def test_load_requires_live_session(self, fast_config):
        session = BrowserSession(fast_config, driver=FakeDriver())
        loader = PageLoader(session)

        with pytest.raises(NotInitializedError):
            await loader.load("http://example.com")

    @pytest.mark.asyncio
    async def test_attempt_past_cap_fails(self, fast_config, example_sites):
        loader, session, driver = await make_loader(example_sites, fast_config)

        with pytest.raises(RetriesExhaustedError):
            await loader.load("http://example.com", attempt=4)
        assert driver.page_opens == 0

    @pytest.mark.asyncio
    async def test_crash_recovery_reloads_page(self, fast_config, example_sites):
        example_sites["http://example.com"].crashes = 1
        loader, session, driver = await make_loader(example_sites, fast_config)

        page_data = await loader.load("http://example.com")

        assert page_data.text == "Example Domain"
        assert driver.launches == 2
        assert driver.browsers[0].closed is True
        assert session.browser is driver.browsers[1]

    @pytest.mark.asyncio
    async def test_renderer_crash_during_navigation_relaunches(self, fast_config, example_sites):
        """Test a crashed page is retried in a new browser even though the old one is connected."""
        example_sites["http://example.com"].renderer_crashes = 1
        loader, session, driver = await make_loader(example_sites, fast_config)

        page_data = await loader.load("http://example.com")

        assert page_data.text == "Example Domain"
        assert driver.launches == 2
        assert driver.goto_calls == ["http://example.com", "http://example.com"]
        assert session.browser is driver.browsers[1]

    @pytest.mark.asyncio
    async def test_renderer_crash_while_loading_relaunches(self, fast_config, example_sites):
        example_sites["http://example.com"].crash_while_loading = 1
        loader, session, driver = await make_loader(example_sites, fast_config)

        page_data = await loader.load("http://example.com")

        assert page_data.links == ("http://example.com/a",)
        assert driver.launches == 2

    @pytest.mark.asyncio
    async def test_repeated_renderer_crashes_exhaust_retries(self, fast_config):
        sites = {"http://crash.test/": FakeSite(renderer_crashes=100)}
        loader, session, driver = await make_loader(sites, fast_config)

        with pytest.raises(RetriesExhaustedError):
            await loader.load("http://crash.test/")

        assert driver.launches == 3

    @pytest.mark.asyncio
    async def test_retries_bounded_when_browser_keeps_crashing(self, fast_config):
        sites = {"http://crash.test/": FakeSite(crashes=100)}
        loader, session, driver = await make_loader(sites, fast_config)

        with pytest.raises(RetriesExhaustedError) as exc_info:
            await loader.load("http://crash.test/")

        assert exc_info.value.attempts == 3
        assert len(driver.goto_calls) == 3
        # initial launch + at most MAX_ATTEMPTS - 1 relaunches
        assert driver.launches == 3
        assert "http://crash.test/" not in session.cache

    @pytest.mark.asyncio
    async def test_retry_cap_follows_config(self):
        config = CrawlerConfig(idle_ms=10, hard_ceiling_ms=300, max_attempts=1)
        sites = {"http://crash.test/": FakeSite(crashes=100)}
        loader, session, driver = await make_loader(sites, config)

        with pytest.raises(RetriesExhaustedError):
            await loader.load("http://crash.test/")

        assert driver.launches == 1

    @pytest.mark.asyncio
    async def test_failed_relaunch_propagates(self, fast_config, example_sites):
        example_sites["http://example.com"].crashes = 1
        loader, session, driver = await make_loader(example_sites, fast_config, max_launches=1)

        with pytest.raises(BrowserLaunchError):
            await loader.load("http://example.com")
        assert session.is_live is False

    @pytest.mark.asyncio
    async def test_error_status_fails_without_retry(self, fast_config):
        sites = {"http://x.test/missing": FakeSite(status=404)}
        loader, session, driver = await make_loader(sites, fast_config)

        with pytest.raises(PageLoadError) as exc_info:
            await loader.load("http://x.test/missing")

        assert exc_info.value.status == 404
        assert driver.launches == 1
        assert driver.closed_pages == ["http://x.test/missing"]

    @pytest.mark.asyncio
    async def test_redirect_status_is_not_a_failure(self, fast_config):
        """Test only statuses of 400 and above fail the load."""
        sites = {"http://x.test/moved": FakeSite(text="moved", status=304)}
        loader, session, driver = await make_loader(sites, fast_config)

        page_data = await loader.load("http://x.test/moved")

        assert page_data.text == "moved"

    @pytest.mark.asyncio
    async def test_lowest_error_status_fails(self, fast_config):
        sites = {"http://x.test/bad": FakeSite(status=400)}
        loader, session, driver = await make_loader(sites, fast_config)

        with pytest.raises(PageLoadError) as exc_info:
            await loader.load("http://x.test/bad")
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    async def test_navigation_error_is_page_failure(self, fast_config):
        sites = {
            "http://nowhere.test/": FakeSite(
                nav_error="net::ERR_NAME_NOT_RESOLVED at http://nowhere.test/"
            )
        }
        loader, session, driver = await make_loader(sites, fast_config)

        with pytest.raises(PageLoadError) as exc_info:
            await loader.load("http://nowhere.test/")

        assert exc_info.value.status == "net::ERR_NAME_NOT_RESOLVED"
        assert driver.launches == 1
        assert driver.closed_pages == ["http://nowhere.test/"]

    @pytest.mark.asyncio
    async def test_extraction_failure_still_closes_page(self, fast_config):
        sites = {"http://x.test/": FakeSite(text_error=True)}
        loader, session, driver = await make_loader(sites, fast_config)

        with pytest.raises(ExtractionError):
            await loader.load("http://x.test/")

        assert driver.closed_pages == ["http://x.test/"]
        assert "http://x.test/" not in session.cache

    @pytest.mark.asyncio
    async def test_close_failure_fails_load(self, fast_config):
        sites = {"http://x.test/": FakeSite(close_error=True)}
        loader, session, driver = await make_loader(sites, fast_config)

        with pytest.raises(PageCloseError):
            await loader.load("http://x.test/")

    @pytest.mark.asyncio
    async def test_non_html_page_has_no_links(self, fast_config, caplog):
        sites = {"http://x.test/data.json": FakeSite(text="{}", links_missing=True)}
        loader, session, driver = await make_loader(sites, fast_config)

        with caplog.at_level(logging.WARNING):
            page_data = await loader.load("http://x.test/data.json")

        assert page_data.links == ()
        assert page_data.text == "{}"
        assert "Unable to extract visible links" in caplog.text

    @pytest.mark.asyncio
    async def test_busy_page_completes_at_ceiling(self, fast_config):
        """Test a page with resources that never finish still yields data."""
        sites = {"http://busy.test/": FakeSite(text="partial", links=["http://busy.test/a"], hang=True)}
        loader, session, driver = await make_loader(sites, fast_config)

        page_data = await loader.load("http://busy.test/")

        assert page_data.text == "partial"
        assert page_data.links == ("http://busy.test/a",)

    @pytest.mark.asyncio
    async def test_page_without_subresources_completes_at_ceiling(self, fast_config):
        sites = {"http://bare.test/": FakeSite(text="bare", resources=0)}
        loader, session, driver = await make_loader(sites, fast_config)

        page_data = await loader.load("http://bare.test/")

        assert page_data.text == "bare"


class TestNavigationStatus:
    """Test cases for navigation_status."""

    def test_net_error_code(self):
        error = Exception("page.goto: net::ERR_CONNECTION_REFUSED at http://x/")
        assert navigation_status(error) == "net::ERR_CONNECTION_REFUSED"

    def test_timeout(self):
        class TimeoutError(Exception):
            pass

        assert navigation_status(TimeoutError("Timeout 10000ms exceeded")) == "timeout"

    def test_unknown(self):
        assert navigation_status(Exception("something else")) == "fail"
