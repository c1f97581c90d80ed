"""
Link extraction and post-processing.

Links are collected in the page by the injected DOM helper and then cleaned
up here: same-page anchors are dropped, fragments stripped, duplicates
collapsed and links to non-crawlable documents (archives, media, PDFs)
removed.
"""

import logging
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urldefrag, urlparse

from suggest_crawler.config import FILTERED_EXTENSIONS, CrawlerConfig

logger = logging.getLogger(__name__)


# Evaluated in the page after dom_query.js has been injected. Returns null when
# the helper is unavailable, which happens for responses that are not HTML.
VISIBLE_LINKS_SCRIPT = """
() => {
    if (!window.suggestCrawlerDom) {
        return null;
    }
    return {
        page_url: window.location.href,
        visible_links: window.suggestCrawlerDom.visibleHttpLinks()
    };
}
"""


def normalize_url(url: str) -> str:
    """Strip whitespace and any #fragment from a URL."""
    return urldefrag(url.strip())[0]


def page_base_url(page_url: str) -> str:
    """
    Base URL of a page for same-page anchor detection.

    Handles both ``.../page#frag`` and ``.../page/#frag`` forms.
    """
    anchor_index = page_url.find("#")
    if anchor_index <= 0:
        return page_url
    if page_url[anchor_index - 1] == "/":
        return page_url[:anchor_index - 1]
    return page_url[:anchor_index]


def is_same_page_anchor(link: str, base_url: str) -> bool:
    return link.startswith(base_url + "#") or link.startswith(base_url + "/#")


def has_filtered_extension(link: str, extensions: Iterable[str] = FILTERED_EXTENSIONS) -> bool:
    """True if the link's path ends with one of the extensions, ignoring case."""
    path = urlparse(link).path.lower()
    return any(path.endswith(ext.lower()) for ext in extensions)


def postprocess_links(
    raw_links: Iterable[str],
    page_url: str,
    extensions: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Clean up the raw links found on a page.

    Args:
        raw_links: Absolute hrefs in document order
        page_url: URL of the page the links were found on
        extensions: Extensions to filter out (defaults to FILTERED_EXTENSIONS)

    Returns:
        Deduplicated links in first-seen order
    """
    if extensions is None:
        extensions = FILTERED_EXTENSIONS

    base_url = page_base_url(page_url)
    seen = set()
    links = []

    for raw in raw_links:
        if not raw or is_same_page_anchor(raw, base_url):
            continue

        link = normalize_url(raw)
        if link in seen:
            continue
        seen.add(link)

        if has_filtered_extension(link, extensions):
            logger.debug(f"url ends with filtered extension. url: {link}")
            continue

        links.append(link)

    return links


async def extract_visible_links(page, config: CrawlerConfig, url: str) -> List[str]:
    """
    Extract the visible outbound links of a loaded page.

    Injects the DOM helper script, evaluates VISIBLE_LINKS_SCRIPT and
    post-processes the result. A page that yields no result structure
    produces an empty list rather than an error.

    Args:
        page: Loaded Playwright page
        config: Crawler configuration
        url: URL that was requested, for logging

    Returns:
        Filtered list of absolute URLs
    """
    await page.add_script_tag(path=config.inject_script_path)
    result = await page.evaluate(VISIBLE_LINKS_SCRIPT)

    if not isinstance(result, dict) or result.get("visible_links") is None:
        # Seen on pages that load successfully but aren't valid HTML documents.
        logger.warning(f"Unable to extract visible links. url: {url}")
        return []

    page_url = result.get("page_url") or url
    return postprocess_links(result["visible_links"], page_url, config.filtered_extensions)
