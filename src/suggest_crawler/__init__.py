"""Documentation crawler producing classifier training pages."""

__version__ = "0.1.0"

from suggest_crawler.cache import ContentCache
from suggest_crawler.config import CrawlerConfig, ServicesConfig, ServiceClass, settings
from suggest_crawler.dynamic_crawler import DynamicCrawler
from suggest_crawler.exceptions import (
    AlreadyInitializedError,
    BrowserLaunchError,
    BrowserLevelFailure,
    ConfigError,
    CrawlerError,
    ExtractionError,
    MissingDependencyError,
    NotInitializedError,
    PageCloseError,
    PageError,
    PageLoadError,
    RetriesExhaustedError,
    SessionError,
)
from suggest_crawler.links import postprocess_links
from suggest_crawler.load_tracker import LoadOutcome, LoadState, LoadTracker
from suggest_crawler.models import CacheStats, ClassCrawlRecord, PageData
from suggest_crawler.page_loader import PageLoader
from suggest_crawler.session import BrowserSession, PlaywrightDriver
from suggest_crawler.static_crawler import StaticCrawler

__all__ = [
    # Core
    "DynamicCrawler",
    "StaticCrawler",
    "BrowserSession",
    "PlaywrightDriver",
    "PageLoader",
    "LoadTracker",
    "LoadState",
    "LoadOutcome",
    "ContentCache",
    "postprocess_links",
    # Models
    "PageData",
    "CacheStats",
    "ClassCrawlRecord",
    # Config
    "CrawlerConfig",
    "ServicesConfig",
    "ServiceClass",
    "settings",
    # Errors
    "CrawlerError",
    "ConfigError",
    "SessionError",
    "AlreadyInitializedError",
    "NotInitializedError",
    "MissingDependencyError",
    "BrowserLaunchError",
    "PageError",
    "BrowserLevelFailure",
    "PageLoadError",
    "RetriesExhaustedError",
    "ExtractionError",
    "PageCloseError",
]
