"""Exception hierarchy for the crawler core.

Session errors describe misuse or failure of the browser session itself and
are fatal to the calling operation. Page errors describe a single URL that
could not be loaded; orchestrators log them and move on.
"""

from typing import Optional, Union


class CrawlerError(Exception):
    """Base class for all crawler errors."""


class ConfigError(CrawlerError):
    """Raised when a configuration file is missing or invalid."""


# Session lifecycle

class SessionError(CrawlerError):
    """Base class for browser session errors."""


class AlreadyInitializedError(SessionError):
    """Raised when initializing a session that is already live."""

    def __init__(self, message: str = "Crawler is already initialized."):
        super().__init__(message)


class NotInitializedError(SessionError):
    """Raised when the session is used before initialize() or after release()."""

    def __init__(self, message: str = "Crawler not properly initialized."):
        super().__init__(message)


class MissingDependencyError(SessionError):
    """Raised when the DOM helper script is absent from disk."""

    def __init__(self, path):
        self.path = path
        super().__init__(
            f"DOM helper script does not exist: {path}. "
            "Reinstall the package or set CRAWLER_INJECT_SCRIPT."
        )


class BrowserLaunchError(SessionError):
    """Raised when the headless browser process could not be started."""


# Per-page failures

class PageError(CrawlerError):
    """Base class for failures scoped to a single URL."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(message)


class BrowserLevelFailure(PageError):
    """The browser process became unusable while opening a page."""

    def __init__(self, url: str, reason: str):
        self.reason = reason
        super().__init__(url, f"Browser failed while opening page: {url} ({reason})")


class PageLoadError(PageError):
    """Navigation completed with a non-success status."""

    def __init__(self, url: str, status: Union[int, str]):
        self.status = status
        super().__init__(url, f"Unable to load page. status: {status} page: {url}")


class RetriesExhaustedError(PageError):
    """The page failed on every allowed attempt."""

    def __init__(self, url: str, attempts: int):
        self.attempts = attempts
        super().__init__(url, f"Page failed to load {attempts} times. url: {url}")


class ExtractionError(PageError):
    """Text or link extraction failed on an otherwise loaded page."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(url, f"Unable to extract page content. url: {url} error: {cause}")


class PageCloseError(PageError):
    """The browser failed to close a page after loading it."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(url, f"Error closing page. url: {url} error: {cause}")
