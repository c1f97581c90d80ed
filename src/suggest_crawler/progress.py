"""Crawl progress reporting."""

import logging
import time

logger = logging.getLogger(__name__)


class CrawlProgress:
    """
    Completion tally for one crawl.

    Successful and failed loads count alike. Progress is logged on every
    REPORT_EVERY-th completed load and when the crawl finishes.
    """

    REPORT_EVERY = 5

    def __init__(self, total: int, completed: int = 0):
        """
        Args:
            total: Number of loads in the crawl, including the seed
            completed: Loads already completed (the seed, usually)
        """
        self.total = total
        self.completed = completed
        self.failed = 0
        self._start_time = time.monotonic()

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 100
        return round(self.completed / self.total * 100)

    @property
    def finished(self) -> bool:
        return self.completed >= self.total

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._start_time

    def advance(self, success: bool = True) -> None:
        """Record one completed load."""
        self.completed += 1
        if not success:
            self.failed += 1

        if self.completed % self.REPORT_EVERY == 0 or self.finished:
            logger.info(
                f"crawl status: {self.percent}% complete "
                f"({self.completed} of {self.total})"
            )
            if self.finished:
                logger.info(
                    f"crawl elapsed time: {self.elapsed:.2f}s "
                    f"({self.failed} failed)"
                )
