"""
Load-completion detection for a single page.

Waiting a fixed amount of time for every page adds up over a crawl, so
instead the tracker counts in-flight sub-resource requests and declares the
page loaded once nothing has been in flight for a short idle window. A hard
ceiling bounds the wait for pages that never go quiet.

States:

    LOADING --(in-flight count hits 0)--> IDLE_PENDING --(idle window)--> DONE
    IDLE_PENDING --(new request)--> LOADING
    any --(hard ceiling | fail())--> DONE

Only the first transition into DONE has any effect.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class LoadState(Enum):
    """Page load tracking state."""
    LOADING = "loading"
    IDLE_PENDING = "idle_pending"
    DONE = "done"


class LoadOutcome(Enum):
    """How a successful load was declared complete."""
    IDLE = "idle"
    CEILING = "ceiling"


class LoadTracker:
    """
    Tracks in-flight resources for one page and resolves when it is loaded.

    The event handlers are plain synchronous callbacks so they can be
    registered directly as browser event listeners. Must be created while
    an event loop is running.
    """

    def __init__(self, idle_ms: int = 300, hard_ceiling_ms: int = 10000, url: str = ""):
        """
        Initialize the tracker.

        Args:
            idle_ms: Quiet period before the page counts as loaded
            hard_ceiling_ms: Maximum wait once navigation has succeeded
            url: Page URL, used for log messages only
        """
        self.idle_ms = idle_ms
        self.hard_ceiling_ms = hard_ceiling_ms
        self.url = url

        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future = self._loop.create_future()
        self._pending = 0
        self._idle_timer: Optional[asyncio.TimerHandle] = None
        self._ceiling_timer: Optional[asyncio.TimerHandle] = None
        self.state = LoadState.LOADING
        self.outcome: Optional[LoadOutcome] = None

    @property
    def pending_requests(self) -> int:
        """Number of sub-resource requests currently in flight."""
        return self._pending

    @property
    def done(self) -> bool:
        return self.state is LoadState.DONE

    @property
    def ceiling_armed(self) -> bool:
        return self._ceiling_timer is not None

    def resource_requested(self) -> None:
        """A sub-resource request started."""
        if self.done:
            return

        self._pending += 1
        self._cancel_idle()
        self.state = LoadState.LOADING

    def resource_received(self, stage: Optional[str] = None) -> None:
        """
        A sub-resource response arrived.

        Only the final stage of a response counts; intermediate stages
        (e.g. headers received) are ignored.
        """
        if self.done or stage not in (None, "end"):
            return

        self._pending -= 1
        if self._pending == 0:
            self._cancel_idle()
            self._idle_timer = self._loop.call_later(
                self.idle_ms / 1000, self._complete, LoadOutcome.IDLE
            )
            self.state = LoadState.IDLE_PENDING

    def arm_ceiling(self) -> None:
        """Start the hard ceiling timer. Called once navigation succeeds."""
        if self.done or self._ceiling_timer is not None:
            return

        self._ceiling_timer = self._loop.call_later(
            self.hard_ceiling_ms / 1000, self._on_ceiling
        )

    def fail(self, error: BaseException) -> None:
        """Complete the load with an error."""
        if self.done:
            return

        self._finish()
        self._future.set_exception(error)

    def cancel(self) -> None:
        """Stop all timers without resolving. Used when the page is abandoned."""
        if self.done:
            return

        self._finish()
        self._future.cancel()

    async def wait(self) -> LoadOutcome:
        """Wait for the page to finish loading.

        Returns:
            The outcome that completed the load

        Raises:
            The error passed to fail(), if the load failed
        """
        return await self._future

    def _on_ceiling(self) -> None:
        logger.debug(
            f"Force timeout loading resources: {self.url} "
            f"({self._pending} still in flight)"
        )
        self._complete(LoadOutcome.CEILING)

    def _complete(self, outcome: LoadOutcome) -> None:
        if self.done:
            return

        self._finish()
        self.outcome = outcome
        self._future.set_result(outcome)

    def _finish(self) -> None:
        self.state = LoadState.DONE
        self._cancel_idle()
        if self._ceiling_timer is not None:
            self._ceiling_timer.cancel()

    def _cancel_idle(self) -> None:
        if self._idle_timer is not None:
            self._idle_timer.cancel()
            self._idle_timer = None
