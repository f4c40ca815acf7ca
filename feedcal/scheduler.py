"""
Periodic refresh scheduler.

Runs an asyncio task that wakes every `interval` seconds, asks whether
the cache is past its expiry and, if so, triggers a refresh. It never
touches the cache itself.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 5 * 60


class RefreshScheduler:
    """
    Owned periodic timer.

    start() acquires the timer task, stop() releases it. Both are
    idempotent, and the async context manager form guarantees stop()
    on every exit path.
    """

    def __init__(
        self,
        is_due: Callable[[], bool],
        trigger: Callable[[], None],
        interval: float = DEFAULT_TICK_SECONDS,
    ):
        """
        Args:
            is_due: Returns True when the cache is past its expiry
            trigger: Starts a refresh without waiting for it
            interval: Seconds between checks
        """
        if interval <= 0:
            raise ValueError(f"Scheduler interval must be positive, got {interval}")
        self._is_due = is_due
        self._trigger = trigger
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Must be called from within a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="feedcal-refresh-scheduler"
        )
        logger.debug("Refresh scheduler started (every %ss)", self.interval)

    def stop(self) -> None:
        """Cancel the timer task. Safe to call more than once."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Refresh scheduler stopped")

    def tick(self) -> bool:
        """
        Run one check.

        Returns True if a refresh was triggered.
        """
        try:
            if self._is_due():
                logger.debug("Cache expired, triggering refresh")
                self._trigger()
                return True
        except Exception:
            logger.exception("Refresh scheduler tick failed")
        return False

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.tick()

    async def __aenter__(self) -> 'RefreshScheduler':
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()
