"""
Calendar subscription service: fetch, parse and cache one ICS feed.

Cache policy:
- fresh for CACHE_EXPIRATION after the last successful refresh;
- for CACHE_GRACE_PERIOD after that, reads still return the stale
  events and trigger a background refresh;
- past the grace period, reads return nothing until a refresh succeeds.

A failed refresh never touches the existing cache; it is reported to
the user through the notify callback and logged.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, date, timedelta
from typing import Callable, Optional

import pytz

from .agenda import events_for_date
from .config import Config
from .errors import FormatError, NetworkError
from .event_channel import DATA_CHANGED, EventChannel
from .event_wrapper import CacheEntry, CalendarEvent
from .ics_parser import parse_calendar
from .ics_subscription import ICSSubscription
from .scheduler import RefreshScheduler
from .timezone_utils import get_local_timezone

logger = logging.getLogger(__name__)

NOTICE_NOT_FOUND = "Calendar not found. Check your calendar URL in settings."
NOTICE_NETWORK = "Failed to fetch calendar. Check your internet connection."
NOTICE_FORMAT = "Invalid calendar format. Check your calendar URL in settings."


def _log_notice(message: str) -> None:
    logger.warning("Notice: %s", message)


def _utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def notice_for(error: Exception) -> str:
    """User-facing message for a failed refresh."""
    if isinstance(error, NetworkError):
        if error.status_code == 404:
            return NOTICE_NOT_FOUND
        return NOTICE_NETWORK
    if isinstance(error, FormatError):
        return NOTICE_FORMAT
    return f"Calendar sync failed: {error}"


class ICSSubscriptionService:
    """
    Cache manager and lifecycle owner for the calendar subscription.

    Lifecycle: initialize() does the first load and starts the refresh
    scheduler; destroy() stops the scheduler, drops the cache and
    detaches all subscribers. A fetch still in flight at destroy() time
    completes in the background and its result is discarded.
    """

    CACHE_EXPIRATION = timedelta(minutes=15)
    CACHE_GRACE_PERIOD = timedelta(minutes=5)

    def __init__(
        self,
        config: Config,
        notify: Optional[Callable[[str], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        subscription: Optional[ICSSubscription] = None,
    ):
        """
        Args:
            config: Settings object; the URL is re-read on every refresh
            notify: Shows a transient user notice (default: log a warning)
            clock: Returns the current aware datetime (default: UTC now)
            subscription: Fetcher to use (default: built from config)
        """
        self.config = config
        self._notify = notify if notify is not None else _log_notice
        self._now = clock if clock is not None else _utc_now
        if subscription is None:
            subscription = ICSSubscription(
                url=config.calendar_url,
                name=config.subscription.name,
            )
        self._subscription = subscription

        self._cache: Optional[CacheEntry] = None
        self._channel = EventChannel()
        self._scheduler: Optional[RefreshScheduler] = None
        self._background_refresh: Optional[asyncio.Task] = None
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="network")
        self._destroyed = False

    # ==================== Lifecycle ====================

    async def initialize(self) -> None:
        """Load the feed once and start the periodic refresh."""
        if self._destroyed:
            raise RuntimeError("ICSSubscriptionService has been destroyed")
        if not self.config.calendar_url:
            logger.info("No calendar URL configured")
            return

        try:
            await self.refresh()
            self._start_scheduler()
        except BaseException:
            self._stop_scheduler()
            raise

    def destroy(self) -> None:
        """Stop the scheduler, drop the cache and detach all subscribers."""
        self._destroyed = True
        self._stop_scheduler()
        self._cache = None
        self._background_refresh = None
        self._channel.clear()
        self._executor.shutdown(wait=False)
        logger.debug("Subscription service destroyed")

    async def __aenter__(self) -> 'ICSSubscriptionService':
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    def _start_scheduler(self) -> None:
        if self.config.refresh_interval <= 0:
            logger.debug("Periodic refresh disabled")
            return
        self._scheduler = RefreshScheduler(
            is_due=self.needs_refresh,
            trigger=self.refresh_in_background,
            interval=self.config.refresh_interval,
        )
        self._scheduler.start()

    def _stop_scheduler(self) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            scheduler.stop()

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def scheduler(self) -> Optional[RefreshScheduler]:
        return self._scheduler

    # ==================== Subscribers ====================

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call callback (no arguments) after every successful refresh."""
        return self._channel.subscribe(DATA_CHANGED, callback)

    def unsubscribe(self, callback: Callable[[], None]) -> bool:
        return self._channel.unsubscribe(DATA_CHANGED, callback)

    # ==================== Refresh ====================

    async def refresh(self) -> bool:
        """
        Fetch and parse the feed, then replace the cache.

        Never raises for fetch or parse failures: they are logged and
        reported through notify, and the previous cache stays in effect.

        Returns:
            True if the cache was replaced.
        """
        if self._destroyed:
            return False
        url = self.config.calendar_url
        if not url:
            logger.debug("Refresh skipped: no calendar URL configured")
            return False
        self._subscription.url = url

        try:
            loop = asyncio.get_running_loop()
            ical_text = await loop.run_in_executor(
                self._executor, self._subscription.fetch, self.config.request_timeout
            )
            if self._destroyed:
                logger.debug("Discarding feed fetched after teardown")
                return False
            events = parse_calendar(ical_text, subscription_id=self._subscription.id, now=self._now())
        except (NetworkError, FormatError) as e:
            logger.warning("Failed to refresh calendar: %s", e)
            self._report(e)
            return False
        except Exception as e:
            logger.exception("Unexpected error while refreshing calendar")
            self._report(e)
            return False

        self._cache = CacheEntry.create(
            events,
            now=self._now(),
            freshness=self.CACHE_EXPIRATION,
            subscription_id=self._subscription.id,
        )
        logger.info("Cached %d calendar events", len(events))
        self._channel.emit(DATA_CHANGED)
        return True

    def _report(self, error: Exception) -> None:
        if self._destroyed:
            return
        try:
            self._notify(notice_for(error))
        except Exception:
            logger.exception("Failed to show calendar notice")

    def refresh_in_background(self) -> Optional[asyncio.Task]:
        """
        Start a refresh without waiting for it.

        While one background refresh is in flight, further calls return
        that task instead of starting another fetch.
        """
        if self._destroyed:
            return None
        if self._background_refresh is not None and not self._background_refresh.done():
            return self._background_refresh
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, background refresh skipped")
            return None
        self._background_refresh = loop.create_task(
            self.refresh(), name="feedcal-background-refresh"
        )
        return self._background_refresh

    def needs_refresh(self) -> bool:
        """True when nothing is cached yet or the cache is past its expiry."""
        if self._destroyed:
            return False
        cache = self._cache
        return cache is None or not cache.is_fresh(self._now())

    # ==================== Queries ====================

    @property
    def cache(self) -> Optional[CacheEntry]:
        return self._cache

    def get_all_events(self) -> list[CalendarEvent]:
        """
        Return the cached events.

        Fresh cache: returned as is. Stale within the grace period:
        returned, and a background refresh is started. Anything older,
        or no cache at all: an empty list.
        """
        cache = self._cache
        if cache is None:
            return []

        now = self._now()
        if cache.is_fresh(now):
            return list(cache.events)
        if cache.is_usable(now, self.CACHE_GRACE_PERIOD):
            logger.debug("Cache stale, serving %d events while refreshing", len(cache.events))
            self.refresh_in_background()
            return list(cache.events)

        logger.debug("Cache expired beyond grace period")
        return []

    def get_events_for_date(self, day: date) -> list[CalendarEvent]:
        """Events starting on day in the local timezone, in chronological order."""
        return events_for_date(self.get_all_events(), day, get_local_timezone())
