"""Shared fixtures and ICS builders for feedcal tests."""
from datetime import datetime, timedelta
import pytest
import pytz

from feedcal.config import Config, SubscriptionConfig
from feedcal.ics_subscription import ICSSubscription


FEED_URL = "https://calendar.example.com/feed.ics"

AMSTERDAM_VTIMEZONE = """BEGIN:VTIMEZONE
TZID:Custom/Amsterdam
BEGIN:STANDARD
DTSTART:19701025T030000
TZOFFSETFROM:+0200
TZOFFSETTO:+0100
RRULE:FREQ=YEARLY;BYDAY=-1SU;BYMONTH=10
END:STANDARD
BEGIN:DAYLIGHT
DTSTART:19700329T020000
TZOFFSETFROM:+0100
TZOFFSETTO:+0200
RRULE:FREQ=YEARLY;BYDAY=-1SU;BYMONTH=3
END:DAYLIGHT
END:VTIMEZONE"""


def make_calendar(*components: str) -> str:
    """Wrap components in a VCALENDAR with CRLF line endings."""
    body = "\n".join(
        ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//feedcal tests//EN", *components, "END:VCALENDAR"]
    )
    return "\r\n".join(body.split("\n")) + "\r\n"


def timed_event(uid: str, start: str, end: str, summary: str = "Meeting") -> str:
    return "\n".join([
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"SUMMARY:{summary}",
        f"DTSTART:{start}",
        f"DTEND:{end}",
        "END:VEVENT",
    ])


class FakeClock:
    """Controllable replacement for the service clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StubSubscription(ICSSubscription):
    """Fetcher that returns canned text or raises a canned error."""

    def __init__(self, text: str = "", fail_with: Exception = None):
        super().__init__(url=FEED_URL)
        self.text = text
        self.fail_with = fail_with
        self.calls = 0

    def fetch(self, timeout: int = 30) -> str:
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.text


@pytest.fixture
def config():
    return Config(refresh_interval=300, subscription=SubscriptionConfig(url=FEED_URL))


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 10, 12, 0, tzinfo=pytz.UTC))


@pytest.fixture
def simple_feed():
    return make_calendar(
        timed_event("one", "20250110T090000Z", "20250110T100000Z", "Standup"),
        timed_event("two", "20250111T140000Z", "20250111T150000Z", "Review"),
    )
