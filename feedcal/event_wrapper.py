"""
Value types produced by the parser and held by the cache.

CalendarEvent is the flat, immutable form of one event occurrence.
Times are kept in their storage form (a 'YYYY-MM-DD' date for all-day
events, a UTC instant string for timed events) so events can be handed
to note-writing consumers without further conversion.
"""

from dataclasses import dataclass, asdict
from datetime import datetime, date, timedelta
from typing import Optional, Union

from .timezone_utils import parse_stored_time


@dataclass(frozen=True)
class CalendarEvent:
    """
    A single concrete calendar occurrence.

    start/end are 'YYYY-MM-DD' when all_day is True, otherwise UTC
    instant strings ('2025-03-30T07:00:00Z').
    """
    id: str
    title: str
    start: str
    end: Optional[str] = None
    all_day: bool = False
    description: Optional[str] = None
    location: Optional[str] = None

    @property
    def start_value(self) -> Union[date, datetime]:
        """Start as a date (all-day) or an aware UTC datetime."""
        return parse_stored_time(self.start)

    @property
    def end_value(self) -> Optional[Union[date, datetime]]:
        """End as a date (all-day) or an aware UTC datetime, if present."""
        if self.end is None:
            return None
        return parse_stored_time(self.end)

    def to_dict(self) -> dict:
        """Plain dict for storage; times stay in their string form."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'CalendarEvent':
        return cls(
            id=data['id'],
            title=data['title'],
            start=data['start'],
            end=data.get('end'),
            all_day=bool(data.get('all_day', False)),
            description=data.get('description'),
            location=data.get('location'),
        )


@dataclass(frozen=True)
class CacheEntry:
    """
    The result of the last successful refresh.

    Replaced wholesale on every successful fetch, never mutated.
    """
    events: tuple[CalendarEvent, ...]
    last_updated: datetime
    expires_at: datetime
    subscription_id: str = "default"

    @classmethod
    def create(
        cls,
        events: list[CalendarEvent],
        now: datetime,
        freshness: timedelta,
        subscription_id: str = "default",
    ) -> 'CacheEntry':
        """Build an entry stamped at now that expires after freshness."""
        return cls(
            events=tuple(events),
            last_updated=now,
            expires_at=now + freshness,
            subscription_id=subscription_id,
        )

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at

    def is_usable(self, now: datetime, grace: timedelta) -> bool:
        """True while now is before the end of the grace period."""
        return now < self.expires_at + grace
