"""
Day agenda over cached calendar events.

Used by the note-import side to list the meetings of one day.
"""

from datetime import date, tzinfo
from typing import Iterable, Optional

from .event_wrapper import CalendarEvent
from .timezone_utils import to_local_datetime


def event_local_date(event: CalendarEvent, tz: Optional[tzinfo] = None) -> date:
    """The calendar day an event starts on, in tz for timed events."""
    value = event.start_value
    if event.all_day:
        return value
    return to_local_datetime(value, tz).date()


def _sort_key(event: CalendarEvent):
    # all-day events first, then timed events by start instant
    return (not event.all_day, event.start_value)


def events_for_date(
    events: Iterable[CalendarEvent],
    day: date,
    tz: Optional[tzinfo] = None,
) -> list[CalendarEvent]:
    """
    Filter events to those starting on day, sorted chronologically.

    Args:
        events: Events in any order
        day: The local calendar day to match
        tz: Local timezone for timed events (default: configured timezone)
    """
    matching = [event for event in events if event_local_date(event, tz) == day]
    return sorted(matching, key=_sort_key)


def format_agenda_line(event: CalendarEvent, tz: Optional[tzinfo] = None) -> str:
    """One human-readable line, e.g. '09:00-09:30  Standup @ Room 1'."""
    if event.all_day:
        when = "All day"
    else:
        start = to_local_datetime(event.start_value, tz)
        when = start.strftime("%H:%M")
        end = event.end_value
        if end is not None:
            when += "-" + to_local_datetime(end, tz).strftime("%H:%M")
    line = f"{when:<12} {event.title}"
    if event.location:
        line += f" @ {event.location}"
    return line
